from __future__ import annotations

from enum import Enum

from statemachine import State, StateMachine


class TurnPhase(str, Enum):
    pre_game = "pre_game"
    starting = "starting"
    playing = "playing"
    advancing = "advancing"
    failed = "failed"


class TurnFSM(StateMachine):
    """Guards the turn controller's lifecycle.

    - pre_game -> starting -> playing | failed
    - playing -> advancing -> playing (success or failure; state is kept)
    - restart returns every phase to pre_game.

    At most one request is in flight because begin_start and begin_turn are
    only allowed from idle phases. The controller applies the actual state
    changes; the FSM only guards transitions.
    """

    pre_game = State(TurnPhase.pre_game.value, initial=True)
    starting = State(TurnPhase.starting.value)
    playing = State(TurnPhase.playing.value)
    advancing = State(TurnPhase.advancing.value)
    failed = State(TurnPhase.failed.value)

    begin_start = pre_game.to(starting)
    start_succeeded = starting.to(playing)
    start_failed = starting.to(failed)
    begin_turn = playing.to(advancing)
    turn_finished = advancing.to(playing)
    restart = (
        pre_game.to(pre_game)
        | starting.to(pre_game)
        | playing.to(pre_game)
        | advancing.to(pre_game)
        | failed.to(pre_game)
    )

    @property
    def phase(self) -> TurnPhase:
        return TurnPhase(self.current_state.id)

    @property
    def busy(self) -> bool:
        return self.phase in (TurnPhase.starting, TurnPhase.advancing)
