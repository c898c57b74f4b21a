"""Tests for prompt rendering and update parsing."""

import json

import pytest

from adventure_engine.models import Enemy, InventoryItem
from adventure_engine.protocol import (
    GAME_UPDATE_SCHEMA,
    PromptError,
    ProtocolError,
    _compile,
    build_advance_prompt,
    build_image_prompt,
    build_start_prompt,
    parse_update,
    render_prompt,
)


# ── render_prompt ────────────────────────────────────────────


def test_render_simple_variable():
    assert render_prompt("Hello {{{name}}}!", {"name": "World"}) == "Hello World!"


def test_render_triple_stash_keeps_quotes():
    result = render_prompt('Said: "{{{line}}}"', {"line": 'It\'s "fine" & calm'})
    assert result == 'Said: "It\'s "fine" & calm"'


def test_render_invalid_template():
    with pytest.raises(PromptError):
        render_prompt("{{> missing_partial}}", {})


def test_render_unbalanced_block_does_not_compile():
    with pytest.raises(PromptError, match="does not compile"):
        render_prompt("{{#if open}}never closed", {})


def test_render_reuses_compiled_template():
    source = "Cached {{{n}}}"
    assert render_prompt(source, {"n": "1"}) == "Cached 1"
    assert render_prompt(source, {"n": "2"}) == "Cached 2"
    assert _compile(source) is _compile(source)


# ── prompts ──────────────────────────────────────────────────


def test_start_prompt_genre_and_character():
    prompt = build_start_prompt("Mystery", "Vic, a skilled Detective. Appearance: trench coat")
    assert "in the Mystery genre" in prompt
    assert '"Vic, a skilled Detective. Appearance: trench coat"' in prompt
    assert "Set playerHealth to 100" in prompt


def test_start_prompt_surprise_genre():
    prompt = build_start_prompt("Surprise Me!", "Someone")
    assert "in the a randomly selected genre genre" in prompt


def test_advance_prompt_with_enemy():
    prompt = build_advance_prompt(
        previous_story="The cave is dark.",
        choice="Attack",
        inventory=[InventoryItem(name="Sword", description="x"), InventoryItem(name="Torch", description="y")],
        quest="Escape the cave.",
        health=64,
        enemy=Enemy(name="Cave Bear", health=40),
        genre="Fantasy",
        character_description="Arin",
    )
    assert 'Current Story: "The cave is dark."' in prompt
    assert "Current Inventory: [Sword, Torch]" in prompt
    assert "Current Health: 64/100" in prompt
    assert "Current Enemy: Cave Bear (40 HP)" in prompt
    assert 'Current Quest: "Escape the cave."' in prompt


def test_advance_prompt_without_enemy():
    prompt = build_advance_prompt("s", "c", [], "q", 100, None, "Sci-Fi", "d")
    assert "Current Enemy: None" in prompt
    assert "Current Inventory: []" in prompt


def test_image_prompt_style_by_genre():
    assert build_image_prompt("a bar", "Mystery", "Vic").startswith("A moody, atmospheric image")
    assert "neon highlights" in build_image_prompt("a bar", "sci-fi", "Vic")


def test_image_prompt_default_style():
    prompt = build_image_prompt("a field", "Surprise Me!", "Nomad")
    assert prompt.startswith("A vibrant, detailed fantasy illustration")
    assert prompt.endswith("A scene depicting: a field. The main character looks like: Nomad.")


def test_schema_requires_all_fields():
    assert set(GAME_UPDATE_SCHEMA["required"]) == set(GAME_UPDATE_SCHEMA["properties"])
    assert GAME_UPDATE_SCHEMA["properties"]["enemy"]["nullable"] is True


# ── parse_update ─────────────────────────────────────────────


def test_parse_valid(payload):
    update = parse_update("advance_adventure", payload(playerHealth=55))
    assert update.player_health == 55
    assert update.choices == ["Stand up", "Call out", "Search the rubble"]


def test_parse_strips_code_fence(payload):
    text = "```json\n" + payload() + "\n```"
    assert parse_update("advance_adventure", text).story_text.startswith("You wake")


def test_parse_non_json_raises_and_logs(caplog):
    with pytest.raises(ProtocolError, match="Could not parse response"):
        parse_update("advance_adventure", "Once upon a time")
    assert "Failed to parse advance_adventure JSON" in caplog.text


def test_parse_array_rejected():
    with pytest.raises(ProtocolError):
        parse_update("start_adventure", json.dumps([1, 2, 3]))


def test_parse_missing_field_rejected(payload):
    data = json.loads(payload())
    del data["storyText"]
    with pytest.raises(ProtocolError):
        parse_update("start_adventure", json.dumps(data))


def test_parse_bad_lore_type_rejected(payload):
    text = payload(newLoreEntries=[{"type": "Place", "name": "Mill", "description": "x"}])
    with pytest.raises(ProtocolError):
        parse_update("advance_adventure", text)
