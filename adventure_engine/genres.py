"""Static per-genre configuration.

Lookups are keyed by lower-cased genre name. Unknown genres (and "Surprise
Me!") resolve to DEFAULT_GENRE for archetypes and placeholders; art style
falls back to the fantasy style, which doubles as the default.
"""

from __future__ import annotations

from dataclasses import dataclass

SURPRISE_GENRE = "Surprise Me!"


@dataclass(frozen=True)
class Genre:
    name: str
    description: str
    archetypes: tuple[str, ...]
    placeholder: str


FANTASY_ART_STYLE = (
    "A vibrant, detailed fantasy illustration in the style of a watercolor and ink "
    "storybook, with soft lighting and a slightly mysterious atmosphere"
)

_ART_STYLES: dict[str, str] = {
    "sci-fi": (
        "A sleek, futuristic digital painting with neon highlights and a cinematic feel, "
        "in the style of concept art for a AAA video game"
    ),
    "mystery": (
        "A moody, atmospheric image in the style of a film noir detective movie, with "
        "dramatic shadows, high contrast, and a desaturated color palette"
    ),
    "fantasy": FANTASY_ART_STYLE,
}

GENRES: tuple[Genre, ...] = (
    Genre(
        name="Fantasy",
        description="Embark on a journey through enchanted forests, face mythical beasts, and uncover ancient magic.",
        archetypes=("Warrior", "Mage", "Rogue", "Cleric"),
        placeholder="e.g., Silver hair, glowing tattoos, and leather armor.",
    ),
    Genre(
        name="Sci-Fi",
        description="Explore distant galaxies, navigate futuristic cityscapes, and encounter strange alien technologies.",
        archetypes=("Soldier", "Engineer", "Psionic", "Smuggler"),
        placeholder="e.g., Worn-out flight jacket, cybernetic eye, scar across their chin.",
    ),
    Genre(
        name="Mystery",
        description="Solve cryptic puzzles in rain-slicked streets, interrogate shady characters, and unveil a dark conspiracy.",
        archetypes=("Detective", "Journalist", "Femme Fatale", "Informant"),
        placeholder="e.g., Classic trench coat, a perpetually raised eyebrow, walks with a slight limp.",
    ),
    Genre(
        name=SURPRISE_GENRE,
        description="Let fate decide your path. A completely random adventure awaits you.",
        archetypes=("Adventurer", "Dreamer", "Survivor", "Nomad"),
        placeholder="e.g., A long scarf that hides their face, eyes that have seen too much.",
    ),
)

_BY_KEY: dict[str, Genre] = {g.name.lower(): g for g in GENRES}

DEFAULT_GENRE = _BY_KEY[SURPRISE_GENRE.lower()]


def get_genre(name: str) -> Genre:
    """Return the genre entry for name, or DEFAULT_GENRE when unknown."""
    return _BY_KEY.get(name.strip().lower(), DEFAULT_GENRE)


def is_known_genre(name: str) -> bool:
    return name.strip().lower() in _BY_KEY


def art_style_for(genre: str) -> str:
    return _ART_STYLES.get(genre.strip().lower(), FANTASY_ART_STYLE)


def prompt_genre(genre: str) -> str:
    """Genre phrase for the opening prompt; "Surprise Me!" lets the model pick."""
    if genre == SURPRISE_GENRE:
        return "a randomly selected genre"
    return genre
