"""Genre selection and character creation data."""

from fastapi import APIRouter

from adventure_engine.genres import GENRES, get_genre

router = APIRouter()


@router.get("/genres")
async def list_genres():
    """List selectable genres with their descriptions."""
    return [{"name": g.name, "description": g.description} for g in GENRES]


@router.get("/genres/{genre}")
async def genre_details(genre: str):
    """Archetypes and appearance placeholder for a genre (default entry when unknown)."""
    g = get_genre(genre)
    return {
        "name": g.name,
        "description": g.description,
        "archetypes": list(g.archetypes),
        "placeholder": g.placeholder,
    }
