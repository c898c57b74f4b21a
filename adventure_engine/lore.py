"""Lore book accumulation.

A lore book maps a category ("Creatures", "Characters", "Items") to the
entries discovered so far, in arrival order. Within a category names are
unique case-insensitively; the first entry for a name wins.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from adventure_engine.models import LoreEntry

LoreBook = dict[str, list[LoreEntry]]


def merge_lore(existing: Mapping[str, list[LoreEntry]], new_entries: Iterable[LoreEntry]) -> LoreBook:
    """Return a new lore book with new_entries merged into existing.

    The input mapping and its lists are left untouched.
    """
    merged: LoreBook = {category: list(entries) for category, entries in existing.items()}
    for entry in new_entries:
        bucket = merged.setdefault(entry.category, [])
        name = entry.name.lower()
        if any(e.name.lower() == name for e in bucket):
            continue
        bucket.append(entry)
    return merged


def new_lore_names(existing: Mapping[str, list[LoreEntry]], new_entries: Iterable[LoreEntry]) -> list[str]:
    """Names of the entries merge_lore() would actually add, in order."""
    incoming = list(new_entries)
    merged = merge_lore(existing, incoming)
    added = {
        id(e)
        for category, entries in merged.items()
        for e in entries[len(existing.get(category, ())):]
    }
    return [e.name for e in incoming if id(e) in added]


def lore_count(book: Mapping[str, list[LoreEntry]]) -> int:
    return sum(len(entries) for entries in book.values())
