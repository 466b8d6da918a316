"""Text normalization utilities for Karaoke Session."""

import re
import unicodedata

from slugify import slugify

# Version suffixes that shouldn't split one song into two catalog entries
_TITLE_SUFFIXES = re.compile(
    r"\s+-\s+(remaster(ed)?( \d{4})?|radio edit|single version|album version|live)$"
)


def _fold(text: str) -> str:
    # Accents are stripped from Latin letters only; other scripts stay intact
    chars: list[str] = []
    for ch in unicodedata.normalize("NFKD", text.strip().lower()):
        if unicodedata.combining(ch) and chars and chars[-1].isascii():
            continue
        chars.append(ch)
    text = unicodedata.normalize("NFC", "".join(chars))
    return re.sub(r"\s+", " ", text).strip()


def normalize_artist(artist: str) -> str:
    """Normalize an artist name for matching ("The Killers" -> "killers")."""
    artist = _fold(artist)
    return artist[4:] if artist.startswith("the ") else artist


def normalize_title(title: str) -> str:
    """Normalize a song title, dropping bracketed and version annotations."""
    title = re.sub(r"\s*(\([^)]*\)|\[[^\]]*\])", "", title)
    return _TITLE_SUFFIXES.sub("", _fold(title)).strip()


def generate_song_id(artist: str, title: str) -> str:
    """Generate a catalog song id like "queen-bohemian-rhapsody"."""
    return slugify(f"{normalize_artist(artist)}-{normalize_title(title)}", lowercase=True)


def normalize_tags(tags: list[str] | set[str] | None) -> set[str]:
    """Lowercase, trim and de-duplicate free-form mood tags."""
    if not tags:
        return set()
    return {_fold(tag) for tag in tags if tag and tag.strip()}
