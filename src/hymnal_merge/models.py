"""Data models for the hymnal corpus."""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from .errors import InvalidPathError, MalformedJsonError, UnknownHymnTypeError


# =============================================================================
# Constants
# =============================================================================

PATH_PATTERN = re.compile(r"(\w+)/(c?\d+[a-z]*)(\?gb=1)?")
PATH_PREFIX = "/en/hymn/"

LANGUAGES_NAME = "Languages"
RELEVANT_NAME = "Relevant"


# =============================================================================
# Keys
# =============================================================================

class HymnType(Enum):
    """Category of a hymn. The value is the short code stored in `hymn_type`."""

    CLASSIC_HYMN = "h"
    NEW_TUNE = "nt"
    NEW_SONG = "ns"
    CHILDREN_SONG = "c"
    HOWARD_HIGASHI = "lb"
    DUTCH = "hd"
    GERMAN = "de"
    CHINESE = "ch"
    CHINESE_SUPPLEMENT = "ts"
    CEBUANO = "cb"
    TAGALOG = "ht"
    FRENCH = "fr"
    SPANISH = "S"
    KOREAN = "K"
    JAPANESE = "J"
    INDONESIAN = "I"
    FARSI = "F"
    RUSSIAN = "R"
    PORTUGUESE = "pt"
    BE_FILLED = "bf"
    LIEDERBUCH = "lde"

    @property
    def code(self) -> str:
        return self.value

    @classmethod
    def from_code(cls, code: str) -> "HymnType":
        try:
            return cls(code)
        except ValueError:
            raise UnknownHymnTypeError(f"Unknown hymn type code: {code!r}") from None


@dataclass(frozen=True)
class HymnalDbKey:
    """Identity of a hymn: type, number (e.g. "43", "225b", "c333") and query suffix."""

    hymn_type: HymnType
    hymn_number: str
    query_params: str = ""  # "" or "?gb=1" for simplified Chinese

    def __post_init__(self):
        if not self.hymn_number:
            raise ValueError(f"hymn_number must be nonempty for {self.hymn_type}")
        if self.query_params is None:
            object.__setattr__(self, "query_params", "")

    @property
    def path(self) -> str:
        """Path form, e.g. "ch/476?gb=1"."""
        return f"{self.hymn_type.code}/{self.hymn_number}{self.query_params}"

    @property
    def full_path(self) -> str:
        """Path as stored in reference JSON, e.g. "/en/hymn/h/43"."""
        return PATH_PREFIX + self.path

    @classmethod
    def from_path(cls, path: str) -> "HymnalDbKey":
        """
        Parse a key from a path like "h/43", "ch/476?gb=1" or "/en/hymn/ns/92f".

        Raises:
            InvalidPathError: if the path does not contain a hymn path
            UnknownHymnTypeError: if the type code is not a known HymnType
        """
        if path.startswith(PATH_PREFIX):
            path = path[len(PATH_PREFIX):]
        match = PATH_PATTERN.search(path)
        if not match:
            raise InvalidPathError(f"Unable to extract hymn key from {path!r}")

        hymn_type = HymnType.from_code(match.group(1))
        return cls(hymn_type, match.group(2), match.group(3) or "")

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class Reference:
    """A labelled link to another hymn, e.g. ("Russian", R/12)."""

    text: str  # display label: language name or relevance label
    key: HymnalDbKey


# =============================================================================
# Reference JSON codec
# =============================================================================

def unique_references(references: Iterable[Reference]) -> tuple[Reference, ...]:
    """Drop duplicates, keeping the first occurrence of each reference."""
    return tuple(dict.fromkeys(references))


def references_to_json(name: str, references: Iterable[Reference]) -> Optional[str]:
    """
    Serialize references to the stored JSON shape.

    Returns None for an empty collection; the store keeps empty sets as null.
    """
    data = [
        {"value": reference.text, "path": reference.key.full_path}
        for reference in references
    ]
    if not data:
        return None
    return json.dumps({"name": name, "data": data}, ensure_ascii=False)


def references_from_json(blob: Optional[str]) -> tuple[Reference, ...]:
    """Parse a stored languages/relevant blob. Null and empty blobs give no references."""
    if blob is None or not blob.strip():
        return ()

    try:
        parsed = json.loads(blob)
    except json.JSONDecodeError as e:
        raise MalformedJsonError(f"Invalid reference JSON {blob!r}: {e}") from e

    if parsed is None:
        return ()
    if not isinstance(parsed, dict) or not isinstance(parsed.get("data"), list):
        raise MalformedJsonError(f"Reference JSON has no data list: {blob!r}")

    references = []
    for datum in parsed["data"]:
        if not isinstance(datum, dict) or "value" not in datum or "path" not in datum:
            raise MalformedJsonError(f"Reference entry missing value/path: {datum!r}")
        references.append(Reference(datum["value"], HymnalDbKey.from_path(datum["path"])))
    return unique_references(references)


# =============================================================================
# Hymns
# =============================================================================

@dataclass
class Verse:
    """One stanza of a hymn."""

    verse_type: str  # "verse", "chorus" or "other"
    verse_content: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"verseType": self.verse_type, "verseContent": list(self.verse_content)}

    @classmethod
    def from_dict(cls, data: dict) -> "Verse":
        return cls(
            verse_type=data.get("verseType", "verse"),
            verse_content=list(data.get("verseContent") or []),
        )


def lyrics_to_json(verses: Iterable[Verse]) -> str:
    return json.dumps([verse.to_dict() for verse in verses], ensure_ascii=False)


@dataclass
class ConvertedHymn:
    """A hymn as held in memory between load and write."""

    title: str
    lyrics_json: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    author: Optional[str] = None
    composer: Optional[str] = None
    key: Optional[str] = None  # musical key, not a HymnalDbKey
    time: Optional[str] = None
    meter: Optional[str] = None
    scriptures: Optional[str] = None
    hymn_code: Optional[str] = None
    music_json: Optional[str] = None
    svg_json: Optional[str] = None
    pdf_json: Optional[str] = None
    language_references: tuple[Reference, ...] = ()
    relevant_references: tuple[Reference, ...] = ()

    def __post_init__(self):
        if not self.title:
            raise ValueError("hymn title must be nonempty")
        self.language_references = unique_references(self.language_references)
        self.relevant_references = unique_references(self.relevant_references)

    @property
    def languages_json(self) -> Optional[str]:
        return references_to_json(LANGUAGES_NAME, self.language_references)

    @property
    def relevant_json(self) -> Optional[str]:
        return references_to_json(RELEVANT_NAME, self.relevant_references)

    @property
    def lyrics(self) -> list[Verse]:
        """Decode `lyrics_json` into verses."""
        if self.lyrics_json is None:
            return []
        try:
            data = json.loads(self.lyrics_json)
        except json.JSONDecodeError as e:
            raise MalformedJsonError(f"lyrics failed to parse: {self.lyrics_json!r}") from e
        if not isinstance(data, list):
            raise MalformedJsonError(f"lyrics are not a list: {self.lyrics_json!r}")
        return [Verse.from_dict(verse) for verse in data]
