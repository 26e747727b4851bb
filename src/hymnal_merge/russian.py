"""Conversion of the Russian hymn database (one HTML document per song) into hymns."""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from .errors import EmptyBodyError, NonConsecutiveVerseError
from .models import (
    ConvertedHymn,
    HymnalDbKey,
    HymnType,
    Reference,
    Verse,
    lyrics_to_json,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

IGNORED_CHARACTERS = re.compile(r"[.*]")
VERSE_NUMBER = re.compile(r"[0-9]+")

CATEGORY_CLASS = "title"
SUBCATEGORY_CLASS = "subtitle"
METER_CLASS = "meter"
CHORUS_CLASS = "chorus"


@dataclass
class ParsedRussianHymn:
    """Structured content of one Russian HTML document."""

    category: Optional[str] = None
    subcategory: Optional[str] = None
    meter: Optional[str] = None
    verses: list[Verse] = field(default_factory=list)


@dataclass
class RussianRow:
    """One row of the `hymns` table."""

    number: int
    english_number: int
    title: str
    html: str


# =============================================================================
# Extraction Functions
# =============================================================================

def _class_name(tag: Tag) -> str:
    """Full class attribute of a tag ("" when absent)."""
    return " ".join(tag.get("class", []))


def _text(tag: Tag) -> str:
    """Text of a tag with nodes separated by spaces and whitespace collapsed."""
    return " ".join(tag.get_text(" ").split())


def _first_element(soup: BeautifulSoup) -> Optional[Tag]:
    container = soup.body or soup
    return container.find(True, recursive=False)


def extract_lines(cell: Tag) -> list[str]:
    """Direct text nodes of a cell, one line each."""
    lines = []
    for child in cell.children:
        if isinstance(child, NavigableString) and not isinstance(child, Comment):
            line = " ".join(str(child).split())
            if line:
                lines.append(line)
    return lines


def verse_type_of(cell: Tag) -> str:
    class_name = _class_name(cell)
    if not class_name:
        return "verse"
    if class_name == CHORUS_CLASS:
        return "chorus"
    return "other"


def parse_russian_html(html: str, number: Optional[int] = None) -> ParsedRussianHymn:
    """
    Parse one Russian hymn document.

    The first element under <body> holds the song. Its children with class
    "title", "subtitle" and "meter" carry the category, subcategory and meter;
    every other child is a block of <td> cells containing verse numbers and
    verse text.

    Args:
        html: Raw HTML document
        number: Russian hymn number, used in error messages

    Returns:
        ParsedRussianHymn with the category, subcategory, meter and verses

    Raises:
        EmptyBodyError: if the document has no element under <body>
        NonConsecutiveVerseError: if verse numbers do not count up from 1
    """
    soup = BeautifulSoup(html or "", "html.parser")
    song = _first_element(soup)
    if song is None:
        raise EmptyBodyError(f"Russian hymn {number} has an empty body")

    parsed = ParsedRussianHymn()
    verse_number = 1

    for child in song.find_all(True, recursive=False):
        class_name = _class_name(child)
        if class_name == CATEGORY_CLASS:
            parsed.category = _text(child)
            continue
        if class_name == SUBCATEGORY_CLASS:
            parsed.subcategory = _text(child)
            continue
        if class_name == METER_CLASS:
            parsed.meter = _text(child)
            continue

        cells = child.find_all("td")
        if child.name == "td":
            cells.insert(0, child)

        for cell in cells:
            cell_text = IGNORED_CHARACTERS.sub("", _text(cell)).strip()
            if not cell_text:
                continue

            if VERSE_NUMBER.fullmatch(cell_text):
                if int(cell_text) != verse_number:
                    raise NonConsecutiveVerseError(
                        f"Verse numbers not consecutive for {number}: "
                        f"expected {verse_number}, found {cell_text}"
                    )
                verse_number += 1
                continue

            parsed.verses.append(Verse(verse_type=verse_type_of(cell), verse_content=extract_lines(cell)))

    return parsed


# =============================================================================
# Public API
# =============================================================================

def convert_russian_hymn(
    number: int, english_number: int, title: str, html: str
) -> tuple[HymnalDbKey, ConvertedHymn]:
    """Build the keyed hymn for one Russian row, linked to its English counterpart."""
    parsed = parse_russian_html(html, number)
    english_key = HymnalDbKey(HymnType.CLASSIC_HYMN, str(english_number))

    hymn = ConvertedHymn(
        title=title,
        lyrics_json=lyrics_to_json(parsed.verses),
        category=parsed.category,
        sub_category=parsed.subcategory,
        meter=parsed.meter,
        language_references=(Reference("English", english_key),),
    )
    return HymnalDbKey(HymnType.RUSSIAN, str(number)), hymn


def convert_russian_hymns(rows: Iterable[RussianRow]) -> dict[HymnalDbKey, ConvertedHymn]:
    """Convert every Russian row, preserving row order."""
    hymns: dict[HymnalDbKey, ConvertedHymn] = {}
    for row in rows:
        key, hymn = convert_russian_hymn(row.number, row.english_number, row.title, row.html)
        hymns[key] = hymn

    logger.info("Converted %d Russian hymns", len(hymns))
    return hymns
