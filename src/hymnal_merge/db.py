"""
SQLite access for the hymnal (`song_data`) and Russian (`hymns`) databases.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Iterator, Optional, Union

from .errors import DatabaseError, InvalidRowError, MigrationCheckError
from .models import ConvertedHymn, HymnalDbKey, HymnType, references_from_json
from .russian import RussianRow

logger = logging.getLogger(__name__)


# =============================================================================
# Schema
# =============================================================================

SONG_DATA_COLUMNS = [
    "HYMN_TYPE",
    "HYMN_NUMBER",
    "QUERY_PARAMS",
    "SONG_TITLE",
    "SONG_LYRICS",
    "SONG_META_DATA_CATEGORY",
    "SONG_META_DATA_SUBCATEGORY",
    "SONG_META_DATA_AUTHOR",
    "SONG_META_DATA_COMPOSER",
    "SONG_META_DATA_KEY",
    "SONG_META_DATA_TIME",
    "SONG_META_DATA_METER",
    "SONG_META_DATA_SCRIPTURES",
    "SONG_META_DATA_HYMN_CODE",
    "SONG_META_DATA_MUSIC",
    "SONG_META_DATA_SVG_SHEET_MUSIC",
    "SONG_META_DATA_PDF_SHEET_MUSIC",
    "SONG_META_DATA_LANGUAGES",
    "SONG_META_DATA_Relevant",
]

JSON_COLUMNS = [
    "SONG_LYRICS",
    "SONG_META_DATA_MUSIC",
    "SONG_META_DATA_SVG_SHEET_MUSIC",
    "SONG_META_DATA_PDF_SHEET_MUSIC",
    "SONG_META_DATA_LANGUAGES",
    "SONG_META_DATA_Relevant",
]

# Spot checks run after a write: (hymn_type, hymn_number), all query variants.
PROBE_KEYS = [("h", "43"), ("S", "28"), ("ch", "37")]
PROBE_EXPECTED_ROWS = 4
PROBE_LANGUAGE_COUNT = 8


# =============================================================================
# Connections
# =============================================================================

@contextmanager
def get_conn(
    db_path: Union[str, Path], readonly: bool = False
) -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.

    Args:
        db_path: Path to the SQLite file
        readonly: If True, open in read-only mode

    Yields:
        sqlite3.Connection, closed on exit
    """
    db_path = Path(db_path)
    if not db_path.exists():
        raise DatabaseError(f"Database not found: {db_path}")

    uri = db_path.resolve().as_uri() + "?mode=ro" if readonly else str(db_path)
    try:
        conn = sqlite3.connect(uri, uri=readonly)
    except sqlite3.Error as e:
        raise DatabaseError(f"Unable to open {db_path}: {e}") from e

    try:
        yield conn
    except sqlite3.Error as e:
        raise DatabaseError(f"{db_path}: {e}") from e
    finally:
        conn.close()


def get_user_version(conn: sqlite3.Connection) -> int:
    return conn.execute("PRAGMA user_version").fetchone()[0]


def set_user_version(conn: sqlite3.Connection, version: int) -> None:
    # PRAGMA does not accept bound parameters.
    conn.execute(f"PRAGMA user_version = {int(version)}")
    conn.commit()


def check_user_version(conn: sqlite3.Connection, expected: int, name: str) -> None:
    actual = get_user_version(conn)
    if actual != expected:
        logger.warning("%s has user_version %d, expected %d", name, actual, expected)


# =============================================================================
# Reading
# =============================================================================

def hymn_from_row(row: tuple) -> tuple[HymnalDbKey, ConvertedHymn]:
    """Construct a keyed hymn from a row in `SONG_DATA_COLUMNS` order."""
    (
        hymn_type,
        hymn_number,
        query_params,
        title,
        lyrics_json,
        category,
        sub_category,
        author,
        composer,
        key,
        time,
        meter,
        scriptures,
        hymn_code,
        music_json,
        svg_json,
        pdf_json,
        languages_json,
        relevant_json,
    ) = row
    try:
        hymnal_db_key = HymnalDbKey(HymnType.from_code(hymn_type), hymn_number, query_params or "")
        hymn = ConvertedHymn(
            title=title,
            lyrics_json=lyrics_json,
            category=category,
            sub_category=sub_category,
            author=author,
            composer=composer,
            key=key,
            time=time,
            meter=meter,
            scriptures=scriptures,
            hymn_code=hymn_code,
            music_json=music_json,
            svg_json=svg_json,
            pdf_json=pdf_json,
            language_references=references_from_json(languages_json),
            relevant_references=references_from_json(relevant_json),
        )
    except ValueError as e:
        raise InvalidRowError(f"song_data row {hymn_type}/{hymn_number}{query_params or ''}: {e}") from e
    return hymnal_db_key, hymn


def hymn_to_row(key: HymnalDbKey, hymn: ConvertedHymn) -> tuple:
    """Inverse of `hymn_from_row`."""
    return (
        key.hymn_type.code,
        key.hymn_number,
        key.query_params,
        hymn.title,
        hymn.lyrics_json,
        hymn.category,
        hymn.sub_category,
        hymn.author,
        hymn.composer,
        hymn.key,
        hymn.time,
        hymn.meter,
        hymn.scriptures,
        hymn.hymn_code,
        hymn.music_json,
        hymn.svg_json,
        hymn.pdf_json,
        hymn.languages_json,
        hymn.relevant_json,
    )


def load_hymns(conn: sqlite3.Connection) -> dict[HymnalDbKey, ConvertedHymn]:
    """Load every `song_data` row, keeping query order."""
    columns = ", ".join(SONG_DATA_COLUMNS)
    hymns: dict[HymnalDbKey, ConvertedHymn] = {}
    for row in conn.execute(f"SELECT {columns} FROM song_data"):
        key, hymn = hymn_from_row(row)
        if key in hymns:
            logger.warning("Duplicate song_data row for %s; keeping the last one", key)
        hymns[key] = hymn

    logger.info("Loaded %d hymns from song_data", len(hymns))
    return hymns


def iter_russian_rows(conn: sqlite3.Connection) -> Iterator[RussianRow]:
    """
    Yield every `hymns` row.

    Raises:
        InvalidRowError: if a row lacks a number, English number or title
    """
    for number, english_number, title, html in conn.execute(
        "SELECT number, number_eng, first_string, html FROM hymns"
    ):
        try:
            row = RussianRow(number=int(number), english_number=int(english_number), title=title, html=html)
        except (TypeError, ValueError) as e:
            raise InvalidRowError(f"hymns row {number} (number_eng {english_number}): {e}") from e
        if not title:
            raise InvalidRowError(f"hymns row {number} has no title")
        yield row


# =============================================================================
# Writing
# =============================================================================

def write_hymns(conn: sqlite3.Connection, hymns: dict[HymnalDbKey, ConvertedHymn]) -> None:
    """
    Replace the contents of `song_data` with `hymns` in a single transaction.
    """
    columns = ", ".join(SONG_DATA_COLUMNS)
    placeholders = ", ".join("?" for _ in SONG_DATA_COLUMNS)
    with conn:
        conn.execute("DELETE FROM song_data")
        conn.executemany(
            f"INSERT INTO song_data ({columns}) VALUES ({placeholders})",
            (hymn_to_row(key, hymn) for key, hymn in hymns.items()),
        )
    logger.info("Wrote %d hymns to song_data", len(hymns))


# =============================================================================
# Verification
# =============================================================================

def _is_json_valid(blob: Optional[str]) -> bool:
    if blob is None:
        return True
    try:
        json.loads(blob)
    except json.JSONDecodeError:
        return False
    return True


def verify_migration(conn: sqlite3.Connection) -> None:
    """
    Spot-check a few well-known hymns after the write.

    Every JSON column of the probed rows must parse, and each must list the
    expected number of languages.

    Raises:
        MigrationCheckError: if any check fails
    """
    columns = ", ".join(["HYMN_TYPE", "HYMN_NUMBER", "QUERY_PARAMS"] + JSON_COLUMNS)
    condition = " OR ".join("(HYMN_TYPE = ? AND HYMN_NUMBER = ?)" for _ in PROBE_KEYS)
    params = [value for pair in PROBE_KEYS for value in pair]
    rows = conn.execute(f"SELECT {columns} FROM song_data WHERE {condition}", params).fetchall()

    for row in rows:
        path = f"{row[0]}/{row[1]}{row[2] or ''}"
        blobs = dict(zip(JSON_COLUMNS, row[3:]))
        for column, blob in blobs.items():
            if not _is_json_valid(blob):
                raise MigrationCheckError(f"{path} has invalid json in {column}")

        languages = references_from_json(blobs["SONG_META_DATA_LANGUAGES"])
        if len(languages) != PROBE_LANGUAGE_COUNT:
            raise MigrationCheckError(
                f"{path} has {len(languages)} languages, expected {PROBE_LANGUAGE_COUNT}"
            )

    if len(rows) != PROBE_EXPECTED_ROWS:
        raise MigrationCheckError(f"Probe returned {len(rows)} rows, expected {PROBE_EXPECTED_ROWS}")
