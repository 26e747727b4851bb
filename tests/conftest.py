"""
Hymnal Merge - Test Configuration

Pytest fixtures for in-memory corpora and temporary SQLite stores.
"""
import sqlite3
from pathlib import Path

import pytest

from hymnal_merge.db import set_user_version, write_hymns

from tests.factories import RUSSIAN_HTML, create_song_data_table, language_clique


RUSSIAN_SCHEMA = """
CREATE TABLE hymns(
    number INTEGER PRIMARY KEY,
    number_eng INTEGER,
    first_string TEXT,
    html TEXT
);
"""

# Eight mutually linked songs including the probed h/43, S/28, ch/37 and
# ch/37?gb=1; once a Russian hymn joins, each lists 8 languages.
PROBE_CLIQUE = {
    "h/43": "English",
    "S/28": "Spanish",
    "ch/37": "詩歌(繁)",
    "ch/37?gb=1": "诗歌(简)",
    "de/43": "German",
    "ht/43": "Tagalog",
    "K/43": "Korean",
    "J/43": "Japanese",
}


@pytest.fixture
def probe_clique():
    """Corpus holding the translation clique of h/43."""
    return language_clique(PROBE_CLIQUE)


@pytest.fixture
def hymnal_db(tmp_path, probe_clique) -> Path:
    """Hymnal store at user_version 18 holding the h/43 clique."""
    path = tmp_path / "hymnaldb-v18.sqlite"
    conn = sqlite3.connect(path)
    try:
        create_song_data_table(conn)
        write_hymns(conn, probe_clique)
        set_user_version(conn, 18)
    finally:
        conn.close()
    return path


@pytest.fixture
def russian_db(tmp_path) -> Path:
    """Russian store with hymn R/1, a translation of h/43."""
    path = tmp_path / "hymns-russian.sqlite"
    conn = sqlite3.connect(path)
    try:
        conn.executescript(RUSSIAN_SCHEMA)
        conn.execute(
            "INSERT INTO hymns (number, number_eng, first_string, html) VALUES (?, ?, ?, ?)",
            (1, 43, "Хвала", RUSSIAN_HTML),
        )
        conn.execute("PRAGMA user_version = 23")
        conn.commit()
    finally:
        conn.close()
    return path
