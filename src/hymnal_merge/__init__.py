"""
Hymnal Merge - Adds the Russian hymns to the hymnal database, cross-links them
with every translation of their English counterparts, and audits the result.
"""

from .models import HymnType, HymnalDbKey, Reference, Verse, ConvertedHymn
from .russian import parse_russian_html, convert_russian_hymn, convert_russian_hymns
from .merge import combine_russian_hymns
from .audit import audit, LanguageAuditor, RelevantAuditor

__all__ = [
    "HymnType",
    "HymnalDbKey",
    "Reference",
    "Verse",
    "ConvertedHymn",
    "parse_russian_html",
    "convert_russian_hymn",
    "convert_russian_hymns",
    "combine_russian_hymns",
    "audit",
    "LanguageAuditor",
    "RelevantAuditor",
]

__version__ = "0.1.0"
