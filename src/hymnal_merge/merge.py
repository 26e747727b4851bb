"""
Weaving Russian hymns into the hymnal's language graph.

Every English hymn sits in a clique of translations that all reference each
other. Adding a Russian translation means every member of that clique gains a
"Russian" reference, and the Russian hymn gains a reference to every member.
"""

import logging
from dataclasses import replace

from .models import ConvertedHymn, HymnalDbKey, Reference

logger = logging.getLogger(__name__)

FINER = 5
logging.addLevelName(FINER, "FINER")

RUSSIAN_LABEL = "Russian"


def combine_russian_hymns(
    hymns: dict[HymnalDbKey, ConvertedHymn],
    russian_hymns: dict[HymnalDbKey, ConvertedHymn],
) -> dict[HymnalDbKey, ConvertedHymn]:
    """
    Merge the Russian hymns into a copy of the hymnal corpus.

    A Russian hymn whose English counterpart is not in the corpus is skipped
    and does not appear in the result.

    Args:
        hymns: Hymnal corpus, keyed and ordered as loaded
        russian_hymns: Russian corpus, each hymn carrying its English link

    Returns:
        New corpus containing the linked Russian hymns
    """
    combined = dict(hymns)
    linked = 0

    for russian_key, russian_hymn in russian_hymns.items():
        for reference in russian_hymn.language_references:
            if reference.key not in combined:
                logger.log(FINER, "%s was not found in all hymns. Occurred in %s", reference.key, russian_key)
                continue
            link_russian_hymn(combined, reference.key, russian_key, russian_hymn)
            linked += 1

    logger.info("Linked %d of %d Russian hymns", linked, len(russian_hymns))
    return combined


def link_russian_hymn(
    combined: dict[HymnalDbKey, ConvertedHymn],
    anchor_key: HymnalDbKey,
    russian_key: HymnalDbKey,
    russian_hymn: ConvertedHymn,
) -> None:
    """
    Link a Russian hymn with the whole language clique containing `anchor_key`.

    Mutates `combined` in place. Members are visited depth-first; a member that
    already references the Russian hymn is not revisited, so the walk ends
    once the clique is exhausted.
    """
    russian_reference = Reference(RUSSIAN_LABEL, russian_key)

    # The parsed record wins over any stored copy; only its links carry over.
    existing = combined.get(russian_key)
    carried = existing.language_references if existing is not None else ()
    combined[russian_key] = replace(
        russian_hymn,
        language_references=russian_hymn.language_references + carried,
    )

    pending = [anchor_key]

    while pending:
        key = pending.pop()
        if key == russian_key:
            continue

        hymn = combined.get(key)
        if hymn is None:
            logger.log(FINER, "%s was not found in all hymns. Linked from %s", key, russian_key)
            continue
        if russian_reference in hymn.language_references:
            continue

        current = combined[russian_key]
        russian_references = current.language_references + tuple(
            reference for reference in hymn.language_references if reference.key != russian_key
        )
        combined[russian_key] = replace(current, language_references=russian_references)
        combined[key] = replace(hymn, language_references=hymn.language_references + (russian_reference,))

        pending.extend(reference.key for reference in reversed(hymn.language_references))
