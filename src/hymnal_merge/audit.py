"""
Structural audit of the language and relevant cross-reference graphs.

Songs that reference each other form components. Each component is expected
to hold at most one song of each type (with a few allowances), never mix
incompatible types, and never be a lone dangling reference. Known, legitimate
irregularities are listed as exception groups and removed before checking.
"""

import logging
import re
from typing import Iterable

from .errors import (
    AmbiguousComponentError,
    DanglingComponentError,
    SelfReferenceError,
    TypeFrequencyError,
    TypeIncompatibilityError,
)
from .models import ConvertedHymn, HymnalDbKey, HymnType, Reference

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Numbers like h/225b, ns/92f or ht/c333 are alternates of the plain number.
ALTERNATE_NUMBER = re.compile(r"(\D+\d+\D*)|(\D*\d+\D+)")

INCOMPATIBLE_TYPES = [
    (HymnType.CLASSIC_HYMN, HymnType.NEW_SONG),
    (HymnType.CLASSIC_HYMN, HymnType.CHILDREN_SONG),
    (HymnType.CHILDREN_SONG, HymnType.NEW_SONG),
    (HymnType.CHINESE, HymnType.CHINESE_SUPPLEMENT),
]


def _keys(*paths: str) -> frozenset[HymnalDbKey]:
    return frozenset(HymnalDbKey.from_path(path) for path in paths)


LANGUAGE_EXCEPTIONS = [
    _keys("h/1353", "h/8476", "fr/129", "ht/1353", "ch/476", "ch/476?gb=1"),
    # Both h/8330 and ns/154 are valid translations of the Chinese song ch/330.
    _keys("h/8330", "ns/154"),
    # Both ns/19 and ns/474 are valid translations of the Chinese song ts/428.
    _keys("ns/19", "ns/474"),
    # h/505 links two Chinese songs that are both valid translations of it.
    _keys("ch/383", "ch/383?gb=1", "ts/27", "ts/27?gb=1"),
    # h/893 links two Chinese songs that are both valid translations of it.
    _keys("ch/641", "ch/641?gb=1", "ts/917", "ts/917?gb=1"),
    # h/1353 and h/8476 are two slightly different versions of the same song,
    # so both link to the same translations.
    _keys("h/1353", "h/8476", "ht/1353", "ch/476", "ch/476?gb=1"),
    # ht/437 is from H4A and is also a valid translation of h/437, as is ht/c333.
    _keys("ht/c333", "ht/437"),
]

RELEVANT_EXCEPTIONS = [
    # h/528, ns/306 and h/8444 are different versions of the same song.
    _keys("h/528", "ns/306", "h/8444"),
    # Same chorus.
    _keys("h/79", "h/8079"),
    # Two English translations of the same song.
    _keys("ns/19", "ns/474"),
    # Same chorus.
    _keys("h/267", "h/1360"),
    # Different tunes of the same song.
    _keys("h/720", "h/8526", "nt/720", "nt/720b"),
    # h/666 is a rewrite of h/8661.
    _keys("h/666", "h/8661"),
    # h/445 is h/1359 without the chorus.
    _keys("h/445", "h/1359"),
    # Alternate translations of the same Chinese song.
    _keys("h/1353", "h/8476"),
    # h/1358 is adapted from h/921.
    _keys("h/921", "h/1358"),
    # ns/7 is adapted from h/18.
    _keys("h/18", "ns/7"),
    # c/21 is a shortened h/70.
    _keys("c/21", "h/70"),
    # c/162 is a shortened h/993.
    _keys("c/162", "h/993"),
    # ns/179 is adapted from h/1248.
    _keys("h/1248", "ns/179"),
    # Both valid translations of ch/330.
    _keys("ns/154", "h/8330"),
]


def describe(component: Iterable[HymnalDbKey]) -> str:
    """Stable, readable rendering of a set of keys for error messages."""
    return "{" + ", ".join(sorted(key.path for key in component)) + "}"


# =============================================================================
# Auditors
# =============================================================================

class SetAuditor:
    """Partitions the corpus into reference components and validates each one."""

    label = "reference"
    exceptions: list[frozenset[HymnalDbKey]] = []
    doubled_types: frozenset[HymnType] = frozenset()
    alternate_types: frozenset[HymnType] = frozenset()

    def references(self, hymn: ConvertedHymn) -> tuple[Reference, ...]:
        raise NotImplementedError

    def build_components(self, songs: dict[HymnalDbKey, ConvertedHymn]) -> list[set[HymnalDbKey]]:
        """
        Group keys into components of mutually referencing songs.

        Each song's targets are merged into the one component they touch. A
        song whose targets touch two components means the graph is not a
        disjoint union of cliques.
        """
        components: list[set[HymnalDbKey]] = []
        for key, hymn in songs.items():
            targets = {reference.key for reference in self.references(hymn)}
            # No references, so this song is not part of any component.
            if not targets:
                continue

            hits = [component for component in components if component & targets]
            if not hits:
                components.append(targets | {key})
            elif len(hits) == 1:
                hits[0].update(targets)
            else:
                raise AmbiguousComponentError(
                    f"{self.label} references {describe(targets)} of {key} were not in a unique set: "
                    + ", ".join(describe(hit) for hit in hits)
                )
        return components

    def audit(self, songs: dict[HymnalDbKey, ConvertedHymn]) -> None:
        components = self.build_components(songs)
        for component in components:
            self.audit_component(component)
        logger.info("Audited %d %s sets", len(components), self.label)

    def allowed(self, hymn_type: HymnType, component: set[HymnalDbKey]) -> int:
        """Number of songs of `hymn_type` the component may hold."""
        times_allowed = 2 if hymn_type in self.doubled_types else 1
        if hymn_type in self.alternate_types:
            times_allowed += sum(
                1 for key in component
                if key.hymn_type == hymn_type and ALTERNATE_NUMBER.fullmatch(key.hymn_number)
            )
        return times_allowed

    def audit_component(self, component: set[HymnalDbKey]) -> None:
        """Validate one component; the set is reduced in place by matching exception groups."""
        if len(component) == 1:
            raise DanglingComponentError(
                f"{self.label.capitalize()} set with only 1 key is a dangling reference, "
                f"which needs fixing: {describe(component)}"
            )

        for exception in self.exceptions:
            if exception <= component:
                logger.debug("Removing exception group %s from %s", describe(exception), describe(component))
                component -= exception
                self.audit_component(component)
                return

        hymn_types = [key.hymn_type for key in component]
        for hymn_type in HymnType:
            if hymn_types.count(hymn_type) > self.allowed(hymn_type, component):
                raise TypeFrequencyError(
                    f"{describe(component)} has too many instances of {hymn_type.name}"
                )

        for first, second in INCOMPATIBLE_TYPES:
            if first in hymn_types and second in hymn_types:
                raise TypeIncompatibilityError(
                    f"{describe(component)} has incompatible {self.label} types "
                    f"{first.name} and {second.name}"
                )


class LanguageAuditor(SetAuditor):
    label = "language"
    exceptions = LANGUAGE_EXCEPTIONS
    doubled_types = frozenset({HymnType.CHINESE, HymnType.CHINESE_SUPPLEMENT})
    alternate_types = frozenset({HymnType.CLASSIC_HYMN, HymnType.NEW_SONG, HymnType.HOWARD_HIGASHI})

    def references(self, hymn: ConvertedHymn) -> tuple[Reference, ...]:
        return hymn.language_references


class RelevantAuditor(SetAuditor):
    label = "relevant"
    exceptions = RELEVANT_EXCEPTIONS
    alternate_types = frozenset({HymnType.CLASSIC_HYMN, HymnType.NEW_TUNE, HymnType.NEW_SONG, HymnType.GERMAN})

    def references(self, hymn: ConvertedHymn) -> tuple[Reference, ...]:
        return hymn.relevant_references


# =============================================================================
# Public API
# =============================================================================

def audit_self_references(songs: dict[HymnalDbKey, ConvertedHymn]) -> None:
    """Ensure no song references itself in either its language or relevant list."""
    for key, hymn in songs.items():
        if any(reference.key == key for reference in hymn.language_references):
            raise SelfReferenceError(f"{key} has a language self-reference")
        if any(reference.key == key for reference in hymn.relevant_references):
            raise SelfReferenceError(f"{key} has a relevant self-reference")


def audit(songs: dict[HymnalDbKey, ConvertedHymn]) -> None:
    """
    Run every audit over the corpus.

    Raises:
        AuditError: on the first structural problem found
    """
    audit_self_references(songs)
    LanguageAuditor().audit(songs)
    RelevantAuditor().audit(songs)
