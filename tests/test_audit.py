"""
Tests for hymnal_merge/audit.py - component partitioning and validation.
"""
import pytest

from hymnal_merge.audit import (
    LANGUAGE_EXCEPTIONS,
    RELEVANT_EXCEPTIONS,
    LanguageAuditor,
    RelevantAuditor,
    audit,
)
from hymnal_merge.errors import (
    AmbiguousComponentError,
    DanglingComponentError,
    SelfReferenceError,
    TypeFrequencyError,
    TypeIncompatibilityError,
)
from hymnal_merge.merge import combine_russian_hymns

from tests.factories import hymn, key, language_clique, relevant_clique


def keys(*paths):
    return {key(path) for path in paths}


# =============================================================================
# Exception Set Tests
# =============================================================================

class TestExceptionSets:

    def test_counts(self):
        assert len(LANGUAGE_EXCEPTIONS) == 7
        assert len(RELEVANT_EXCEPTIONS) == 14

    def test_simplified_chinese_keys(self):
        assert key("ch/476?gb=1") in LANGUAGE_EXCEPTIONS[0]
        assert key("ts/917?gb=1") in LANGUAGE_EXCEPTIONS[4]


# =============================================================================
# Self Reference Tests
# =============================================================================

class TestSelfReferences:

    def test_language_self_reference(self):
        songs = {key("h/1"): hymn(languages=[("English", "h/1")])}
        with pytest.raises(SelfReferenceError, match="language"):
            audit(songs)

    def test_relevant_self_reference(self):
        songs = {key("h/1"): hymn(relevant=[("Related", "h/1")])}
        with pytest.raises(SelfReferenceError, match="relevant"):
            audit(songs)


# =============================================================================
# Partitioning Tests
# =============================================================================

class TestBuildComponents:

    def test_cliques_become_components(self):
        songs = {
            **language_clique({"h/1": "English", "ch/1": "Chinese"}),
            **language_clique({"h/2": "English", "de/2": "German", "fr/2": "French"}),
            key("h/3"): hymn(title="Unlinked"),
        }
        components = LanguageAuditor().build_components(songs)
        assert sorted(components, key=len) == [keys("h/1", "ch/1"), keys("h/2", "de/2", "fr/2")]

    def test_own_key_not_added_when_joining(self):
        songs = {
            key("h/1"): hymn(languages=[("Chinese", "ch/1")]),
            key("ch/1"): hymn(languages=[("English", "h/1")]),
            key("ht/1"): hymn(languages=[("English", "h/1")]),
        }
        assert LanguageAuditor().build_components(songs) == [keys("h/1", "ch/1")]

    def test_bridging_song_is_ambiguous(self):
        songs = {
            **language_clique({"h/1": "English", "ch/1": "Chinese"}),
            **language_clique({"h/2": "English", "ch/2": "Chinese"}),
            key("ht/3"): hymn(languages=[("English", "h/1"), ("English", "h/2")]),
        }
        with pytest.raises(AmbiguousComponentError):
            LanguageAuditor().build_components(songs)

    def test_relevant_auditor_reads_relevant_references(self):
        songs = {
            **language_clique({"h/1": "English", "ch/1": "Chinese"}),
            **relevant_clique(["h/5", "h/6b"]),
        }
        assert RelevantAuditor().build_components(songs) == [keys("h/5", "h/6b")]


# =============================================================================
# Component Validation Tests
# =============================================================================

class TestLanguageAuditor:

    def test_exception_group_is_accepted(self):
        component = keys("h/1353", "h/8476", "fr/129", "ht/1353", "ch/476", "ch/476?gb=1")
        LanguageAuditor().audit_component(component)

    def test_exception_group_in_full_corpus(self):
        songs = language_clique({
            "h/1353": "English",
            "h/8476": "English",
            "fr/129": "French",
            "ht/1353": "Tagalog",
            "ch/476": "詩歌(繁)",
            "ch/476?gb=1": "诗歌(简)",
        })
        audit(songs)

    def test_remainder_after_exception_is_audited(self):
        with pytest.raises(TypeFrequencyError):
            LanguageAuditor().audit_component(keys("ht/c333", "ht/437", "h/437", "h/438"))

    def test_exception_remainder_passes(self):
        LanguageAuditor().audit_component(keys("ht/c333", "ht/437", "h/437", "de/437"))

    def test_incompatible_types(self):
        with pytest.raises(TypeIncompatibilityError):
            LanguageAuditor().audit_component(keys("h/10", "ns/10"))

    @pytest.mark.parametrize("paths", [
        ("h/1", "c/1"),
        ("c/1", "ns/1"),
        ("ch/1", "ts/1"),
    ])
    def test_other_incompatible_pairs(self, paths):
        with pytest.raises(TypeIncompatibilityError):
            LanguageAuditor().audit_component(keys(*paths))

    def test_singleton_is_dangling(self):
        with pytest.raises(DanglingComponentError):
            LanguageAuditor().audit_component(keys("h/1"))

    def test_too_many_of_one_type(self):
        with pytest.raises(TypeFrequencyError, match="CLASSIC_HYMN"):
            LanguageAuditor().audit_component(keys("h/1", "h/2", "ch/1"))

    def test_chinese_allowed_twice(self):
        LanguageAuditor().audit_component(keys("h/5", "ch/5", "ch/5?gb=1"))

    def test_chinese_not_allowed_three_times(self):
        with pytest.raises(TypeFrequencyError):
            LanguageAuditor().audit_component(keys("h/5", "ch/5", "ch/5?gb=1", "ch/6"))

    def test_alternate_numbers_raise_allowance(self):
        LanguageAuditor().audit_component(keys("h/225", "h/225b", "ch/225"))
        LanguageAuditor().audit_component(keys("ns/92", "ns/92f", "de/92"))

    def test_alternate_numbers_do_not_apply_to_other_types(self):
        with pytest.raises(TypeFrequencyError):
            LanguageAuditor().audit_component(keys("h/1", "de/1", "de/1b"))

    def test_merged_corpus_passes(self):
        primary = language_clique({"h/200": "English", "ch/50": "Chinese", "ht/200": "Tagalog"})
        russian = {key("R/2"): hymn(languages=[("English", "h/200")])}
        audit(combine_russian_hymns(primary, russian))


class TestRelevantAuditor:

    def test_exception_group_is_accepted(self):
        RelevantAuditor().audit_component(keys("h/720", "h/8526", "nt/720", "nt/720b"))

    def test_children_song_exception(self):
        RelevantAuditor().audit_component(keys("c/21", "h/70"))

    def test_chinese_not_doubled(self):
        with pytest.raises(TypeFrequencyError):
            RelevantAuditor().audit_component(keys("h/5", "ch/5", "ch/6"))

    def test_german_alternates(self):
        RelevantAuditor().audit_component(keys("de/786", "de/786b"))

    def test_incompatible_types(self):
        with pytest.raises(TypeIncompatibilityError, match="relevant"):
            RelevantAuditor().audit_component(keys("h/10", "ns/10"))

    def test_full_corpus(self):
        songs = {
            **relevant_clique(["h/79", "h/8079"]),
            **relevant_clique(["h/300", "nt/300"]),
        }
        audit(songs)

    def test_exception_leaving_single_key_is_dangling(self):
        songs = {key("h/1"): hymn(relevant=[("Related", "h/8079")]), **relevant_clique(["h/79", "h/8079"])}
        with pytest.raises(DanglingComponentError):
            audit(songs)
