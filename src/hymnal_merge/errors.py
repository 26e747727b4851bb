"""Exceptions raised while loading, merging, auditing and writing the hymnal corpus."""


class HymnalMergeError(Exception):
    """Base class for every fatal error of a migration run."""


class InvalidPathError(HymnalMergeError, ValueError):
    """A hymn path did not match the `<type>/<number>[?gb=1]` grammar."""


class UnknownHymnTypeError(HymnalMergeError, ValueError):
    """A hymn type short code is not a known HymnType."""


class MalformedJsonError(HymnalMergeError, ValueError):
    """A stored JSON blob failed to parse or has the wrong shape."""


# =============================================================================
# Russian source
# =============================================================================

class RussianParseError(HymnalMergeError):
    """A Russian HTML document could not be converted."""


class NonConsecutiveVerseError(RussianParseError):
    """Verse markers in a Russian document are out of order."""


class EmptyBodyError(RussianParseError):
    """A Russian document has no element to read verses from."""


# =============================================================================
# Audit
# =============================================================================

class AuditError(HymnalMergeError):
    """The cross-reference graph failed an audit check."""


class SelfReferenceError(AuditError):
    pass


class DanglingComponentError(AuditError):
    pass


class AmbiguousComponentError(AuditError):
    pass


class TypeFrequencyError(AuditError):
    pass


class TypeIncompatibilityError(AuditError):
    pass


# =============================================================================
# Storage
# =============================================================================

class DatabaseError(HymnalMergeError):
    """The underlying SQLite store failed."""


class InvalidRowError(DatabaseError):
    """A stored row could not be decoded into a hymn."""


class MigrationCheckError(HymnalMergeError):
    """The post-write smoke probe found unexpected data."""
