"""
Issue Key Utility
=================
Generates stable keys for review issues to detect recurrence across iterations.

A key combines:
    - the normalized location (file path, line/column suffix removed)
    - the first N significant words of the description

Line numbers are deliberately excluded: an unrelated edit above the issue
shifts its line but must not change its identity.

    "src/auth.ts:42", "Missing error handling in login()"
        → "src/auth.ts:missing_error_handling"
"""
import re

from fix_iterate.core.config import ISSUE_KEY_WORDS

# Trailing ":12", ":12:5", "#L12", "#L12-L20" position suffixes
_POSITION_SUFFIX_RE = re.compile(r"(?::\d+)+$|#L\d+(?:-L?\d+)?$")
# Position segments anywhere in a reviewer-supplied key: "a.ts:12:missing", "a.ts#L12"
_KEY_POSITION_RE = re.compile(r"(?::\d+)+(?=:|$)|#L\d+(?:-L?\d+)?(?=:|$)")
_WORD_RE = re.compile(r"[a-z][a-z0-9]*")

_STOPWORDS = frozenset({
    "a", "an", "the", "in", "on", "at", "of", "for", "to", "from", "by",
    "with", "and", "or", "is", "are", "be", "was", "this", "that", "it",
    "its", "line", "lines", "file", "function", "method",
})


def normalize_location(location: str) -> str:
    """
    Normalize an issue location to a position-independent file path.

    Parameters
    ----------
    location : str
        Raw location, e.g. ``"./src\\auth.ts:42:7"``.

    Returns
    -------
    str
        Forward-slash path without line/column suffix, or ``"global"``
        when no location was given.
    """
    path = location.strip().replace("\\", "/")
    path = _POSITION_SUFFIX_RE.sub("", path)
    while path.startswith("./"):
        path = path[2:]
    return path or "global"


def significant_words(description: str, limit: int = ISSUE_KEY_WORDS) -> list[str]:
    """Return the first ``limit`` lowercase non-stopword words of a description."""
    words = [w for w in _WORD_RE.findall(description.lower()) if w not in _STOPWORDS]
    return words[:limit]


def generate_issue_key(location: str, description: str, word_limit: int = ISSUE_KEY_WORDS) -> str:
    """
    Generate a stable key for an issue.

    Parameters
    ----------
    location : str
        File path, optionally with a line/column suffix.
    description : str
        Reviewer's description of the issue.
    word_limit : int
        Number of significant description words kept in the key.

    Returns
    -------
    str
        Deterministic key ``"<path>:<word>_<word>_..."``.
    """
    words = significant_words(description, word_limit) or ["issue"]
    return f"{normalize_location(location)}:{'_'.join(words)}"


def normalize_issue_key(key: str) -> str:
    """
    Strip line/column positions from a reviewer-supplied key.

        "src/auth.ts:12"                      → "src/auth.ts"
        "./src/auth.ts:12:5:missing_handling" → "src/auth.ts:missing_handling"

    Returns ``""`` for a blank key so the caller can derive one instead.
    """
    key = key.strip().replace("\\", "/")
    while key.startswith("./"):
        key = key[2:]
    return _KEY_POSITION_RE.sub("", key)
