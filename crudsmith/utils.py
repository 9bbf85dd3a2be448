# File: crudsmith/utils.py
"""
crudsmith - Utility Functions & Helpers
=========================================
String transformation, English inflection, and code-formatting helpers
shared by the parser, the naming deriver, and every artifact generator.

Performance strategy:
- ALL string-conversion functions are decorated with ``@lru_cache(maxsize=None)``
  so the repeated calls made by the generators are amortised to O(1).
- No external dependencies beyond the Python standard library.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import re
import time
from typing import Callable, Dict, FrozenSet, List, Optional, Set, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudsmith.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_CAMEL_TO_SNAKE_RE1: re.Pattern[str] = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_TO_SNAKE_RE2: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_MULTI_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"_{2,}")
_LEADING_TRAILING_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"^_+|_+$")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)
_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Python keywords that cannot be used as identifiers
PYTHON_KEYWORDS: FrozenSet[str] = frozenset({
    "False", "None", "True", "and", "as", "assert", "async", "await",
    "break", "class", "continue", "def", "del", "elif", "else",
    "except", "finally", "for", "from", "global", "if", "import",
    "in", "is", "lambda", "nonlocal", "not", "or", "pass", "raise",
    "return", "try", "while", "with", "yield",
})

# ---------------------------------------------------------------------------
# Inflection tables
# ---------------------------------------------------------------------------

_IRREGULAR_PLURALS: Dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
    "ox": "oxen",
    "datum": "data",
    "medium": "media",
    "criterion": "criteria",
    "index": "indices",
    "matrix": "matrices",
    "vertex": "vertices",
    "axis": "axes",
    "crisis": "crises",
    "analysis": "analyses",
    "thesis": "theses",
    "status": "statuses",
    "bus": "buses",
    "campus": "campuses",
    "virus": "viruses",
    "alias": "aliases",
    "quiz": "quizzes",
    "leaf": "leaves",
    "life": "lives",
    "knife": "knives",
    "wife": "wives",
    "half": "halves",
    "shelf": "shelves",
    "wolf": "wolves",
    "hero": "heroes",
    "potato": "potatoes",
    "tomato": "tomatoes",
    "echo": "echoes",
    "movie": "movies",
    "cookie": "cookies",
    "zombie": "zombies",
    "cache": "caches",
    "niche": "niches",
}

_IRREGULAR_SINGULARS: Dict[str, str] = {v: k for k, v in _IRREGULAR_PLURALS.items()}

_UNCOUNTABLES: FrozenSet[str] = frozenset({
    "equipment", "information", "rice", "money", "species", "series",
    "fish", "sheep", "deer", "news", "metadata", "feedback", "software",
    "hardware", "staff", "audio", "traffic", "furniture", "luggage",
})


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case.

    Examples:
        >>> to_snake_case("BlogPost")
        'blog_post'
        >>> to_snake_case("getHTTPResponse")
        'get_http_response'
        >>> to_snake_case("already_snake")
        'already_snake'
    """
    if not name:
        return ""
    s: str = _CAMEL_TO_SNAKE_RE1.sub(r"\1_\2", name)
    s = _CAMEL_TO_SNAKE_RE2.sub(r"\1_\2", s)
    s = _NON_ALPHANUM_RE.sub("_", s)
    s = _MULTI_UNDERSCORE_RE.sub("_", s)
    s = _LEADING_TRAILING_UNDERSCORE_RE.sub("", s)
    return s.lower()


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """
    Convert any string to PascalCase.

    Examples:
        >>> to_pascal_case("blog_post")
        'BlogPost'
        >>> to_pascal_case("blog-post")
        'BlogPost'
    """
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    return "".join(word.capitalize() for word in words)


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase.

    Examples:
        >>> to_camel_case("blog_post")
        'blogPost'
        >>> to_camel_case("HTTPResponse")
        'httpResponse'
    """
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    if not words:
        return ""
    first: str = words[0].lower()
    rest: str = "".join(w.capitalize() for w in words[1:])
    return first + rest


@functools.lru_cache(maxsize=None)
def to_kebab_case(name: str) -> str:
    """Convert any string to kebab-case (used in URL paths)."""
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    return "-".join(w.lower() for w in words)


@functools.lru_cache(maxsize=None)
def to_title_human(name: str) -> str:
    """
    Convert identifier to human-readable title.

    Examples:
        >>> to_title_human("blog_posts")
        'Blog Posts'
    """
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    return " ".join(w.capitalize() for w in words)


def _match_case(source: str, replacement: str) -> str:
    """Carry the capitalisation of *source* over to *replacement*."""
    if source.isupper() and len(source) > 1:
        return replacement.upper()
    if source[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


@functools.lru_cache(maxsize=None)
def pluralize_word(word: str) -> str:
    """
    English pluralisation of a single word.

    Irregulars and uncountables come from lookup tables; the remaining
    words follow the usual suffix rules.

    Examples:
        >>> pluralize_word("category")
        'categories'
        >>> pluralize_word("Child")
        'Children'
    """
    if not word:
        return ""

    lower: str = word.lower()

    if lower in _UNCOUNTABLES:
        return word
    if lower in _IRREGULAR_PLURALS:
        return _match_case(word, _IRREGULAR_PLURALS[lower])
    if lower in _IRREGULAR_SINGULARS:
        # Already an irregular plural
        return word

    if lower.endswith(("s", "sh", "ch", "x", "z")):
        return word + "es"
    if lower.endswith("y") and len(word) > 1 and lower[-2] not in "aeiou":
        return word[:-1] + "ies"
    return word + "s"


@functools.lru_cache(maxsize=None)
def singularize_word(word: str) -> str:
    """
    English singularisation of a single word (reverse of ``pluralize_word``).

    Words that already look singular are returned unchanged.
    """
    if not word:
        return ""

    lower: str = word.lower()

    if lower in _UNCOUNTABLES:
        return word
    if lower in _IRREGULAR_SINGULARS:
        return _match_case(word, _IRREGULAR_SINGULARS[lower])
    if lower in _IRREGULAR_PLURALS:
        return word

    if lower.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    if lower.endswith(("sses", "shes", "ches", "xes", "zes")):
        return word[:-2]
    if lower.endswith(("ss", "us", "is")):
        return word
    if lower.endswith("s") and len(word) > 1:
        return word[:-1]
    return word


def _inflect_last_word(name: str, fn: Callable[[str], str]) -> str:
    """Apply an inflection function to the last word of a compound name."""
    words: Tuple[str, ...] = _extract_words(name)
    if not words:
        return name
    last: str = words[-1]
    # Locate the last word inside the original string so prefixes keep
    # their exact casing and separators.
    idx: int = name.lower().rfind(last)
    if idx < 0:
        return name
    original_last: str = name[idx:idx + len(last)]
    return name[:idx] + fn(original_last) + name[idx + len(last):]


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Pluralise a (possibly compound) identifier by inflecting its last word.

    Examples:
        >>> to_plural("BlogPost")
        'BlogPosts'
        >>> to_plural("product_category")
        'product_categories'
    """
    if not name:
        return ""
    return _inflect_last_word(name, pluralize_word)


@functools.lru_cache(maxsize=None)
def to_singular(name: str) -> str:
    """
    Singularise a (possibly compound) identifier by inflecting its last word.

    Examples:
        >>> to_singular("blog_posts")
        'blog_post'
        >>> to_singular("People")
        'Person'
    """
    if not name:
        return ""
    return _inflect_last_word(name, singularize_word)


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """
    Extract individual words from any casing style.

    Returns a tuple (hashable for LRU cache) of lowercase word strings.
    """
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


def is_identifier(name: str) -> bool:
    """True when *name* is a syntactically valid Python/SQL identifier."""
    return bool(_IDENTIFIER_RE.match(name))


# ---------------------------------------------------------------------------
# Code formatting helpers
# ---------------------------------------------------------------------------


def py_string(value: str) -> str:
    """Render *value* as a double-quoted Python string literal."""
    escaped: str = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_import_block(imports: Dict[str, Set[str]]) -> str:
    """
    Build a sorted, de-duplicated import block from a mapping of
    module → set of names.

    An empty name set renders a plain ``import module`` line.

    Example:
        >>> build_import_block({"typing": {"List", "Optional"}, "datetime": {"datetime"}})
        'from datetime import datetime\\nfrom typing import List, Optional'
    """
    plain: List[str] = []
    lines: List[str] = []
    for module in sorted(imports.keys()):
        names: List[str] = sorted(imports[module])
        if names:
            names_str: str = ", ".join(names)
            lines.append(f"from {module} import {names_str}")
        else:
            plain.append(f"import {module}")
    return "\n".join(plain + lines)


def merge_import_dicts(
    *dicts: Dict[str, Set[str]],
) -> Dict[str, Set[str]]:
    """Merge multiple import dictionaries into one, unifying sets."""
    result: Dict[str, Set[str]] = {}
    for d in dicts:
        for module, names in d.items():
            result.setdefault(module, set()).update(names)
    return result


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string. O(n)."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string. O(n)."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("extract migrations") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.info(
            "Timer [%s]: %.4f seconds",
            self.label,
            self.elapsed,
        )

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "PYTHON_KEYWORDS",
    "to_snake_case",
    "to_pascal_case",
    "to_camel_case",
    "to_kebab_case",
    "to_title_human",
    "pluralize_word",
    "singularize_word",
    "to_plural",
    "to_singular",
    "is_identifier",
    "py_string",
    "build_import_block",
    "merge_import_dicts",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("crudsmith.utils loaded (%d public symbols).", len(__all__))
