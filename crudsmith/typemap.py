# File: crudsmith/typemap.py
"""
crudsmith - Type Table
=======================
The single mapping from an abstract field type to everything a generator
needs to know about it:

    storage      SQLAlchemy column type (entity + migration)
    python       ``Mapped[...]`` / Pydantic annotation
    cast         runtime cast category (boolean, integer, float, date,
                 datetime, array) or ``None`` for plain strings
    sample       factory_boy declaration
    searchable   included in the free-text ``search`` filter

Every generator goes through the functions below, so a column stored as a
boolean is also validated, filtered, and faked as a boolean.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, FrozenSet, List, NamedTuple, Optional, Set, Tuple

from crudsmith.models import FieldSpec
from crudsmith.utils import py_string

logger: logging.Logger = logging.getLogger("crudsmith.typemap")


class TypeInfo(NamedTuple):
    """Static facts about one canonical type tag."""

    storage: str
    python: str
    cast: Optional[str]
    sample: str
    searchable: bool


_INT_SAMPLE: str = 'factory.Faker("pyint", min_value=1, max_value=100)'
_FLOAT_SAMPLE: str = 'factory.Faker("pyfloat", left_digits=2, right_digits=2, positive=True)'

TYPE_TABLE: Dict[str, TypeInfo] = {
    "string": TypeInfo("String", "str", None, 'factory.Faker("word")', True),
    "char": TypeInfo("String", "str", None, 'factory.Faker("random_letter")', True),
    "text": TypeInfo("Text", "str", None, 'factory.Faker("paragraph")', True),
    "email": TypeInfo("String", "str", None, 'factory.Faker("safe_email")', True),
    "uuid": TypeInfo("String", "str", None, 'factory.Faker("uuid4")', False),
    "integer": TypeInfo("Integer", "int", "integer", _INT_SAMPLE, False),
    "big_integer": TypeInfo("BigInteger", "int", "integer", _INT_SAMPLE, False),
    "small_integer": TypeInfo("SmallInteger", "int", "integer", _INT_SAMPLE, False),
    "tiny_integer": TypeInfo("SmallInteger", "int", "integer", _INT_SAMPLE, False),
    "foreign_id": TypeInfo(
        "Integer", "int", "integer",
        'factory.Faker("pyint", min_value=1, max_value=10)', False,
    ),
    "decimal": TypeInfo("Numeric", "float", "float", _FLOAT_SAMPLE, False),
    "float": TypeInfo("Float", "float", "float", _FLOAT_SAMPLE, False),
    "boolean": TypeInfo("Boolean", "bool", "boolean", 'factory.Faker("pybool")', False),
    "date": TypeInfo("Date", "date", "date", 'factory.Faker("date_object")', False),
    "datetime": TypeInfo(
        "DateTime", "datetime", "datetime", 'factory.Faker("date_time")', False,
    ),
    "time": TypeInfo("Time", "time", None, 'factory.Faker("time_object")', False),
    "json": TypeInfo("JSON", "Dict[str, Any]", "array", "factory.LazyFunction(dict)", False),
    "array": TypeInfo("JSON", "List[Any]", "array", "factory.LazyFunction(list)", False),
}

DEFAULT_STRING_LENGTH: int = 255
DEFAULT_DECIMAL_PRECISION: int = 10
DECIMAL_SCALE: int = 2

_TEXT: FrozenSet[Optional[str]] = frozenset({None})
_NUMERIC: FrozenSet[Optional[str]] = frozenset({"integer", "float"})

# Name heuristics for sample values, checked in order (first match wins).
# Each entry: needles, declaration, suffix-only match, cast categories it fits.
_NAME_SAMPLES: Tuple[Tuple[Tuple[str, ...], str, bool, FrozenSet[Optional[str]]], ...] = (
    (("email",), 'factory.Sequence(lambda n: f"user{n}@example.com")', False, _TEXT | _NUMERIC),
    (("first_name", "firstname"), 'factory.Faker("first_name")', False, _TEXT),
    (("last_name", "lastname"), 'factory.Faker("last_name")', False, _TEXT),
    (("name",), 'factory.Faker("name")', False, _TEXT),
    (("phone",), 'factory.Faker("phone_number")', False, _TEXT),
    (("address",), 'factory.Faker("address")', False, _TEXT),
    (("city",), 'factory.Faker("city")', False, _TEXT),
    (("country",), 'factory.Faker("country")', False, _TEXT),
    (("zip", "postal"), 'factory.Faker("postcode")', False, _TEXT),
    (("url", "website"), 'factory.Faker("url")', False, _TEXT),
    (("title",), 'factory.Faker("sentence", nb_words=3)', False, _TEXT),
    (("description", "content", "body"), 'factory.Faker("paragraph")', False, _TEXT),
    (
        ("price", "amount", "cost"),
        'factory.Faker("pyfloat", right_digits=2, min_value=10, max_value=1000)',
        False,
        frozenset({"float"}),
    ),
    (("quantity", "qty"), 'factory.Faker("pyint", min_value=1, max_value=100)', False, _NUMERIC),
    (("_id",), 'factory.Faker("pyint", min_value=1, max_value=10)', True, frozenset({"integer"})),
    (("image", "avatar", "photo"), 'factory.Faker("image_url")', False, _TEXT),
    (("slug",), 'factory.Faker("slug")', False, _TEXT),
)

# Cast categories whose values cannot carry a text format.
_STRUCTURED_CASTS: Set[str] = {"boolean", "date", "datetime", "array"}

EMAIL_PATTERN: str = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
URL_PATTERN: str = r"^https?://[^\s/$.?#].[^\s]*$"

_NUMBER_RE: re.Pattern[str] = re.compile(r"^-?\d+(\.\d+)?$")
_TRUE_LITERALS: Set[str] = {"true", "1", "yes", "on"}


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def type_info(field: FieldSpec) -> TypeInfo:
    """Type facts for *field*; unknown tags fall back to ``string``."""
    return TYPE_TABLE[field.effective_type]


def cast_category(field: FieldSpec) -> Optional[str]:
    return type_info(field).cast


def is_searchable(field: FieldSpec) -> bool:
    return type_info(field).searchable


def python_type(field: FieldSpec) -> str:
    """Bare Python annotation for the column value (``str``, ``int`` …)."""
    return type_info(field).python


def python_type_imports(field: FieldSpec) -> Dict[str, Set[str]]:
    """Imports the annotation returned by ``python_type`` needs."""
    annotation: str = python_type(field)
    if annotation in ("date", "datetime", "time"):
        return {"datetime": {annotation}}
    if annotation.startswith("Dict"):
        return {"typing": {"Any", "Dict"}}
    if annotation.startswith("List"):
        return {"typing": {"Any", "List"}}
    return {}


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


def storage_type(field: FieldSpec, prefix: str = "") -> str:
    """
    SQLAlchemy type expression for *field*.

    ``prefix`` is ``"sa."`` inside migrations and empty inside models.

    Examples:
        >>> storage_type(FieldSpec(name="title", type="string"), "sa.")
        'sa.String(length=255)'
    """
    info: TypeInfo = type_info(field)
    kind: str = field.effective_type
    if info.storage == "String":
        if kind == "uuid":
            length: int = 36
        elif kind == "char":
            length = field.length or 1
        else:
            length = field.length or DEFAULT_STRING_LENGTH
        return f"{prefix}String(length={length})"
    if info.storage == "Numeric":
        precision: int = field.precision or DEFAULT_DECIMAL_PRECISION
        if prefix:
            return f"{prefix}Numeric(precision={precision}, scale={DECIMAL_SCALE})"
        return f"Numeric(precision={precision}, scale={DECIMAL_SCALE}, asdecimal=False)"
    if info.storage == "DateTime":
        return f"{prefix}DateTime(timezone=True)"
    return f"{prefix}{info.storage}()" if prefix else info.storage


def storage_import(field: FieldSpec) -> str:
    """Name to import from ``sqlalchemy`` for the storage type."""
    return type_info(field).storage


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def python_default(field: FieldSpec) -> Optional[str]:
    """
    Python literal for the field's default, typed per its cast category.

    ``None`` when the field has no default.
    """
    if field.default is None:
        return None
    raw: str = field.default.strip()
    if raw.lower() == "null":
        return "None"
    cast: Optional[str] = cast_category(field)
    if cast == "boolean":
        return "True" if raw.strip("'\"").lower() in _TRUE_LITERALS else "False"
    if cast in ("integer", "float") and _NUMBER_RE.match(raw):
        if cast == "integer" and "." in raw:
            return str(int(float(raw)))
        return raw
    if cast == "array":
        return None
    return py_string(raw.strip("'\""))


def server_default(field: FieldSpec) -> Optional[str]:
    """``server_default=`` expression for the migration column, if any."""
    if field.default is None:
        return None
    literal: Optional[str] = python_default(field)
    if literal is None or literal == "None":
        return None
    if literal == "True":
        return "sa.true()"
    if literal == "False":
        return "sa.false()"
    if literal.startswith('"'):
        return literal
    return f"sa.text({py_string(literal)})"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def name_format(field: FieldSpec) -> Optional[str]:
    """``email`` or ``url`` when the field name implies a text format."""
    if cast_category(field) in _STRUCTURED_CASTS:
        return None
    if "email" in field.name or field.effective_type == "email":
        return "email"
    if "url" in field.name or "website" in field.name:
        return "url"
    return None


def validation_annotation(field: FieldSpec) -> str:
    """Pydantic annotation of a request field (without ``Optional``)."""
    if name_format(field) is not None:
        return "str"
    return python_type(field)


def validation_constraints(field: FieldSpec) -> List[str]:
    """Extra ``Field(...)`` keyword arguments for a request field."""
    constraints: List[str] = []
    fmt: Optional[str] = name_format(field)
    kind: str = field.effective_type
    if fmt is not None or kind in ("string", "char", "email", "uuid"):
        if kind == "uuid":
            constraints.append("max_length=36")
        else:
            max_length: int = field.length or (1 if kind == "char" else DEFAULT_STRING_LENGTH)
            constraints.append(f"max_length={max_length}")
    if fmt == "email":
        constraints.append("pattern=EMAIL_PATTERN")
    elif fmt == "url":
        constraints.append("pattern=URL_PATTERN")
    if field.foreign is not None and cast_category(field) == "integer":
        constraints.append("ge=1")
    return constraints


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


def filter_coercion(field: FieldSpec) -> Optional[str]:
    """
    Format string that converts a raw query parameter for exact filters.

    ``None`` means the field cannot be filtered by equality (json/array).
    """
    cast: Optional[str] = cast_category(field)
    if cast == "array":
        return None
    if cast == "integer":
        return "int({})"
    if cast == "float":
        return "float({})"
    if cast == "boolean":
        return "_as_bool({})"
    if cast == "date":
        return "date.fromisoformat(str({}))"
    if cast == "datetime":
        return "datetime.fromisoformat(str({}))"
    return "{}"


# ---------------------------------------------------------------------------
# Samples
# ---------------------------------------------------------------------------


def sample_value(field: FieldSpec) -> str:
    """
    factory_boy declaration for *field* (foreign sub-factories excluded).

    Name heuristics come first, restricted to the cast categories they
    fit; the type table is the fallback.
    """
    cast: Optional[str] = cast_category(field)
    for needles, declaration, suffix_only, casts in _NAME_SAMPLES:
        if cast not in casts:
            continue
        if suffix_only:
            if any(field.name.endswith(n) for n in needles):
                return declaration
        elif any(n in field.name for n in needles):
            return declaration
    return type_info(field).sample


__all__: List[str] = [
    "TypeInfo",
    "TYPE_TABLE",
    "EMAIL_PATTERN",
    "URL_PATTERN",
    "DEFAULT_STRING_LENGTH",
    "DEFAULT_DECIMAL_PRECISION",
    "type_info",
    "cast_category",
    "is_searchable",
    "python_type",
    "python_type_imports",
    "storage_type",
    "storage_import",
    "python_default",
    "server_default",
    "name_format",
    "validation_annotation",
    "validation_constraints",
    "filter_coercion",
    "sample_value",
]
