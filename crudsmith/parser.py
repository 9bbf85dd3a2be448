# File: crudsmith/parser.py
"""
crudsmith - Field Spec Parser
==============================
Turns a compact field spec into an ordered list of ``FieldSpec``.

Grammar::

    spec     := clause ("," clause)*
    clause   := name [":" type [":" modifier]*]
    modifier := "nullable" | "unique" | "index"
              | "default(" literal ")" | "length(" int ")" | "precision(" int ")"

The parser is tolerant: blank clauses and unknown modifiers are dropped,
never reported as errors. It is also pure, so the same input always gives
the same list.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Sequence, Set

from pydantic import ValidationError

from crudsmith.models import FieldSpec, ForeignRef, normalize_type
from crudsmith.utils import to_pascal_case, to_plural, to_singular, to_snake_case

logger: logging.Logger = logging.getLogger("crudsmith.parser")

DEFAULT_TYPE: str = "string"
FOREIGN_SUFFIX: str = "_id"
FOREIGN_TYPE: str = "foreign_id"

_FLAG_MODIFIERS: Dict[str, str] = {
    "nullable": "nullable",
    "unique": "unique",
    "index": "indexed",
}

_DEFAULT_RE: re.Pattern[str] = re.compile(r"default\((.*?)\)")
_LENGTH_RE: re.Pattern[str] = re.compile(r"length\((\d+)\)")
_PRECISION_RE: re.Pattern[str] = re.compile(r"precision\((\d+)\)")


def infer_foreign(name: str, type_tag: str) -> Optional[ForeignRef]:
    """
    Foreign-key target implied by a field's name and type.

    A field references another entity when its type is ``foreign_id`` or
    its name ends with ``_id`` (``id`` itself never does).

    Examples:
        >>> infer_foreign("author_id", "integer")
        <ForeignRef Author (authors)>
    """
    is_reference_type: bool = normalize_type(type_tag) == FOREIGN_TYPE
    has_suffix: bool = name.endswith(FOREIGN_SUFFIX) and name != "id"
    if not (is_reference_type or has_suffix):
        return None

    stem: str = name[: -len(FOREIGN_SUFFIX)] if has_suffix else name
    stem = stem.strip("_")
    if not stem:
        return None
    entity: str = to_pascal_case(to_singular(to_snake_case(stem)))
    table: str = to_snake_case(to_plural(entity))
    return ForeignRef(related_entity=entity, related_table=table)


def _first_match(pattern: re.Pattern[str], modifiers: Sequence[str]) -> Optional[str]:
    """Capture group of the first modifier matching *pattern*."""
    for token in modifiers:
        match: Optional[re.Match[str]] = pattern.search(token)
        if match:
            return match.group(1)
    return None


def _size(raw: Optional[str], modifier: str, name: str) -> Optional[int]:
    """Integer argument of a size modifier; zero drops the modifier only."""
    if raw is None:
        return None
    value: int = int(raw)
    if value < 1:
        logger.debug("Ignoring %s(%d) on field '%s'.", modifier, value, name)
        return None
    return value


def parse_clause(clause: str) -> Optional[FieldSpec]:
    """
    Parse one ``name[:type[:modifier]*]`` clause.

    Returns ``None`` for clauses without a usable name.
    """
    parts: List[str] = [segment.strip() for segment in clause.strip().split(":")]
    name: str = parts[0] if parts else ""
    if not name:
        return None

    type_tag: str = parts[1] if len(parts) > 1 and parts[1] else DEFAULT_TYPE
    modifiers: List[str] = parts[2:]

    flags: Dict[str, bool] = {attr: False for attr in _FLAG_MODIFIERS.values()}
    for token in modifiers:
        attr: Optional[str] = _FLAG_MODIFIERS.get(token)
        if attr is not None:
            flags[attr] = True
        elif not (
            _DEFAULT_RE.search(token)
            or _LENGTH_RE.search(token)
            or _PRECISION_RE.search(token)
        ):
            logger.debug("Ignoring unknown modifier '%s' on field '%s'.", token, name)

    length: Optional[int] = _size(_first_match(_LENGTH_RE, modifiers), "length", name)
    precision: Optional[int] = _size(
        _first_match(_PRECISION_RE, modifiers), "precision", name
    )

    try:
        return FieldSpec(
            name=name,
            type=type_tag,
            length=length,
            precision=precision,
            default=_first_match(_DEFAULT_RE, modifiers),
            foreign=infer_foreign(name, type_tag),
            **flags,
        )
    except ValidationError as exc:
        logger.debug("Ignoring malformed clause '%s': %s", clause, exc.errors()[0]["msg"])
        return None


def parse_fields(spec: Optional[str]) -> List[FieldSpec]:
    """
    Parse a full field spec string.

    Clause order is kept. When a name repeats, the first clause wins and
    the later ones are dropped.

    Examples:
        >>> [f.name for f in parse_fields("title:string:unique, body:text")]
        ['title', 'body']
        >>> parse_fields("a:string,a:integer")[0].type
        'string'
    """
    if spec is None or not spec.strip():
        return []

    fields: List[FieldSpec] = []
    seen: Set[str] = set()
    for clause in spec.split(","):
        field: Optional[FieldSpec] = parse_clause(clause)
        if field is None:
            continue
        if field.name in seen:
            logger.debug("Dropping duplicate field '%s'.", field.name)
            continue
        seen.add(field.name)
        fields.append(field)

    logger.info("Parsed %d field(s) from spec.", len(fields))
    return fields


def fields_to_spec(fields: Sequence[FieldSpec]) -> str:
    """
    Render fields back into the DSL.

    ``parse_fields(fields_to_spec(fields))`` gives back the same fields for
    any list the parser can produce.
    """
    clauses: List[str] = []
    for field in fields:
        segments: List[str] = [field.name, field.type]
        if field.nullable:
            segments.append("nullable")
        if field.unique:
            segments.append("unique")
        if field.indexed:
            segments.append("index")
        if field.default is not None:
            segments.append(f"default({field.default})")
        if field.length is not None:
            segments.append(f"length({field.length})")
        if field.precision is not None:
            segments.append(f"precision({field.precision})")
        clauses.append(":".join(segments))
    return ",".join(clauses)


__all__: List[str] = [
    "DEFAULT_TYPE",
    "infer_foreign",
    "parse_clause",
    "parse_fields",
    "fields_to_spec",
]
