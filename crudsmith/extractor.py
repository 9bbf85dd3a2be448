# File: crudsmith/extractor.py
"""
crudsmith - Schema Script Extractor
====================================
Recovers a table's fields and ``belongs_to`` relations from an Alembic
schema script, by pattern matching on its text.

Scripts are read, never imported or executed. Recognised call shapes:

    op.create_table("<table>", ...)                  first call only
    sa.Column("<name>", sa.<Type>(<args>), ...)     one column per line
    sa.ForeignKey("<table>.<column>")                column-level link
    sa.ForeignKeyConstraint(["<col>"], ["<table>.<col>"])
    sa.UniqueConstraint("<col>")                     single column
    op.create_index(<name>, "<table>", ["<col>"], unique=...)

Anything else in the script is ignored. The extractor is best effort: a
script it does not understand yields ``None``, never an exception.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from pydantic import ValidationError

from crudsmith.models import (
    AUTO_COLUMNS,
    DEFAULT_IGNORE_TABLES,
    ExtractedTable,
    FieldSpec,
    ForeignRef,
    RelationHint,
    RelationType,
)
from crudsmith.naming import entity_for_table
from crudsmith.parser import FOREIGN_SUFFIX, FOREIGN_TYPE, infer_foreign

logger: logging.Logger = logging.getLogger("crudsmith.extractor")

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_TABLE_RE: re.Pattern[str] = re.compile(r"op\.create_table\(\s*[\"'](\w+)[\"']")
_NEXT_OP_RE: re.Pattern[str] = re.compile(r"^\s*op\.", re.MULTILINE)
_COLUMN_RE: re.Pattern[str] = re.compile(
    r"sa\.Column\(\s*[\"'](\w+)[\"']\s*,\s*(?:\w+\.)?(\w+)(?:\(([^)]*)\))?([^\n]*)"
)
_COLUMN_FK_RE: re.Pattern[str] = re.compile(r"sa\.ForeignKey\(\s*[\"'](\w+)\.(\w+)[\"']")
_TABLE_FK_RE: re.Pattern[str] = re.compile(
    r"sa\.ForeignKeyConstraint\(\s*\[\s*[\"'](\w+)[\"']\s*\]\s*,"
    r"\s*\[\s*[\"'](\w+)\.(\w+)[\"']"
)
_UNIQUE_CONSTRAINT_RE: re.Pattern[str] = re.compile(
    r"sa\.UniqueConstraint\(\s*[\"'](\w+)[\"']\s*(?:,\s*name=[^)]*)?\)"
)
_CREATE_INDEX_RE: re.Pattern[str] = re.compile(
    r"op\.create_index\(\s*[^,]+,\s*[\"'](\w+)[\"']\s*,"
    r"\s*\[\s*[\"'](\w+)[\"']\s*\]([^)]*)\)"
)
_DEFAULT_RE: re.Pattern[str] = re.compile(
    r"default=(?:(?:sa\.)?text\(\s*[\"']([^\"']*)[\"']\s*\)"
    r"|sa\.(true|false)\(\)"
    r"|[\"']([^\"']*)[\"']"
    r"|([\w.\-]+))"
)
_FIRST_INT_RE: re.Pattern[str] = re.compile(r"(?:length=|precision=)?(\d+)")

# SQLAlchemy type name → canonical tag. Anything missing reads as string.
SQLALCHEMY_TYPES: Dict[str, str] = {
    "Integer": "integer",
    "INTEGER": "integer",
    "BigInteger": "big_integer",
    "BIGINT": "big_integer",
    "SmallInteger": "small_integer",
    "SMALLINT": "small_integer",
    "String": "string",
    "Unicode": "string",
    "VARCHAR": "string",
    "CHAR": "char",
    "Text": "text",
    "UnicodeText": "text",
    "TEXT": "text",
    "Boolean": "boolean",
    "BOOLEAN": "boolean",
    "Numeric": "decimal",
    "NUMERIC": "decimal",
    "DECIMAL": "decimal",
    "Float": "float",
    "FLOAT": "float",
    "Double": "float",
    "DOUBLE_PRECISION": "float",
    "Date": "date",
    "DATE": "date",
    "DateTime": "datetime",
    "DATETIME": "datetime",
    "TIMESTAMP": "datetime",
    "Time": "time",
    "TIME": "time",
    "JSON": "json",
    "JSONB": "json",
    "ARRAY": "array",
    "Uuid": "uuid",
    "UUID": "uuid",
}

_INTEGER_TAGS: Set[str] = {"integer", "big_integer", "small_integer"}
_LENGTH_TAGS: Set[str] = {"string", "char"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _table_body(script: str, start: int) -> str:
    """Text of the create_table call: up to the next top-level ``op.`` call."""
    following: Optional[re.Match[str]] = _NEXT_OP_RE.search(script, start)
    return script[start: following.start()] if following else script[start:]


def _default_literal(extra: str) -> Optional[str]:
    """Literal of ``server_default=``/``default=`` with wrappers stripped."""
    match: Optional[re.Match[str]] = _DEFAULT_RE.search(extra)
    if not match:
        return None
    for group in match.groups():
        if group is not None:
            return group
    return None


def _sized(type_tag: str, type_args: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    """(length, precision) carried by the type's arguments."""
    if not type_args:
        return None, None
    match: Optional[re.Match[str]] = _FIRST_INT_RE.search(type_args)
    if not match:
        return None, None
    size: int = int(match.group(1))
    if size < 1:
        return None, None
    if type_tag in _LENGTH_TAGS:
        return size, None
    if type_tag == "decimal":
        return None, size
    return None, None


def _table_links(body: str) -> Dict[str, str]:
    """Column → referenced table, from table-level constraints."""
    return {
        match.group(1): match.group(2)
        for match in _TABLE_FK_RE.finditer(body)
    }


def _index_flags(script: str, table: str) -> Dict[str, bool]:
    """Column → unique flag, from single-column ``op.create_index`` calls."""
    flags: Dict[str, bool] = {}
    for match in _CREATE_INDEX_RE.finditer(script):
        if match.group(1) != table:
            continue
        flags[match.group(2)] = "unique=True" in match.group(3)
    return flags


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract(
    script: str,
    ignore_tables: Iterable[str] = DEFAULT_IGNORE_TABLES,
    source_file: Optional[str] = None,
) -> Optional[ExtractedTable]:
    """
    Extract the table created by one Alembic script.

    Returns ``None`` when the script creates no table, the table is in
    *ignore_tables*, or no column besides the automatic ones survives.

    Examples:
        >>> table = extract(
        ...     'op.create_table("posts",\\n'
        ...     '    sa.Column("id", sa.Integer(), nullable=False),\\n'
        ...     '    sa.Column("author_id", sa.Integer(), sa.ForeignKey("authors.id")),\\n'
        ...     ')'
        ... )
        >>> table.fields[0].type, table.relations[0].related
        ('foreign_id', 'Author')
    """
    table_match: Optional[re.Match[str]] = _TABLE_RE.search(script)
    if not table_match:
        logger.debug("No create_table call in %s.", source_file or "<script>")
        return None

    table: str = table_match.group(1)
    if table in set(ignore_tables):
        logger.info("Ignoring system table '%s'.", table)
        return None

    body: str = _table_body(script, table_match.end())
    table_links: Dict[str, str] = _table_links(body)
    unique_columns: Set[str] = {m.group(1) for m in _UNIQUE_CONSTRAINT_RE.finditer(body)}
    index_flags: Dict[str, bool] = _index_flags(script, table)

    fields: List[FieldSpec] = []
    relations: List[RelationHint] = []
    seen_names: Set[str] = set()

    for match in _COLUMN_RE.finditer(body):
        name: str = match.group(1)
        if name in AUTO_COLUMNS or name in seen_names:
            continue

        sa_type: str = match.group(2)
        type_tag: str = SQLALCHEMY_TYPES.get(sa_type, "string")
        extra: str = match.group(4) or ""
        length, precision = _sized(type_tag, match.group(3))

        fk_match: Optional[re.Match[str]] = _COLUMN_FK_RE.search(extra)
        linked_table: Optional[str] = fk_match.group(1) if fk_match else table_links.get(name)
        if linked_table and type_tag in _INTEGER_TAGS:
            type_tag = FOREIGN_TYPE

        foreign: Optional[ForeignRef] = None
        if (type_tag == FOREIGN_TYPE and linked_table) or name.endswith(FOREIGN_SUFFIX):
            if linked_table:
                foreign = ForeignRef(
                    related_entity=entity_for_table(linked_table),
                    related_table=linked_table,
                )
            else:
                foreign = infer_foreign(name, type_tag)

        try:
            field: FieldSpec = FieldSpec(
                name=name,
                type=type_tag,
                nullable="nullable=True" in extra,
                unique="unique=True" in extra
                or name in unique_columns
                or index_flags.get(name, False),
                indexed="index=True" in extra or name in index_flags,
                length=length,
                precision=precision,
                default=_default_literal(extra),
                foreign=foreign,
            )
        except ValidationError as exc:
            logger.debug("Skipping column '%s' of '%s': %s", name, table, exc.errors()[0]["msg"])
            continue

        seen_names.add(name)
        fields.append(field)
        if foreign is not None:
            hint: RelationHint = RelationHint(
                type=RelationType.BELONGS_TO,
                related=foreign.related_entity,
                foreign_key=name,
            )
            if hint not in relations:
                relations.append(hint)

    if not fields:
        logger.info("Table '%s' has no usable columns; skipped.", table)
        return None

    extracted: ExtractedTable = ExtractedTable(
        table=table,
        entity=entity_for_table(table),
        fields=fields,
        relations=relations,
        source_file=source_file,
    )
    logger.info(
        "Extracted '%s': %d field(s), %d relation(s).",
        table,
        len(fields),
        len(relations),
    )
    return extracted


def extract_file(
    path: Path,
    ignore_tables: Iterable[str] = DEFAULT_IGNORE_TABLES,
) -> Optional[ExtractedTable]:
    """Read *path* and extract it; unreadable files yield ``None``."""
    try:
        script: str = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read migration script %s: %s", path, exc)
        return None
    return extract(script, ignore_tables, source_file=str(path))


def discover_scripts(directory: Path) -> List[Path]:
    """Migration scripts in *directory*, sorted by file name."""
    return sorted(
        (p for p in directory.glob("*.py") if p.is_file() and not p.name.startswith("__")),
        key=lambda p: p.name,
    )


__all__: List[str] = [
    "SQLALCHEMY_TYPES",
    "extract",
    "extract_file",
    "discover_scripts",
]
