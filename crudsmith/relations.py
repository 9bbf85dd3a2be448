# File: crudsmith/relations.py
"""
crudsmith - Relation Inference
===============================
Wires ``belongs_to`` relations from foreign-key fields, detects pivot
tables across a whole batch of extracted tables, and names the attribute
each relation is exposed under.

``relation_accessor`` is the one naming rule for relation attributes.
The entity, transformer and factory generators all go through it, so a
relation is reachable under the same name in every artifact.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set

from crudsmith.models import ExtractedTable, FieldSpec, RelationHint, RelationType
from crudsmith.utils import to_plural, to_snake_case

logger: logging.Logger = logging.getLogger("crudsmith.relations")

_FOREIGN_SUFFIX: str = "_id"


# ---------------------------------------------------------------------------
# Dedup helper
# ---------------------------------------------------------------------------


def dedupe_hints(hints: Iterable[RelationHint]) -> List[RelationHint]:
    """Drop hints equal by value to an earlier one, keeping order."""
    seen: Set[RelationHint] = set()
    unique: List[RelationHint] = []
    for hint in hints:
        if hint in seen:
            continue
        seen.add(hint)
        unique.append(hint)
    return unique


# ---------------------------------------------------------------------------
# Field-derived relations
# ---------------------------------------------------------------------------


def hint_for_field(field: FieldSpec) -> Optional[RelationHint]:
    """``belongs_to`` hint for a foreign-key field, ``None`` otherwise."""
    if field.foreign is None:
        return None
    return RelationHint(
        type=RelationType.BELONGS_TO,
        related=field.foreign.related_entity,
        foreign_key=field.name,
    )


def build_relations(
    fields: Sequence[FieldSpec],
    extra_hints: Optional[Sequence[RelationHint]] = None,
) -> List[RelationHint]:
    """
    Relations of one entity.

    Field-derived ``belongs_to`` hints come first, followed by the
    explicitly supplied *extra_hints*. The merged list is deduplicated by
    value, so a hint supplied both ways appears once.
    """
    derived: List[RelationHint] = []
    for field in fields:
        hint: Optional[RelationHint] = hint_for_field(field)
        if hint is not None:
            derived.append(hint)

    merged: List[RelationHint] = dedupe_hints([*derived, *(extra_hints or [])])
    logger.debug(
        "Built %d relation(s): %d from fields, %d supplied.",
        len(merged),
        len(derived),
        len(extra_hints or []),
    )
    return merged


# ---------------------------------------------------------------------------
# Pivot detection
# ---------------------------------------------------------------------------


def is_pivot(table: ExtractedTable) -> bool:
    """A pivot links two entities and carries nothing else."""
    return len(table.relations) == 2 and len(table.fields) == 2


def infer_pivots(tables: Sequence[ExtractedTable]) -> Dict[str, List[RelationHint]]:
    """
    ``belongs_to_many`` hints implied by the pivot tables of a batch.

    Needs every table of the batch at once: a pivot's two sides may come
    from scripts processed before or after the pivot itself.

    Returns:
        Mapping of entity name → hints to add to that entity, one pair of
        reciprocal hints per pivot.

    Examples:
        Tables ``post_tag (post_id, tag_id)`` gives
        ``{"Post": [Post → Tag via post_tag], "Tag": [Tag → Post via post_tag]}``.
    """
    pivots: Dict[str, List[RelationHint]] = {}
    for table in tables:
        if not is_pivot(table):
            continue
        left: str = table.relations[0].related
        right: str = table.relations[1].related
        pivots.setdefault(left, []).append(
            RelationHint(
                type=RelationType.BELONGS_TO_MANY,
                related=right,
                through=table.table,
            )
        )
        pivots.setdefault(right, []).append(
            RelationHint(
                type=RelationType.BELONGS_TO_MANY,
                related=left,
                through=table.table,
            )
        )
        logger.info("Pivot table '%s' links %s and %s.", table.table, left, right)

    return {entity: dedupe_hints(hints) for entity, hints in pivots.items()}


# ---------------------------------------------------------------------------
# Accessor naming
# ---------------------------------------------------------------------------


def relation_accessor(hint: RelationHint) -> str:
    """
    Attribute name a relation is exposed under.

    Examples:
        belongs_to on ``author_id``      → ``author``
        belongs_to on ``owner``          → ``owner_ref``
        belongs_to_many to ``Tag``       → ``tags``
    """
    if hint.type == RelationType.BELONGS_TO_MANY:
        return to_snake_case(to_plural(hint.related))
    column: str = hint.foreign_key or to_snake_case(hint.related) + _FOREIGN_SUFFIX
    if column.endswith(_FOREIGN_SUFFIX) and len(column) > len(_FOREIGN_SUFFIX):
        return column[: -len(_FOREIGN_SUFFIX)]
    return f"{column}_ref"


def resolve_accessors(
    hints: Sequence[RelationHint],
    reserved: Iterable[str] = (),
) -> Dict[str, RelationHint]:
    """
    Accessor → hint, in hint order.

    A hint whose accessor is already taken (by an earlier hint or by a
    name in *reserved*, usually the column names) is dropped.
    """
    taken: Set[str] = set(reserved)
    accessors: Dict[str, RelationHint] = {}
    for hint in hints:
        name: str = relation_accessor(hint)
        if name in taken:
            logger.debug("Dropping relation %r: accessor '%s' already taken.", hint, name)
            continue
        taken.add(name)
        accessors[name] = hint
    return accessors


__all__: List[str] = [
    "dedupe_hints",
    "hint_for_field",
    "build_relations",
    "is_pivot",
    "infer_pivots",
    "relation_accessor",
    "resolve_accessors",
]
