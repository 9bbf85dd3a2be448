# File: crudsmith/naming.py
"""
crudsmith - Naming Deriver
===========================
Computes every lexical form of an entity name once per run.

All generators receive the resulting ``EntityNaming`` instance; none of
them re-derive names on their own.
"""

from __future__ import annotations

import functools
import logging
from typing import Optional

from crudsmith.models import EntityNaming
from crudsmith.utils import (
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_plural,
    to_singular,
    to_snake_case,
    to_title_human,
)

logger: logging.Logger = logging.getLogger("crudsmith.naming")


@functools.lru_cache(maxsize=256)
def derive_naming(raw_name: str, table: Optional[str] = None) -> EntityNaming:
    """
    Derive the naming bundle for *raw_name*.

    The input may be snake, kebab, camel or Pascal case, singular or
    plural: ``blog_posts``, ``blog-post`` and ``BlogPost`` all yield the
    base ``BlogPost``.

    *table* overrides the database table name when it does not follow
    the snake-plural convention (tables read back from migrations).

    Raises:
        ValueError: If *raw_name* contains no word characters.
    """
    if raw_name is None or not to_snake_case(raw_name):
        raise ValueError("Entity name must contain at least one letter or digit.")

    snake_input: str = to_snake_case(raw_name)
    snake: str = to_singular(snake_input)
    snake_plural: str = to_plural(snake)
    base: str = to_pascal_case(snake)
    plural: str = to_pascal_case(snake_plural)

    naming: EntityNaming = EntityNaming(
        base=base,
        plural=plural,
        snake=snake,
        snake_plural=snake_plural,
        camel=to_camel_case(snake),
        camel_plural=to_camel_case(snake_plural),
        kebab_plural=to_kebab_case(snake_plural),
        title_plural=to_title_human(snake_plural),
        table=table or snake_plural,
    )
    logger.debug("Derived naming for '%s': %r", raw_name, naming)
    return naming


def entity_for_table(table: str) -> str:
    """Pascal singular entity name for a snake plural table (``blog_posts`` → ``BlogPost``)."""
    return derive_naming(table).base


def table_for_entity(entity: str) -> str:
    """Snake plural table name for an entity (``Category`` → ``categories``)."""
    return derive_naming(entity).snake_plural


__all__ = ["derive_naming", "entity_for_table", "table_for_entity"]
