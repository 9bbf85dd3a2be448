"""
tests/test_parser.py
Unit tests for crudsmith.parser.

Tests cover:
- Clause grammar (name, type, flag and argument modifiers)
- Type aliases and the default type
- Tolerance: blank clauses, unknown modifiers, malformed names
- Duplicate handling (first clause wins)
- Foreign-key inference from names and the foreign_id type
- Rendering fields back into the field spec
"""

from __future__ import annotations

from typing import List

import pytest

from crudsmith.models import FieldSpec, ForeignRef
from crudsmith.parser import (
    DEFAULT_TYPE,
    fields_to_spec,
    infer_foreign,
    parse_clause,
    parse_fields,
)


# ===========================================================================
# Tests for parse_clause
# ===========================================================================


class TestParseClause:
    """Single clause grammar."""

    def test_name_only_defaults_to_string(self) -> None:
        field = parse_clause("title")
        assert field is not None
        assert field.type == DEFAULT_TYPE == "string"

    def test_empty_type_segment_defaults_to_string(self) -> None:
        field = parse_clause("title::unique")
        assert field is not None
        assert field.type == "string"
        assert field.unique is True

    def test_flag_modifiers(self) -> None:
        field = parse_clause("code:string:nullable:unique:index")
        assert field is not None
        assert field.nullable and field.unique and field.indexed

    def test_length_modifier(self) -> None:
        field = parse_clause("name:string:length(100)")
        assert field is not None
        assert field.length == 100

    def test_precision_modifier(self) -> None:
        field = parse_clause("price:decimal:precision(8)")
        assert field is not None
        assert field.type == "decimal"
        assert field.precision == 8

    @pytest.mark.parametrize("clause,attr", [
        ("title:string:length(0):unique", "length"),
        ("price:decimal:precision(0):unique", "precision"),
    ])
    def test_zero_size_drops_only_the_modifier(self, clause: str, attr: str) -> None:
        field = parse_clause(clause)
        assert field is not None
        assert getattr(field, attr) is None
        assert field.unique is True

    def test_zero_length_keeps_the_field_in_the_list(self) -> None:
        fields = parse_fields("title:string:length(0),body:text")
        assert [f.name for f in fields] == ["title", "body"]
        assert fields[0].length is None

    def test_default_modifier_keeps_raw_literal(self) -> None:
        field = parse_clause("status:string:default(draft)")
        assert field is not None
        assert field.default == "draft"

    def test_whitespace_is_trimmed(self) -> None:
        field = parse_clause("  body : text : nullable ")
        assert field is not None
        assert field.name == "body"
        assert field.type == "text"
        assert field.nullable is True

    def test_type_alias_is_normalised(self) -> None:
        field = parse_clause("active:bool")
        assert field is not None
        assert field.type == "boolean"

    def test_camel_case_type_is_normalised(self) -> None:
        field = parse_clause("category_id:foreignId")
        assert field is not None
        assert field.type == "foreign_id"

    def test_unknown_type_is_kept_but_reads_as_string(self) -> None:
        field = parse_clause("colour:rgb")
        assert field is not None
        assert field.type == "rgb"
        assert field.effective_type == "string"

    def test_unknown_modifier_is_ignored(self) -> None:
        field = parse_clause("title:string:sparkly:unique")
        assert field is not None
        assert field.unique is True

    def test_blank_clause_yields_none(self) -> None:
        assert parse_clause("   ") is None
        assert parse_clause(":string") is None

    def test_invalid_identifier_yields_none(self) -> None:
        assert parse_clause("1st_place:string") is None
        assert parse_clause("first-name:string") is None


# ===========================================================================
# Tests for parse_fields
# ===========================================================================


class TestParseFields:
    """Whole spec strings."""

    def test_none_and_empty_give_no_fields(self) -> None:
        assert parse_fields(None) == []
        assert parse_fields("") == []
        assert parse_fields("   ") == []

    def test_clause_order_is_preserved(self) -> None:
        fields = parse_fields("title:string:unique, body:text, views:integer")
        assert [f.name for f in fields] == ["title", "body", "views"]

    def test_blank_clauses_are_dropped(self) -> None:
        fields = parse_fields(",, ,title,,")
        assert [f.name for f in fields] == ["title"]

    def test_first_duplicate_wins(self) -> None:
        fields = parse_fields("a:string,a:integer")
        assert len(fields) == 1
        assert fields[0].name == "a"
        assert fields[0].type == "string"

    def test_parse_is_deterministic(self) -> None:
        spec = "title:string:unique,price:decimal:precision(8),author_id:integer"
        assert parse_fields(spec) == parse_fields(spec)

    def test_malformed_clause_does_not_stop_the_rest(self) -> None:
        fields = parse_fields("title,9lives:integer,body:text")
        assert [f.name for f in fields] == ["title", "body"]


# ===========================================================================
# Tests for foreign-key inference
# ===========================================================================


class TestForeignInference:
    """Foreign references implied by names and types."""

    def test_id_suffix_on_integer(self) -> None:
        field = parse_fields("author_id:integer")[0]
        assert field.foreign == ForeignRef(related_entity="Author", related_table="authors")

    def test_irregular_plural_table(self) -> None:
        ref = infer_foreign("category_id", "integer")
        assert ref is not None
        assert ref.related_entity == "Category"
        assert ref.related_table == "categories"

    def test_compound_name(self) -> None:
        ref = infer_foreign("blog_post_id", "integer")
        assert ref is not None
        assert ref.related_entity == "BlogPost"
        assert ref.related_table == "blog_posts"

    def test_foreign_id_type_without_suffix(self) -> None:
        ref = infer_foreign("owner", "foreign_id")
        assert ref is not None
        assert ref.related_entity == "Owner"
        assert ref.related_table == "owners"

    @pytest.mark.parametrize("name,type_tag", [
        ("id", "integer"),
        ("title", "string"),
        ("_id", "integer"),
    ])
    def test_no_reference(self, name: str, type_tag: str) -> None:
        assert infer_foreign(name, type_tag) is None


# ===========================================================================
# Tests for fields_to_spec
# ===========================================================================


class TestFieldsToSpec:
    """Rendering back into the field spec."""

    def test_renders_modifiers(self) -> None:
        fields: List[FieldSpec] = [
            FieldSpec(name="title", type="string", unique=True, length=120),
            FieldSpec(name="price", type="decimal", nullable=True, precision=8),
        ]
        assert fields_to_spec(fields) == (
            "title:string:unique:length(120),price:decimal:nullable:precision(8)"
        )

    def test_reparse_gives_back_the_same_fields(self) -> None:
        spec = (
            "title:string:unique:index,body:text:nullable,"
            "status:string:default(draft),author_id:integer,owner:foreign_id"
        )
        fields = parse_fields(spec)
        assert parse_fields(fields_to_spec(fields)) == fields
