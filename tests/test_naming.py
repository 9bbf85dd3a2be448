"""
tests/test_naming.py
Unit tests for crudsmith.naming and the string helpers in crudsmith.utils.

Tests cover:
- Case conversion (snake, Pascal, camel, kebab, title)
- English inflection (regular, irregular, uncountable, compound names)
- The EntityNaming bundle for every accepted input casing
- Table-name override for tables read back from migrations
- Import block rendering, line counting and the Timer
"""

from __future__ import annotations

import pytest

from crudsmith.naming import derive_naming, entity_for_table, table_for_entity
from crudsmith.utils import (
    Timer,
    build_import_block,
    count_lines,
    is_identifier,
    merge_import_dicts,
    pluralize_word,
    py_string,
    singularize_word,
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_plural,
    to_singular,
    to_snake_case,
    to_title_human,
)


# ===========================================================================
# Tests for case conversion
# ===========================================================================


class TestCaseConversion:
    """String casing helpers."""

    @pytest.mark.parametrize("raw,expected", [
        ("BlogPost", "blog_post"),
        ("getHTTPResponse", "get_http_response"),
        ("already_snake", "already_snake"),
        ("blog-post", "blog_post"),
        ("  Blog Post ", "blog_post"),
        ("", ""),
    ])
    def test_to_snake_case(self, raw: str, expected: str) -> None:
        assert to_snake_case(raw) == expected

    def test_to_pascal_case(self) -> None:
        assert to_pascal_case("blog_post") == "BlogPost"
        assert to_pascal_case("blog-post") == "BlogPost"

    def test_to_camel_case(self) -> None:
        assert to_camel_case("blog_post") == "blogPost"
        assert to_camel_case("HTTPResponse") == "httpResponse"

    def test_to_kebab_and_title(self) -> None:
        assert to_kebab_case("blog_posts") == "blog-posts"
        assert to_title_human("blog_posts") == "Blog Posts"

    def test_is_identifier(self) -> None:
        assert is_identifier("author_id")
        assert not is_identifier("9lives")
        assert not is_identifier("first-name")


# ===========================================================================
# Tests for inflection
# ===========================================================================


class TestInflection:
    """Pluralisation and singularisation."""

    @pytest.mark.parametrize("singular,plural", [
        ("post", "posts"),
        ("category", "categories"),
        ("box", "boxes"),
        ("day", "days"),
        ("person", "people"),
        ("child", "children"),
        ("status", "statuses"),
    ])
    def test_word_pairs(self, singular: str, plural: str) -> None:
        assert pluralize_word(singular) == plural
        assert singularize_word(plural) == singular

    def test_uncountables_are_unchanged(self) -> None:
        assert pluralize_word("news") == "news"
        assert singularize_word("news") == "news"

    def test_case_is_carried_over(self) -> None:
        assert pluralize_word("Child") == "Children"
        assert to_singular("People") == "Person"

    def test_already_plural_stays_plural(self) -> None:
        assert pluralize_word("people") == "people"

    def test_words_ending_in_ss_stay_singular(self) -> None:
        assert singularize_word("class") == "class"

    def test_compound_names_inflect_last_word(self) -> None:
        assert to_plural("product_category") == "product_categories"
        assert to_plural("BlogPost") == "BlogPosts"
        assert to_singular("blog_posts") == "blog_post"


# ===========================================================================
# Tests for derive_naming
# ===========================================================================


class TestDeriveNaming:
    """The EntityNaming bundle."""

    def test_full_bundle(self) -> None:
        naming = derive_naming("BlogPost")
        assert naming.base == "BlogPost"
        assert naming.plural == "BlogPosts"
        assert naming.snake == "blog_post"
        assert naming.snake_plural == "blog_posts"
        assert naming.camel == "blogPost"
        assert naming.camel_plural == "blogPosts"
        assert naming.kebab_plural == "blog-posts"
        assert naming.title_plural == "Blog Posts"
        assert naming.table == "blog_posts"

    @pytest.mark.parametrize("raw", ["BlogPost", "blog_post", "blog_posts", "blog-post", "blogPosts"])
    def test_every_casing_gives_the_same_base(self, raw: str) -> None:
        assert derive_naming(raw).base == "BlogPost"
        assert derive_naming(raw).table == "blog_posts"

    def test_irregular_plural(self) -> None:
        naming = derive_naming("Person")
        assert naming.plural == "People"
        assert naming.snake_plural == "people"

    def test_table_override(self) -> None:
        naming = derive_naming("post_tag", table="post_tag")
        assert naming.base == "PostTag"
        assert naming.snake_plural == "post_tags"
        assert naming.table == "post_tag"

    def test_result_is_cached(self) -> None:
        assert derive_naming("Invoice") is derive_naming("Invoice")

    @pytest.mark.parametrize("raw", ["", "   ", "---"])
    def test_blank_name_raises(self, raw: str) -> None:
        with pytest.raises(ValueError):
            derive_naming(raw)

    def test_table_helpers(self) -> None:
        assert entity_for_table("blog_posts") == "BlogPost"
        assert entity_for_table("categories") == "Category"
        assert table_for_entity("Category") == "categories"


# ===========================================================================
# Tests for formatting helpers
# ===========================================================================


class TestFormattingHelpers:
    """Import blocks, literals, metrics."""

    def test_import_block_is_sorted(self) -> None:
        block = build_import_block({
            "typing": {"Optional", "List"},
            "datetime": {"datetime"},
            "uuid": set(),
        })
        assert block == (
            "import uuid\n"
            "from datetime import datetime\n"
            "from typing import List, Optional"
        )

    def test_merge_import_dicts(self) -> None:
        merged = merge_import_dicts({"typing": {"Any"}}, {"typing": {"Dict"}, "uuid": set()})
        assert merged == {"typing": {"Any", "Dict"}, "uuid": set()}

    def test_py_string_escapes(self) -> None:
        assert py_string('say "hi"') == '"say \\"hi\\""'
        assert py_string("a\\b") == '"a\\\\b"'

    def test_count_lines(self) -> None:
        assert count_lines("") == 0
        assert count_lines("a\nb") == 2
        assert count_lines("a\nb\n") == 2

    def test_timer_measures(self) -> None:
        with Timer("noop") as timer:
            pass
        assert timer.elapsed >= 0.0
        assert "noop" in repr(timer)
