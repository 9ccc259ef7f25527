"""Tests for front-matter parsing.

Both header syntaxes (YAML between ---, TOML between +++) must produce
the same metadata for the same fields.
"""

import pytest
from datetime import datetime, timezone

from uluwatu.content.frontmatter import (
    FrontMatter,
    parse_date,
    parse_front_matter,
    split_front_matter,
    TOML,
    YAML,
)
from uluwatu.exceptions import FrontMatterError


YAML_DOC = """---
title: "Heap deltas"
date: 2022-01-20
draft: true
toc: true
images: []
math: true
tags: ["python", "memory"]
---
Body text.
"""

TOML_DOC = """+++
title = "Heap deltas"
date = 2022-01-20
draft = true
toc = true
images = []
math = true
tags = ["python", "memory"]
+++
Body text.
"""


class TestSplitFrontMatter:
    """Tests for separating the header from the body."""

    def test_split_yaml(self):
        """YAML header is recognized by its --- delimiters."""
        fmt, header, body = split_front_matter(YAML_DOC)

        assert fmt == YAML
        assert header.startswith('title: "Heap deltas"')
        assert body == "Body text.\n"

    def test_split_toml(self):
        """TOML header is recognized by its +++ delimiters."""
        fmt, header, body = split_front_matter(TOML_DOC)

        assert fmt == TOML
        assert header.startswith('title = "Heap deltas"')
        assert body == "Body text.\n"

    def test_no_header(self):
        """A document without a header is all body."""
        fmt, header, body = split_front_matter("# Title\n\ntext\n")

        assert fmt is None
        assert header == ""
        assert body == "# Title\n\ntext\n"

    def test_unclosed_header_raises(self):
        """An opening delimiter without a closing one is an error."""
        with pytest.raises(FrontMatterError, match="never closed"):
            split_front_matter("---\ntitle: x\n\nbody\n")

    def test_crlf_and_bom(self):
        """Windows line endings and a leading BOM are accepted."""
        fmt, header, body = split_front_matter("\ufeff---\r\ntitle: x\r\n---\r\nbody\r\n")

        assert fmt == YAML
        assert header == "title: x\r\n"
        assert body == "body\r\n"

    def test_horizontal_rule_in_body_is_not_a_header(self):
        """A --- later in the body does not start a header."""
        fmt, _, body = split_front_matter("intro\n\n---\n\nmore\n")

        assert fmt is None
        assert "---" in body


class TestParseFrontMatter:
    """Tests for header parsing and validation."""

    def test_yaml_and_toml_are_equivalent(self):
        """Same fields in either syntax give equal metadata."""
        yaml_meta, yaml_body = parse_front_matter(YAML_DOC)
        toml_meta, toml_body = parse_front_matter(TOML_DOC)

        assert yaml_meta == toml_meta
        assert yaml_body == toml_body

    def test_recognized_fields(self):
        """All recognized fields are populated."""
        meta, _ = parse_front_matter(YAML_DOC)

        assert meta.title == "Heap deltas"
        assert meta.date == datetime(2022, 1, 20, tzinfo=timezone.utc)
        assert meta.draft is True
        assert meta.toc is True
        assert meta.images == []
        assert meta.math is True
        assert meta.tags == ["python", "memory"]

    def test_defaults(self):
        """Missing fields take their defaults."""
        meta, body = parse_front_matter("---\ntitle: Only a title\n---\nx\n")

        assert meta.draft is False
        assert meta.math is False
        assert meta.toc is False
        assert meta.tags == []
        assert meta.date is None
        assert body == "x\n"

    def test_empty_header(self):
        """An empty header yields default metadata."""
        meta, body = parse_front_matter("---\n---\nbody\n")

        assert meta == FrontMatter()
        assert body == "body\n"

    def test_unknown_keys_kept_in_extra(self):
        """Unrecognized keys are kept for templates."""
        meta, _ = parse_front_matter("---\ntitle: x\nauthor: someone\n---\n")

        assert meta.extra == {"author": "someone"}

    def test_single_tag_string_becomes_list(self):
        """A single tag string is coerced to a one-item list."""
        meta, _ = parse_front_matter("---\ntags: rust\n---\n")

        assert meta.tags == ["rust"]

    def test_draft_must_be_boolean(self):
        """A non-boolean draft flag is rejected."""
        with pytest.raises(FrontMatterError, match="'draft' must be a boolean"):
            parse_front_matter('---\ndraft: "yes please"\n---\n')

    def test_tags_must_be_strings(self):
        """Tags must be a list of strings."""
        with pytest.raises(FrontMatterError, match="'tags'"):
            parse_front_matter("---\ntags: {a: 1}\n---\n")

    def test_invalid_yaml(self):
        """Malformed YAML is reported as a front-matter error."""
        with pytest.raises(FrontMatterError, match="invalid YAML"):
            parse_front_matter("---\ntitle: [unclosed\n---\n")

    def test_invalid_toml(self):
        """Malformed TOML is reported as a front-matter error."""
        with pytest.raises(FrontMatterError, match="invalid TOML"):
            parse_front_matter("+++\ntitle = \n+++\n")

    def test_header_must_be_mapping(self):
        """A YAML list header is rejected."""
        with pytest.raises(FrontMatterError, match="mapping"):
            parse_front_matter("---\n- a\n- b\n---\n")


class TestParseDate:
    """Tests for date normalization."""

    def test_iso_string_with_zulu(self):
        assert parse_date("2021-05-02T10:00:00Z") == datetime(2021, 5, 2, 10, tzinfo=timezone.utc)

    def test_zulu_string_same_in_yaml_and_toml(self):
        """A quoted UTC timestamp parses the same from either header syntax."""
        yaml_meta, _ = parse_front_matter('---\ndate: "2021-05-02T10:00:00Z"\n---\n')
        toml_meta, _ = parse_front_matter('+++\ndate = "2021-05-02T10:00:00Z"\n+++\n')

        assert yaml_meta.date == toml_meta.date == datetime(2021, 5, 2, 10, tzinfo=timezone.utc)

    def test_naive_datetime_is_utc(self):
        assert parse_date(datetime(2021, 5, 2, 10)).tzinfo == timezone.utc

    def test_garbage_string(self):
        with pytest.raises(FrontMatterError):
            parse_date("last tuesday")

    def test_wrong_type(self):
        with pytest.raises(FrontMatterError):
            parse_date(20210502)
