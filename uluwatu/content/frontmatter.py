"""Front-matter parsing for Markdown documents.

A document may start with a metadata header in one of two equivalent
syntaxes:

    ---                      +++
    title: Hello             title = "Hello"
    date: 2021-03-04         date = 2021-03-04
    tags: [rust, perf]       tags = ["rust", "perf"]
    ---                      +++

YAML headers are read with PyYAML's safe loader, TOML headers with tomllib.
Both produce the same FrontMatter for the same fields.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from ..exceptions import FrontMatterError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


YAML = "yaml"
TOML = "toml"

DELIMITERS = {
    "---": YAML,
    "+++": TOML,
}

BOOL_FIELDS = ("draft", "toc", "math")
LIST_FIELDS = ("images", "tags")
KNOWN_FIELDS = ("title", "date", "slug", "description") + BOOL_FIELDS + LIST_FIELDS


@dataclass
class FrontMatter:
    """Recognized document metadata.

    Unrecognized keys are kept in ``extra`` so that layouts can still use them.
    """
    title: str = ""
    date: Optional[datetime] = None
    draft: bool = False
    toc: bool = False
    images: list[str] = field(default_factory=list)
    math: bool = False
    tags: list[str] = field(default_factory=list)
    slug: Optional[str] = None
    description: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: dict[str, Any], path: Path | None = None) -> "FrontMatter":
        """Validate a parsed header mapping.

        Args:
            data: Mapping produced by the YAML or TOML loader
            path: Document path, used in error messages

        Returns:
            FrontMatter with normalized values

        Raises:
            FrontMatterError: If a recognized field has the wrong type
        """
        values: dict[str, Any] = {}

        for key in ("title", "slug", "description"):
            if key in data and data[key] is not None:
                if not isinstance(data[key], (str, int, float)) or isinstance(data[key], bool):
                    raise FrontMatterError(f"'{key}' must be a string", path)
                values[key] = str(data[key])

        if data.get("date") is not None:
            values["date"] = parse_date(data["date"], path)

        for key in BOOL_FIELDS:
            if key in data and data[key] is not None:
                if not isinstance(data[key], bool):
                    raise FrontMatterError(f"'{key}' must be a boolean", path)
                values[key] = data[key]

        for key in LIST_FIELDS:
            value = data.get(key)
            if value is None:
                continue
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise FrontMatterError(f"'{key}' must be a list of strings", path)
            values[key] = list(value)

        values["extra"] = {k: v for k, v in data.items() if k not in KNOWN_FIELDS}
        return cls(**values)


def parse_date(value: Any, path: Path | None = None) -> datetime:
    """Normalize a front-matter date to an aware datetime.

    Accepts dates, datetimes and ISO 8601 strings. Naive values are taken
    as UTC; plain dates become midnight UTC.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            raise FrontMatterError(f"'date' is not an ISO 8601 timestamp: {value!r}", path)

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    raise FrontMatterError(f"'date' must be a timestamp, got {type(value).__name__}", path)


def split_front_matter(text: str, path: Path | None = None) -> tuple[Optional[str], str, str]:
    """Separate the header block from the document body.

    Args:
        text: Full document text
        path: Document path, used in error messages

    Returns:
        (format, header_text, body); format is None when there is no header

    Raises:
        FrontMatterError: If the opening delimiter is never closed
    """
    text = text.lstrip("\ufeff")
    lines = text.splitlines(keepends=True)
    if not lines:
        return None, "", text

    opener = lines[0].rstrip("\r\n").rstrip()
    fmt = DELIMITERS.get(opener)
    if fmt is None:
        return None, "", text

    for index, line in enumerate(lines[1:], start=1):
        if line.rstrip("\r\n").rstrip() == opener:
            header = "".join(lines[1:index])
            body = "".join(lines[index + 1:])
            return fmt, header, body

    raise FrontMatterError(f"front-matter opened with '{opener}' is never closed", path)


def _load_header(fmt: str, header: str, path: Path | None) -> dict[str, Any]:
    if fmt == YAML:
        try:
            data = yaml.safe_load(header)
        except yaml.YAMLError as e:
            raise FrontMatterError(f"invalid YAML front-matter: {e}", path)
    else:
        try:
            data = tomllib.loads(header)
        except tomllib.TOMLDecodeError as e:
            raise FrontMatterError(f"invalid TOML front-matter: {e}", path)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FrontMatterError("front-matter must be a mapping", path)
    return data


def parse_front_matter(text: str, path: Path | None = None) -> tuple[FrontMatter, str]:
    """Parse a document into its metadata and body.

    Args:
        text: Full document text
        path: Document path, used in error messages

    Returns:
        (FrontMatter, body)

    Raises:
        FrontMatterError: If the header is malformed
    """
    fmt, header, body = split_front_matter(text, path)
    if fmt is None:
        return FrontMatter(), body
    return FrontMatter.from_mapping(_load_header(fmt, header, path), path), body
