"""Post dataclass: one Markdown document of the corpus."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..exceptions import ContentError
from .frontmatter import FrontMatter, parse_front_matter

BUNDLE_INDEX = "index.md"
SECTION_INDEX = "_index.md"

_UNSAFE = re.compile(r"[^\w-]+")
_DASHES = re.compile(r"-{2,}")


def slugify(value: str) -> str:
    """Lower-case a title or file stem into a URL path segment.

    Examples:
        "Order Book in Rust" -> "order-book-in-rust"
        "Heap  Deltas!" -> "heap-deltas"
    """
    value = unicodedata.normalize("NFKC", value).strip().lower()
    value = _UNSAFE.sub("-", value)
    return _DASHES.sub("-", value).strip("-")


@dataclass
class Post:
    """A Markdown document with its parsed front-matter.

    Attributes:
        path: Source file
        section: First directory under the content dir ("" at the top level)
        slug: URL segment of the post
        front_matter: Parsed header
        body: Markdown text after the header
        body_line: 1-based line number in the file where the body starts
    """
    path: Path
    section: str
    slug: str
    front_matter: FrontMatter
    body: str
    body_line: int = 1

    @property
    def title(self) -> str:
        return self.front_matter.title or self.slug

    @property
    def date(self) -> Optional[datetime]:
        return self.front_matter.date

    @property
    def draft(self) -> bool:
        return self.front_matter.draft

    @property
    def tags(self) -> list[str]:
        return self.front_matter.tags

    @property
    def url_path(self) -> str:
        """Site-relative URL, e.g. ``/posts/order-book/``."""
        if self.section:
            return f"/{self.section}/{self.slug}/"
        return f"/{self.slug}/"

    @property
    def is_bundle(self) -> bool:
        """Whether the post is a page bundle (``<name>/index.md``)."""
        return self.path.name == BUNDLE_INDEX

    def output_path(self, publish_dir: Path) -> Path:
        """Location of the rendered page inside the publish directory."""
        return Path(publish_dir) / self.url_path.strip("/") / "index.html"


def load_post(path: Path, content_dir: Path) -> Post:
    """Read and parse one Markdown file.

    Args:
        path: Markdown file
        content_dir: Content root the section is derived from

    Returns:
        Parsed Post

    Raises:
        FrontMatterError: If the header is malformed
        ContentError: If the file is not UTF-8 or yields an empty slug
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ContentError(f"{path}: not valid UTF-8: {e}", details={"path": str(path)})
    front_matter, body = parse_front_matter(text, path)

    relative = path.relative_to(content_dir)
    parts = relative.parts
    bundle = path.name == BUNDLE_INDEX
    section = parts[0] if len(parts) > (2 if bundle else 1) else ""

    if front_matter.slug:
        slug = slugify(front_matter.slug)
    elif bundle and len(parts) > 1:
        slug = slugify(path.parent.name)
    else:
        slug = slugify(path.stem)
    if not slug:
        raise ContentError(
            f"{path}: no usable slug; set one in the front-matter",
            details={"path": str(path)},
        )

    body_line = text[: len(text) - len(body)].count("\n") + 1

    return Post(
        path=path,
        section=section,
        slug=slug,
        front_matter=front_matter,
        body=body,
        body_line=body_line,
    )
