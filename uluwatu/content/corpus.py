"""Corpus: every post under the content directory.

Posts relate to each other only through shared tags and their publish
date. The corpus is read-only: nothing here writes content files.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..exceptions import ContentError
from .post import Post, SECTION_INDEX, load_post, slugify

logger = logging.getLogger(__name__)


class Corpus:
    """All posts of a site, ordered newest first.

    Attributes:
        content_dir: Directory the posts were loaded from
        posts: Every post, drafts included, newest first
    """

    def __init__(self, content_dir: Path, posts: list[Post]):
        self.content_dir = Path(content_dir)
        # Newest first; ties (and undated posts) ordered by slug
        dated = sorted((p for p in posts if p.date), key=lambda p: p.slug)
        dated.sort(key=lambda p: p.date, reverse=True)
        undated = sorted((p for p in posts if not p.date), key=lambda p: p.slug)
        self.posts = dated + undated

        seen: dict[str, Path] = {}
        for post in self.posts:
            if post.url_path in seen:
                raise ContentError(
                    f"{post.path} and {seen[post.url_path]} both publish to {post.url_path}",
                    details={"url": post.url_path},
                )
            seen[post.url_path] = post.path

        # Distinct tags must not share a listing page
        tag_urls: dict[str, str] = {}
        for post in self.posts:
            for tag in post.tags:
                if not slugify(tag):
                    raise ContentError(
                        f"{post.path}: tag {tag!r} has no usable URL",
                        details={"tag": tag},
                    )
                url = tag_url_path(tag)
                other = tag_urls.setdefault(url, tag)
                if other != tag:
                    raise ContentError(
                        f"{post.path}: tags {other!r} and {tag!r} both publish to {url}",
                        details={"url": url},
                    )

    @classmethod
    def load(cls, content_dir: Path | str) -> "Corpus":
        """Load every Markdown document under content_dir.

        Section index files (``_index.md``) are not posts and are skipped.

        Raises:
            ContentError: If the directory does not exist
            FrontMatterError: If any document header is malformed
        """
        content_dir = Path(content_dir)
        if not content_dir.is_dir():
            raise ContentError(f"Content directory not found: {content_dir}")

        posts = [
            load_post(path, content_dir)
            for path in sorted(content_dir.rglob("*.md"))
            if path.name != SECTION_INDEX
        ]
        logger.debug("Loaded %d documents from %s", len(posts), content_dir)
        return cls(content_dir, posts)

    def __len__(self) -> int:
        return len(self.posts)

    def __iter__(self):
        return iter(self.posts)

    def published(self, include_drafts: bool = False) -> list[Post]:
        """Posts that belong in the published output, newest first."""
        if include_drafts:
            return list(self.posts)
        return [p for p in self.posts if not p.draft]

    def drafts(self) -> list[Post]:
        """Posts marked as draft."""
        return [p for p in self.posts if p.draft]

    def tags(self, include_drafts: bool = False) -> dict[str, list[Post]]:
        """Map each tag to the published posts carrying it.

        Tags are returned in sorted order; each list keeps the corpus order.
        """
        index: dict[str, list[Post]] = {}
        for post in self.published(include_drafts):
            for tag in post.tags:
                index.setdefault(tag, []).append(post)
        return {tag: index[tag] for tag in sorted(index)}


def tag_url_path(tag: str) -> str:
    """Site-relative URL of a tag listing page.

    Raises:
        ContentError: If the tag has no characters usable in a URL
    """
    slug = slugify(tag)
    if not slug:
        raise ContentError(f"tag {tag!r} has no usable URL", details={"tag": tag})
    return f"/tags/{slug}/"
