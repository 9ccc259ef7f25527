"""Site generators.

Two implementations of the same contract, ``build(corpus, settings,
publish_dir) -> pages``:

- NativeGenerator renders the corpus itself (Markdown + Jinja2 templates).
- HugoGenerator shells out to the external ``hugo`` binary the way the
  publish workflow does: ``hugo --minify --baseURL <url>``.

Both write into an already-cleared publish directory. Neither writes the
custom-domain marker; build_site() does that after the generator returns.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import TemplateError

from ..content import Post, tag_url_path
from ..exceptions import BuildError
from ..host.filesystem import copy_tree
from .render import minify_html, render_markdown
from .templates import create_environment

if TYPE_CHECKING:
    from ..config import Settings
    from ..content import Corpus

logger = logging.getLogger(__name__)


class Generator(ABC):
    """Turns a corpus into files under a publish directory."""

    name: str

    @abstractmethod
    def build(self, corpus: "Corpus", settings: "Settings", publish_dir: Path) -> int:
        """Render the site.

        Args:
            corpus: Loaded posts
            settings: Site settings (base URL, minify, drafts)
            publish_dir: Empty output directory

        Returns:
            Number of HTML pages written

        Raises:
            BuildError: If rendering fails
        """


class NativeGenerator(Generator):
    """Render the site in-process.

    Output layout mirrors Hugo's so that URLs do not change between
    generators:

        index.html                  posts, newest first
        <section>/<slug>/index.html one per post
        tags/index.html             all tags
        tags/<tag>/index.html       posts per tag
        index.xml                   RSS feed
        <section>/<slug>/...        page bundle resources
        ...                         static directory copied verbatim
    """

    name = "native"

    def build(self, corpus: "Corpus", settings: "Settings", publish_dir: Path) -> int:
        publish_dir = Path(publish_dir)
        env = create_environment(settings.base_url, settings.templates_path)
        site = {"title": settings.title, "language": settings.language}

        copied = copy_tree(settings.static_path, publish_dir)
        logger.debug("Copied %d static files", copied)

        posts = corpus.published(include_drafts=settings.build_drafts)
        listed = [p for p in posts if p.section]
        pages = 0

        def write(relative: str, template: str, minify: bool = True, **context) -> None:
            nonlocal pages
            try:
                document = env.get_template(template).render(site=site, **context)
            except TemplateError as e:
                raise BuildError(f"Template {template} failed for {relative}: {e}")
            if settings.minify and minify:
                document = minify_html(document)
            target = publish_dir / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(document, encoding="utf-8")
            if target.suffix == ".html":
                pages += 1

        for post in posts:
            write(
                str(post.output_path(Path())),
                "single.html",
                post=post,
                **self._render_post(post),
            )
            if post.is_bundle and post.path.parent != corpus.content_dir:
                self._copy_resources(post, publish_dir)

        write("index.html", "list.html", posts=listed, heading="")

        tags = corpus.tags(include_drafts=settings.build_drafts)
        write("tags/index.html", "terms.html", tags=tags)
        for tag, tagged in tags.items():
            write(
                f"{tag_url_path(tag).strip('/')}/index.html",
                "list.html",
                posts=tagged,
                heading=tag,
            )

        last_build = max((p.date for p in listed if p.date), default=None)
        write("index.xml", "index.xml", minify=False, posts=listed, last_build=last_build)

        logger.info("Rendered %d pages (%d posts, %d tags)", pages, len(posts), len(tags))
        return pages

    def _render_post(self, post: Post) -> dict:
        rendered = render_markdown(post.body, math=post.front_matter.math)
        return {
            "content": rendered.html,
            "toc": rendered.toc if post.front_matter.toc else "",
        }

    def _copy_resources(self, post: Post, publish_dir: Path) -> int:
        """Copy a page bundle's files (everything but Markdown) beside its page."""
        source = post.path.parent
        target = post.output_path(publish_dir).parent
        copied = 0
        for file in sorted(source.rglob("*")):
            if not file.is_file() or file.suffix == ".md":
                continue
            destination = target / file.relative_to(source)
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(file, destination)
            copied += 1
        logger.debug("Copied %d resources for %s", copied, post.url_path)
        return copied


class HugoGenerator(Generator):
    """Invoke the external Hugo binary in the site root."""

    name = "hugo"

    def command(self, settings: "Settings", publish_dir: Path) -> list[str]:
        """Build the hugo command line for these settings."""
        cmd = [settings.hugo_binary]
        if settings.minify:
            cmd.append("--minify")
        cmd += ["--baseURL", settings.base_url, "--destination", str(Path(publish_dir).resolve())]
        if settings.build_drafts:
            cmd.append("--buildDrafts")
        return cmd

    def build(self, corpus: "Corpus", settings: "Settings", publish_dir: Path) -> int:
        cmd = self.command(settings, publish_dir)
        logger.info("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd, cwd=settings.site_dir, capture_output=True, text=True
            )
        except FileNotFoundError:
            raise BuildError(f"Site generator not found: {settings.hugo_binary}")

        if result.stdout:
            logger.debug(result.stdout.rstrip())
        if result.returncode != 0:
            raise BuildError(
                f"{settings.hugo_binary} exited with status {result.returncode}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return sum(1 for p in Path(publish_dir).rglob("*.html"))


GENERATORS: dict[str, type[Generator]] = {
    NativeGenerator.name: NativeGenerator,
    HugoGenerator.name: HugoGenerator,
}


def get_generator(name: str) -> Generator:
    """Instantiate a generator by name (native or hugo)."""
    try:
        return GENERATORS[name]()
    except KeyError:
        raise BuildError(f"Unknown generator: {name}. Available: {list(GENERATORS)}")
