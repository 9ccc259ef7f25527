"""Build a site into its publish directory.

The build is the middle step of the publish job: clear the publish
directory, run the generator, write the custom-domain marker. There is no
retry and no partial output recovery; a failing generator raises
BuildError and leaves whatever it wrote behind for inspection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..checks import CNAME_FILENAME
from ..content import Corpus
from ..exceptions import BuildError
from ..host.filesystem import clear_dir
from .generators import Generator, get_generator

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Outcome of one build.

    Attributes:
        publish_dir: Directory the site was written to
        pages: Number of HTML pages generated
        generator: Name of the generator used
    """
    publish_dir: Path
    pages: int
    generator: str


def write_domain_marker(publish_dir: Path, domain: str) -> Path:
    """Write the CNAME file the pages host reads the custom domain from."""
    marker = Path(publish_dir) / CNAME_FILENAME
    marker.write_text(f"{domain}\n", encoding="utf-8")
    return marker


def _guard_publish_dir(settings: "Settings", publish_dir: Path) -> None:
    """Refuse to clear a directory that holds the site sources."""
    target = publish_dir.resolve()
    for source in (settings.site_dir, settings.content_path, settings.static_path):
        source = Path(source).resolve()
        if target == source or source.is_relative_to(target):
            raise BuildError(f"Refusing to clear {publish_dir}: it contains {source}")


def build_site(
    settings: "Settings",
    corpus: Optional[Corpus] = None,
    publish_dir: Optional[Path] = None,
    generator: Optional[Generator] = None,
) -> BuildResult:
    """Build the site and write the custom-domain marker.

    Args:
        settings: Site settings
        corpus: Pre-loaded corpus (loaded from the content dir if None)
        publish_dir: Output directory (settings.publish_path if None)
        generator: Generator to use (settings.generator if None)

    Returns:
        BuildResult for the publish directory

    Raises:
        BuildError: If the generator fails
        ContentError, FrontMatterError: If the corpus cannot be loaded
    """
    publish_dir = Path(publish_dir) if publish_dir is not None else settings.publish_path
    generator = generator or get_generator(settings.generator)
    if corpus is None:
        corpus = Corpus.load(settings.content_path)

    _guard_publish_dir(settings, publish_dir)
    clear_dir(publish_dir)

    logger.info("Building %d posts with %s into %s", len(corpus), generator.name, publish_dir)
    pages = generator.build(corpus, settings, publish_dir)
    if pages == 0:
        raise BuildError(f"{generator.name} produced no pages in {publish_dir}")

    write_domain_marker(publish_dir, settings.domain)
    return BuildResult(publish_dir=publish_dir, pages=pages, generator=generator.name)
