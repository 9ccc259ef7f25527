"""Site build: generators, rendering and the publish directory."""

from .generators import Generator, NativeGenerator, HugoGenerator, get_generator
from .render import render_markdown, minify_html
from .site import BuildResult, build_site, write_domain_marker

__all__ = [
    "Generator",
    "NativeGenerator",
    "HugoGenerator",
    "get_generator",
    "render_markdown",
    "minify_html",
    "BuildResult",
    "build_site",
    "write_domain_marker",
]
