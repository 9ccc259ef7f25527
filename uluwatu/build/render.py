"""Markdown to HTML conversion and HTML minification."""

from __future__ import annotations

import html
import re
from typing import NamedTuple

import markdown

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc"]

# Code first so that "$" inside code is left alone, then display math,
# then inline math
_MATH_OR_CODE = re.compile(
    r"(?P<code>^(?:```|~~~).*?^(?:```|~~~)[ \t]*$|`[^`\n]+`)"
    r"|(?P<math>\$\$.+?\$\$|\\\[.+?\\\]|\\\(.+?\\\)|(?<!\\)\$[^$\n]+?(?<!\\)\$)",
    re.DOTALL | re.MULTILINE,
)
_PLACEHOLDER = "ULUWATUMATH{}X"

_PRE = re.compile(r"(<pre\b.*?</pre>)", re.DOTALL | re.IGNORECASE)
_COMMENT = re.compile(r"<!--(?!\[if).*?-->", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")
_BETWEEN_TAGS = re.compile(r">[ \t]*\n\s*<")


class Rendered(NamedTuple):
    """Rendered post body."""

    html: str
    toc: str  # Table of contents HTML ("" when the post has no headings)


def protect_math(text: str) -> tuple[str, list[str]]:
    """Replace formulas with placeholders Markdown will not touch.

    Markdown would otherwise turn ``a_1 * b_2`` into emphasis. The formulas
    come back verbatim (HTML-escaped) for the client-side renderer.
    """
    formulas: list[str] = []

    def replace(match: re.Match) -> str:
        if match.group("code") is not None:
            return match.group("code")
        formulas.append(match.group("math"))
        return _PLACEHOLDER.format(len(formulas) - 1)

    return _MATH_OR_CODE.sub(replace, text), formulas


def restore_math(rendered: str, formulas: list[str]) -> str:
    for index, formula in enumerate(formulas):
        rendered = rendered.replace(
            _PLACEHOLDER.format(index), html.escape(formula, quote=False)
        )
    return rendered


def render_markdown(text: str, math: bool = False) -> Rendered:
    """Convert a Markdown body to HTML.

    Args:
        text: Markdown source
        math: Whether to shield formulas from Markdown processing

    Returns:
        Rendered html and table of contents
    """
    formulas: list[str] = []
    if math:
        text, formulas = protect_math(text)

    md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS, output_format="html")
    body = md.convert(text)
    toc = getattr(md, "toc", "")
    if formulas:
        body = restore_math(body, formulas)

    # Empty toc is a bare <div class="toc"><ul></ul></div>
    if "<li>" not in toc:
        toc = ""
    return Rendered(body, toc)


def minify_html(document: str) -> str:
    """Collapse whitespace and drop comments outside ``<pre>`` blocks."""
    parts = _PRE.split(document)
    out = []
    for index, part in enumerate(parts):
        if index % 2:
            out.append(part)
            continue
        part = _COMMENT.sub("", part)
        part = _BETWEEN_TAGS.sub("><", part)
        part = _WHITESPACE.sub(" ", part)
        out.append(part)
    return "".join(out).strip()
