"""Content-integrity checks for the corpus and the publish directory.

Checks never raise on a bad post; they return Finding tuples so that one
run reports every problem. CheckReport.raise_for_failures() turns
error-severity findings into a CheckFailed for the caller that wants the
job to stop.

CHECKS:
- drafts: no draft post appears in the generated output
- math: formula delimiters are balanced in posts with math enabled
- images: internal image references exist under the images directory
- output: publish directory is non-empty and carries the CNAME marker
- idempotent: two builds of unchanged content are byte-identical
"""

from __future__ import annotations

import logging
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, NamedTuple, Optional
from urllib.parse import unquote, urlsplit

from .exceptions import CheckFailed
from .host.filesystem import diff_trees, tree_digest

if TYPE_CHECKING:
    from .config import Settings
    from .content import Corpus, Post

logger = logging.getLogger(__name__)

ERROR = "error"
WARNING = "warning"

CNAME_FILENAME = "CNAME"


class Finding(NamedTuple):
    """One problem reported by a check."""

    check: str  # drafts | math | images | output | idempotent
    severity: str  # ERROR or WARNING
    path: Optional[Path]  # Offending file (post or output file)
    line: Optional[int]  # 1-based line in path, if known
    message: str

    def __str__(self) -> str:
        location = str(self.path) if self.path else "<site>"
        if self.line:
            location = f"{location}:{self.line}"
        return f"{location}: {self.severity}: [{self.check}] {self.message}"


@dataclass
class CheckReport:
    """Findings collected from one or more checks."""

    findings: list[Finding] = field(default_factory=list)

    def extend(self, findings: Iterable[Finding]) -> None:
        self.findings.extend(findings)

    @property
    def errors(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == ERROR]

    @property
    def warnings(self) -> list[Finding]:
        return [f for f in self.findings if f.severity == WARNING]

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_failures(self) -> None:
        """Raise CheckFailed if any error-severity finding was reported."""
        errors = self.errors
        if errors:
            raise CheckFailed(f"{len(errors)} content check(s) failed", errors)


# ============================================================================
# Code masking
# ============================================================================

_FENCE = re.compile(r"^\s{0,3}(`{3,}|~{3,})")
_CODE_SPAN = re.compile(r"(`+)(.+?)\1")


def mask_code(lines: list[str]) -> list[str]:
    """Blank out fenced code blocks and inline code spans.

    Line count is preserved so that findings keep their line numbers.
    Posts quote Rust and Python snippets whose ``$`` and ``[`` must not be
    mistaken for math or image syntax.
    """
    masked = []
    fence: Optional[str] = None
    for line in lines:
        match = _FENCE.match(line)
        if fence is None and match:
            fence = match.group(1)
            masked.append("")
            continue
        if fence is not None:
            if match and match.group(1)[0] == fence[0] and len(match.group(1)) >= len(fence) \
                    and not line.strip()[len(match.group(1)):].strip():
                fence = None
            masked.append("")
            continue
        masked.append(_CODE_SPAN.sub(lambda m: " " * len(m.group(0)), line))
    return masked


# ============================================================================
# Math delimiters
# ============================================================================

# Order matters: an escaped backslash or dollar must be consumed before the
# delimiters it would otherwise start.
_MATH_TOKEN = re.compile(r"\\\\|\\\$|\$\$|\$|\\\[|\\\]|\\\(|\\\)")

_CLOSERS = {"$$": "$$", "\\[": "\\]", "\\(": "\\)", "$": "$"}


def find_math_errors(text: str, first_line: int = 1) -> list[tuple[int, str]]:
    """Scan Markdown text for unbalanced formula delimiters.

    Args:
        text: Markdown body
        first_line: Line number of the first line of text

    Returns:
        List of (line, message) for each unmatched opener or stray closer
    """
    errors: list[tuple[int, str]] = []
    open_token: Optional[str] = None
    open_line = 0

    for offset, line in enumerate(mask_code(text.splitlines())):
        lineno = first_line + offset

        # Inline math never spans a paragraph break
        if not line.strip() and open_token == "$":
            errors.append((open_line, "inline math '$' is never closed"))
            open_token = None
            continue

        for match in _MATH_TOKEN.finditer(line):
            token = match.group()
            if token in ("\\\\", "\\$"):
                continue

            if open_token is None:
                if token in _CLOSERS:
                    open_token, open_line = token, lineno
                else:
                    errors.append((lineno, f"'{token}' has no matching opening delimiter"))
            elif open_token == "$" and token == "$$":
                # "$a$$b$": close the first span, open the next
                open_line = lineno
            elif token == _CLOSERS[open_token]:
                open_token = None

    if open_token is not None:
        errors.append(
            (open_line, f"'{open_token}' is never closed (expected '{_CLOSERS[open_token]}')")
        )
    return errors


def check_math_delimiters(post: "Post") -> list[Finding]:
    """Check formula delimiters in a post.

    Posts with math enabled must have balanced delimiters. Posts without it
    get a warning when they contain display math, since it will render as
    raw text.
    """
    if not post.front_matter.math:
        masked = "\n".join(mask_code(post.body.splitlines()))
        if "$$" in masked:
            return [Finding(
                "math", WARNING, post.path, None,
                "post contains '$$' but math is not enabled in front-matter",
            )]
        return []

    return [
        Finding("math", ERROR, post.path, line, message)
        for line, message in find_math_errors(post.body, post.body_line)
    ]


# ============================================================================
# Image references
# ============================================================================

_MD_IMAGE = re.compile(r"!\[[^\]]*\]\(\s*<?([^)\s>]+)>?(?:\s+[\"'(][^)]*)?\)")
_MD_IMAGE_REF = re.compile(r"!\[([^\]]*)\]\[([^\]]*)\]")
_LINK_DEF = re.compile(r"^\s{0,3}\[([^\]]+)\]:\s*<?(\S+?)>?(?:\s+.*)?$")
_HTML_IMAGE = re.compile(r"<img\b[^>]*?\bsrc\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
_FIGURE_SHORTCODE = re.compile(r"\{\{[<%]\s*figure\b[^}]*?\bsrc\s*=\s*\"([^\"]+)\"")

_EXTERNAL_SCHEMES = ("http:", "https:", "data:", "mailto:")


def is_external(ref: str) -> bool:
    """Whether an image reference points outside the site."""
    return ref.startswith("//") or ref.lower().startswith(_EXTERNAL_SCHEMES)


def extract_image_references(text: str, first_line: int = 1) -> list[tuple[int, str]]:
    """Collect image references from a Markdown body.

    Handles inline Markdown images, reference-style images, ``<img>`` tags
    and the ``figure`` shortcode. Code is ignored.

    Returns:
        List of (line, reference) in document order
    """
    lines = mask_code(text.splitlines())
    definitions = {}
    for line in lines:
        match = _LINK_DEF.match(line)
        if match:
            definitions[match.group(1).strip().lower()] = match.group(2)

    refs: list[tuple[int, str]] = []
    for offset, line in enumerate(lines):
        lineno = first_line + offset
        found = []
        for pattern in (_MD_IMAGE, _HTML_IMAGE, _FIGURE_SHORTCODE):
            found.extend((m.start(), m.group(1)) for m in pattern.finditer(line))
        for m in _MD_IMAGE_REF.finditer(line):
            label = (m.group(2) or m.group(1)).strip().lower()
            if label in definitions:
                found.append((m.start(), definitions[label]))
        refs.extend((lineno, ref) for _, ref in sorted(found))
    return refs


def resolve_image(
    ref: str, post: "Post", static_dir: Path, images_dir: str = "images"
) -> tuple[Optional[Path], Optional[str]]:
    """Resolve an internal image reference to a file.

    Site-root references (``/images/x.png``) resolve under static_dir.
    Relative references resolve against the post's directory first (page
    bundle resources), then against static_dir.

    Returns:
        (path, None) when the file exists, (None, message) otherwise
    """
    target = unquote(urlsplit(ref).path)
    if not target:
        return None, f"empty image reference {ref!r}"

    images_root = (Path(static_dir) / images_dir).resolve()

    if not target.startswith("/"):
        local = (post.path.parent / target).resolve()
        if post.is_bundle and local.is_file():
            return local, None

    candidate = (Path(static_dir) / target.lstrip("/")).resolve()
    if not candidate.is_relative_to(images_root):
        return None, f"image {ref!r} is outside the '{images_dir}' directory"
    if not candidate.is_file():
        return None, f"image {ref!r} not found at {candidate}"
    return candidate, None


def check_image_references(
    post: "Post", static_dir: Path, images_dir: str = "images"
) -> list[Finding]:
    """Check that every internal image a post references exists."""
    refs = extract_image_references(post.body, post.body_line)
    refs.extend((None, ref) for ref in post.front_matter.images)

    findings = []
    for line, ref in refs:
        if is_external(ref):
            continue
        _, problem = resolve_image(ref, post, static_dir, images_dir)
        if problem:
            findings.append(Finding("images", ERROR, post.path, line, problem))
    return findings


# ============================================================================
# Output checks
# ============================================================================

def check_drafts_excluded(corpus: "Corpus", publish_dir: Path) -> list[Finding]:
    """Check that no draft post made it into the publish directory.

    A draft must have no rendered page, and no generated page or feed may
    link to its URL.
    """
    publish_dir = Path(publish_dir)
    drafts = corpus.drafts()
    if not drafts:
        return []

    findings = []
    for post in drafts:
        output = post.output_path(publish_dir)
        if output.exists() or output.parent.exists():
            findings.append(Finding(
                "drafts", ERROR, output, None,
                f"draft {post.path.name!r} was rendered to {output.parent}",
            ))

    generated = sorted(
        p for p in publish_dir.rglob("*") if p.is_file() and p.suffix in (".html", ".xml")
    )
    for page in generated:
        text = page.read_text(encoding="utf-8", errors="replace")
        for post in drafts:
            if f'{post.url_path}"' in text or f"{post.url_path}<" in text:
                findings.append(Finding(
                    "drafts", ERROR, page, None,
                    f"links to draft {post.path.name!r} ({post.url_path})",
                ))
    return findings


def check_publish_output(publish_dir: Path, domain: str) -> list[Finding]:
    """Check the publish directory is non-empty and has the domain marker."""
    publish_dir = Path(publish_dir)
    if not publish_dir.is_dir():
        return [Finding("output", ERROR, publish_dir, None, "publish directory does not exist")]

    entries = [p for p in publish_dir.iterdir() if p.name != CNAME_FILENAME]
    findings = []
    if not entries:
        findings.append(Finding("output", ERROR, publish_dir, None, "publish directory is empty"))

    marker = publish_dir / CNAME_FILENAME
    if not marker.is_file():
        findings.append(Finding("output", ERROR, marker, None, "custom-domain marker is missing"))
    else:
        content = marker.read_text(encoding="utf-8").strip()
        if content != domain:
            findings.append(Finding(
                "output", ERROR, marker, None,
                f"custom-domain marker contains {content!r}, expected {domain!r}",
            ))
    return findings


def check_idempotent_build(build: Callable[[Path], object]) -> list[Finding]:
    """Build twice into fresh directories and compare the results.

    Args:
        build: Callable that writes a complete site into the given directory

    Returns:
        One finding listing the differing files, or nothing
    """
    with tempfile.TemporaryDirectory(prefix="uluwatu-a-") as first, \
            tempfile.TemporaryDirectory(prefix="uluwatu-b-") as second:
        build(Path(first))
        build(Path(second))
        if tree_digest(first) == tree_digest(second):
            logger.info("Build is idempotent (%s)", tree_digest(first)[:12])
            return []
        differing = diff_trees(first, second)

    return [Finding(
        "idempotent", ERROR, None, None,
        f"{len(differing)} file(s) differ between builds: {', '.join(differing[:10])}",
    )]


# ============================================================================
# Runners
# ============================================================================

def check_corpus(corpus: "Corpus", settings: "Settings") -> list[Finding]:
    """Run the per-post checks over every post, drafts included."""
    findings = []
    for post in corpus:
        findings.extend(check_math_delimiters(post))
        findings.extend(check_image_references(post, settings.static_path, settings.images_dir))
    return findings


def run_checks(
    corpus: "Corpus",
    settings: "Settings",
    publish_dir: Optional[Path] = None,
) -> CheckReport:
    """Run corpus checks, plus output checks when a publish dir is given."""
    report = CheckReport()
    report.extend(check_corpus(corpus, settings))
    if publish_dir is not None:
        report.extend(check_publish_output(publish_dir, settings.domain))
        if not settings.build_drafts:
            report.extend(check_drafts_excluded(corpus, publish_dir))

    for finding in report.findings:
        log = logger.error if finding.severity == ERROR else logger.warning
        log("%s", finding)
    return report
