"""Tests for content-integrity checks."""

import pytest
from pathlib import Path

from uluwatu.checks import (
    CheckReport,
    ERROR,
    WARNING,
    Finding,
    check_drafts_excluded,
    check_idempotent_build,
    check_image_references,
    check_math_delimiters,
    check_publish_output,
    extract_image_references,
    find_math_errors,
    is_external,
    mask_code,
    run_checks,
)
from uluwatu.config import Settings
from uluwatu.content import Corpus, FrontMatter, Post
from uluwatu.exceptions import CheckFailed


def make_post(body: str, path: Path = Path("content/posts/p.md"), body_line: int = 1, **meta) -> Post:
    return Post(
        path=path,
        section="posts",
        slug=path.stem,
        front_matter=FrontMatter(**meta),
        body=body,
        body_line=body_line,
    )


class TestMaskCode:
    """Tests for hiding code from the scanners."""

    def test_fenced_block_blanked(self):
        lines = ["before", "```python", "x = '$$'", "```", "after"]

        assert mask_code(lines) == ["before", "", "", "", "after"]

    def test_tilde_fence(self):
        lines = ["~~~", "$", "~~~", "$x$"]

        assert mask_code(lines) == ["", "", "", "$x$"]

    def test_inline_code_blanked_keeps_length(self):
        masked = mask_code(["use `$PATH` here"])

        assert "$" not in masked[0]
        assert len(masked[0]) == len("use `$PATH` here")


class TestMathDelimiters:
    """Tests for formula delimiter balance."""

    def test_balanced(self):
        text = r"""Inline $a_1 + b$ and \(x\).

$$
\sum_i x_i
$$

\[ y = mx + c \]
"""
        assert find_math_errors(text) == []

    def test_unclosed_display(self):
        errors = find_math_errors("intro\n$$\nx = 1\n")

        assert len(errors) == 1
        assert errors[0][0] == 2
        assert "'$$' is never closed" in errors[0][1]

    def test_stray_closer(self):
        errors = find_math_errors(r"text \] more")

        assert errors == [(1, r"'\]' has no matching opening delimiter")]

    def test_unclosed_bracket(self):
        errors = find_math_errors("ok\n\n" + r"\[ x + y")

        assert [line for line, _ in errors] == [3]

    def test_inline_does_not_cross_paragraphs(self):
        """A blank line ends an inline formula."""
        errors = find_math_errors("cost is $5\n\nand then 3$ more\n")

        assert [line for line, _ in errors] == [1, 3]

    def test_crlf_line_endings(self):
        """Windows line endings keep line numbers and paragraph breaks."""
        assert find_math_errors("$$\r\nx = 1\r\n$$\r\n") == []

        errors = find_math_errors("cost is $5\r\n\r\nand then 3$ more\r\n")

        assert [line for line, _ in errors] == [1, 3]

    def test_escaped_dollar_is_literal(self):
        assert find_math_errors(r"costs \$5 or \$6") == []

    def test_dollars_in_code_ignored(self):
        text = "```rust\nlet s = \"$$\";\n```\n\n`$` sign\n"

        assert find_math_errors(text) == []

    def test_line_numbers_offset(self):
        errors = find_math_errors("$$ open", first_line=12)

        assert errors[0][0] == 12

    def test_post_with_math_enabled(self):
        """Findings carry file line numbers."""
        post = make_post("line\n$$ x\n", body_line=8, math=True)

        findings = check_math_delimiters(post)

        assert len(findings) == 1
        assert findings[0].check == "math"
        assert findings[0].severity == ERROR
        assert findings[0].line == 9

    def test_post_without_math_not_scanned(self):
        """Unbalanced single dollars are fine when math is off."""
        post = make_post("costs $5", math=False)

        assert check_math_delimiters(post) == []

    def test_display_math_without_flag_warns(self):
        post = make_post("$$ x $$", math=False)

        findings = check_math_delimiters(post)

        assert [f.severity for f in findings] == [WARNING]


class TestImageReferences:
    """Tests for image reference extraction and resolution."""

    def test_extract_all_forms(self):
        text = """![a](/images/a.png)
<img class="w" src="/images/b.png">
{{< figure src="/images/c.png" >}}
![d][ref]

[ref]: /images/d.png "title"
"""
        refs = extract_image_references(text, first_line=5)

        assert refs == [
            (5, "/images/a.png"),
            (6, "/images/b.png"),
            (7, "/images/c.png"),
            (8, "/images/d.png"),
        ]

    def test_title_in_markdown_image(self):
        refs = extract_image_references('![a](/images/a.png "A chart")')

        assert refs == [(1, "/images/a.png")]

    def test_images_in_code_ignored(self):
        refs = extract_image_references("```\n![a](/images/a.png)\n```\n")

        assert refs == []

    def test_external(self):
        assert is_external("https://example.com/a.png")
        assert is_external("//cdn.example.com/a.png")
        assert is_external("data:image/png;base64,AAAA")
        assert not is_external("/images/a.png")

    def test_existing_image_passes(self, site_dir):
        post = make_post(
            "![x](/images/latency.png?v=2)\n![y](images/latency.png)\n",
            path=site_dir / "content" / "posts" / "p.md",
        )

        assert check_image_references(post, site_dir / "static") == []

    def test_missing_image(self, site_dir):
        post = make_post(
            "text\n![x](/images/missing.png)\n",
            path=site_dir / "content" / "posts" / "p.md",
            body_line=6,
        )

        findings = check_image_references(post, site_dir / "static")

        assert len(findings) == 1
        assert findings[0].line == 7
        assert "not found" in findings[0].message

    def test_outside_images_dir(self, site_dir):
        post = make_post(
            "![x](/img/latency.png)\n![y](/images/../config.toml)\n",
            path=site_dir / "content" / "posts" / "p.md",
        )

        findings = check_image_references(post, site_dir / "static")

        assert len(findings) == 2
        assert all("outside" in f.message for f in findings)

    def test_external_skipped(self, site_dir):
        post = make_post(
            "![x](https://example.com/x.png)",
            path=site_dir / "content" / "posts" / "p.md",
        )

        assert check_image_references(post, site_dir / "static") == []

    def test_front_matter_images_checked(self, site_dir):
        post = make_post(
            "",
            path=site_dir / "content" / "posts" / "p.md",
            images=["/images/latency.png", "/images/cover.png"],
        )

        findings = check_image_references(post, site_dir / "static")

        assert len(findings) == 1
        assert findings[0].line is None
        assert "cover.png" in findings[0].message

    def test_bundle_resource(self, site_dir):
        """A page bundle may reference files next to its index.md."""
        post = make_post(
            "![c](chart.png)",
            path=site_dir / "content" / "posts" / "heap-snapshot" / "index.md",
        )

        assert check_image_references(post, site_dir / "static") == []


class TestOutputChecks:
    """Tests for publish directory checks."""

    def test_publish_output_ok(self, tmp_path):
        (tmp_path / "index.html").write_text("<html></html>")
        (tmp_path / "CNAME").write_text("www.uluwatu.xyz\n")

        assert check_publish_output(tmp_path, "www.uluwatu.xyz") == []

    def test_publish_output_missing_dir(self, tmp_path):
        findings = check_publish_output(tmp_path / "public", "www.uluwatu.xyz")

        assert [f.message for f in findings] == ["publish directory does not exist"]

    def test_publish_output_empty_and_no_marker(self, tmp_path):
        findings = check_publish_output(tmp_path, "www.uluwatu.xyz")

        messages = [f.message for f in findings]
        assert "publish directory is empty" in messages
        assert "custom-domain marker is missing" in messages

    def test_publish_output_wrong_domain(self, tmp_path):
        (tmp_path / "index.html").write_text("<html></html>")
        (tmp_path / "CNAME").write_text("example.com\n")

        findings = check_publish_output(tmp_path, "www.uluwatu.xyz")

        assert len(findings) == 1
        assert "expected 'www.uluwatu.xyz'" in findings[0].message

    def test_draft_page_detected(self, site_dir, tmp_path):
        corpus = Corpus.load(site_dir / "content")
        page = tmp_path / "posts" / "async-barrier" / "index.html"
        page.parent.mkdir(parents=True)
        page.write_text("<html></html>")

        findings = check_drafts_excluded(corpus, tmp_path)

        assert len(findings) == 1
        assert findings[0].check == "drafts"

    def test_draft_link_detected(self, site_dir, tmp_path):
        corpus = Corpus.load(site_dir / "content")
        (tmp_path / "index.html").write_text(
            '<a href="https://www.uluwatu.xyz/posts/async-barrier/">Async barrier</a>'
        )

        findings = check_drafts_excluded(corpus, tmp_path)

        assert len(findings) == 1
        assert findings[0].path == tmp_path / "index.html"

    def test_clean_output_has_no_draft_findings(self, site_dir, tmp_path):
        corpus = Corpus.load(site_dir / "content")
        (tmp_path / "index.html").write_text(
            '<a href="https://www.uluwatu.xyz/posts/order-book/">Order book</a>'
        )

        assert check_drafts_excluded(corpus, tmp_path) == []


class TestIdempotentBuild:
    """Tests for the build-twice comparison."""

    def test_deterministic_build(self):
        def build(target):
            (target / "index.html").write_text("same")

        assert check_idempotent_build(build) == []

    def test_nondeterministic_build(self):
        calls = []

        def build(target):
            calls.append(target)
            (target / "index.html").write_text(f"build {len(calls)}")
            (target / "stable.txt").write_text("stable")

        findings = check_idempotent_build(build)

        assert len(findings) == 1
        assert "index.html" in findings[0].message
        assert "stable.txt" not in findings[0].message


class TestReport:
    """Tests for CheckReport and the runner."""

    def test_report_raises_on_errors(self):
        report = CheckReport([
            Finding("math", ERROR, None, 1, "bad"),
            Finding("math", WARNING, None, 2, "meh"),
        ])

        assert not report.ok
        with pytest.raises(CheckFailed) as excinfo:
            report.raise_for_failures()
        assert len(excinfo.value.findings) == 1

    def test_warnings_only_is_ok(self):
        report = CheckReport([Finding("math", WARNING, None, 2, "meh")])

        assert report.ok
        report.raise_for_failures()

    def test_finding_str(self):
        finding = Finding("images", ERROR, Path("a.md"), 3, "missing")

        assert str(finding) == "a.md:3: error: [images] missing"

    def test_sample_site_is_clean(self, site_dir, settings):
        corpus = Corpus.load(site_dir / "content")

        report = run_checks(corpus, settings)

        assert report.findings == []

    def test_preview_profile_skips_drafts_check(self, site_dir, tmp_path):
        """Preview builds include drafts, so a rendered draft is not a finding."""
        settings = Settings(site_dir, profile="preview")
        corpus = Corpus.load(site_dir / "content")
        page = tmp_path / "posts" / "async-barrier" / "index.html"
        page.parent.mkdir(parents=True)
        page.write_text("<html></html>")
        (tmp_path / "CNAME").write_text("www.uluwatu.xyz\n")

        report = run_checks(corpus, settings, publish_dir=tmp_path)

        assert [f for f in report.findings if f.check == "drafts"] == []

    def test_production_profile_runs_drafts_check(self, site_dir, settings, tmp_path):
        corpus = Corpus.load(site_dir / "content")
        page = tmp_path / "posts" / "async-barrier" / "index.html"
        page.parent.mkdir(parents=True)
        page.write_text("<html></html>")
        (tmp_path / "CNAME").write_text("www.uluwatu.xyz\n")

        report = run_checks(corpus, settings, publish_dir=tmp_path)

        assert [f.check for f in report.errors] == ["drafts"]
