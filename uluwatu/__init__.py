"""
uluwatu

Content checks, build and publish for a Markdown blog.
"""

__version__ = "0.1.0"

# Content exports
from uluwatu.content import Corpus, Post, FrontMatter, parse_front_matter

# Config exports
from uluwatu.config import Settings, BuildProfile

# Build exports
from uluwatu.build import build_site, BuildResult

# Check exports
from uluwatu.checks import CheckReport, Finding, run_checks

# Exception exports
from uluwatu import exceptions

__all__ = [
    # Content
    "Corpus",
    "Post",
    "FrontMatter",
    "parse_front_matter",
    # Config
    "Settings",
    "BuildProfile",
    # Build
    "build_site",
    "BuildResult",
    # Checks
    "CheckReport",
    "Finding",
    "run_checks",
    # Exceptions module (access as uluwatu.exceptions.BuildError, etc.)
    "exceptions",
]
