"""Custom exceptions for uluwatu.

This module provides exception classes used throughout the package.
"""

from pathlib import Path


class UluwatuError(Exception):
    """Base exception for all uluwatu errors."""

    def __init__(self, message: str, details: dict | None = None):
        """Initialize exception with message and optional details.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigError(UluwatuError):
    """Exception raised when site configuration is invalid."""

    pass


class FrontMatterError(UluwatuError):
    """Exception raised when a document header cannot be parsed.

    Attributes:
        path: Document the header belongs to (None for in-memory text)
    """

    path: Path | None

    def __init__(self, message: str, path: Path | None = None):
        """Initialize front-matter error.

        Args:
            message: Human-readable error message
            path: Path of the offending document, if known
        """
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message, details={"path": str(path) if path else None})
        self.path = path


class ContentError(UluwatuError):
    """Exception raised for corpus-level problems (missing dir, URL clash)."""

    pass


class BuildError(UluwatuError):
    """Exception raised when the site generator fails.

    Attributes:
        returncode: Exit status of the external generator (None if not run)
        stderr: Captured standard error of the generator
    """

    returncode: int | None
    stderr: str

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        """Initialize build error.

        Args:
            message: Human-readable error message
            returncode: Exit status of the generator process
            stderr: Captured standard error
        """
        super().__init__(
            message,
            details={"returncode": returncode, "stderr": stderr},
        )
        self.returncode = returncode
        self.stderr = stderr


class CheckFailed(UluwatuError):
    """Exception raised when content checks report errors.

    Attributes:
        findings: Error-severity findings that caused the failure
    """

    def __init__(self, message: str, findings: list):
        super().__init__(message, details={"count": len(findings)})
        self.findings = findings


class DeployError(UluwatuError):
    """Exception raised when publishing to the pages branch fails."""

    pass
