"""Configuration management for uluwatu.

Site settings are read from the Hugo-style ``config.toml`` at the site root.
The same file drives both the native generator and an external ``hugo`` run,
so top-level keys keep Hugo's names (``baseURL``, ``publishDir``, ...) and
tool-specific settings live in an ``[uluwatu]`` table.

Configuration Resolution Order:
1. Environment variables (highest priority)
2. TOML config file
3. Built-in defaults
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Any
from urllib.parse import urlparse

from .exceptions import ConfigError

# Python 3.11+ has tomllib in stdlib, otherwise use tomli
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.toml"
GENERATORS = ("native", "hugo")

# Top-level Hugo keys and the settings attribute each one populates
SITE_KEYS = {
    "baseURL": "base_url",
    "title": "title",
    "languageCode": "language",
    "contentDir": "content_dir",
    "staticDir": "static_dir",
    "publishDir": "publish_dir",
}

# Settings that must hold strings once config and environment are applied
STRING_SETTINGS = (
    "base_url", "title", "language", "content_dir", "static_dir", "publish_dir",
    "generator", "hugo_binary", "main_branch", "publish_branch", "images_dir",
    "templates_dir", "log_level",
)


def load_toml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from TOML file.

    Args:
        config_path: Path to config.toml file

    Returns:
        Dictionary with configuration sections

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigError: If config file is invalid TOML
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}")


def get_config_path(site_dir: Path, config_override: Optional[Path] = None) -> Path:
    """Get configuration file path for a site.

    Args:
        site_dir: Site root directory
        config_override: Optional explicit config path

    Returns:
        Path to configuration file

    Examples:
        >>> get_config_path(Path("blog"))
        PosixPath('blog/config.toml')
    """
    if config_override:
        return Path(config_override)
    return Path(site_dir) / CONFIG_FILENAME


def domain_from_url(base_url: str) -> str:
    """Return the host part of a base URL (``https://www.x.y/`` -> ``www.x.y``)."""
    return urlparse(base_url).netloc or base_url.strip("/")


class BuildProfile:
    """Build profile settings.

    Profiles are operator-declared: production is what the pages branch
    receives, preview is for local authoring.
    """

    PROFILES = {
        "production": {
            "minify": True,
            "build_drafts": False,
            "log_level": "info",
        },
        "preview": {
            "minify": False,
            "build_drafts": True,
            "log_level": "debug",
        },
    }

    @classmethod
    def get_profile(cls, name: str) -> dict[str, Any]:
        """Get build profile settings.

        Args:
            name: Profile name (production or preview)

        Returns:
            Dictionary with profile settings

        Raises:
            ConfigError: If profile name is unknown
        """
        if name not in cls.PROFILES:
            raise ConfigError(
                f"Unknown build profile: {name}. "
                f"Available: {list(cls.PROFILES.keys())}"
            )
        return cls.PROFILES[name].copy()


class Settings:
    """Site settings with TOML configuration support.

    Configuration Loading:
    1. Load from TOML config file (if exists)
    2. Apply build profile defaults
    3. Apply ``[uluwatu]`` overrides
    4. Apply environment variable overrides
    """

    def __init__(
        self,
        site_dir: Path | str = ".",
        config_path: Optional[Path] = None,
        profile: Optional[str] = None,
    ):
        """Initialize settings.

        Args:
            site_dir: Site root; relative directories resolve against it
            config_path: Optional explicit path to config.toml
            profile: Build profile name, overriding config and environment
        """
        self.site_dir = Path(site_dir)
        self.config_path = get_config_path(self.site_dir, config_path)
        self._config: dict[str, Any] = {}

        if self.config_path.exists():
            self._config = load_toml_config(self.config_path)
            logger.debug("Loaded site config from %s", self.config_path)
        elif config_path is not None:
            raise ConfigError(f"Config file not found: {self.config_path}")

        self._apply_config(profile)

    def _apply_config(self, profile_override: Optional[str]):
        """Apply TOML configuration to settings (env var > TOML > default)."""
        tool_config = self._config.get("uluwatu", {})
        if not isinstance(tool_config, dict):
            raise ConfigError("[uluwatu] must be a table")

        # Built-in defaults
        self.base_url = "https://www.uluwatu.xyz/"
        self.title = "uluwatu"
        self.language = "en-us"
        self.content_dir = "content"
        self.static_dir = "static"
        self.publish_dir = "public"

        for key, attr in SITE_KEYS.items():
            if key in self._config:
                setattr(self, attr, self._config[key])

        # Build profile (explicit argument > env var > TOML > default)
        self.profile = profile_override or os.environ.get(
            "ULUWATU_PROFILE",
            tool_config.get("profile", "production")
        )
        if not isinstance(self.profile, str):
            raise ConfigError(f"profile must be a string, got {type(self.profile).__name__}")
        for key, value in BuildProfile.get_profile(self.profile).items():
            setattr(self, key, value)

        self.generator = tool_config.get("generator", "native")
        self.hugo_binary = tool_config.get("hugo_binary", "hugo")
        self.main_branch = tool_config.get("main_branch", "main")
        self.publish_branch = tool_config.get("publish_branch", "gh-pages")
        self.images_dir = tool_config.get("images_dir", "images")
        self.templates_dir = tool_config.get("templates_dir", "templates")
        self.domain = tool_config.get("domain")
        for key in ("minify", "build_drafts", "log_level"):
            if key in tool_config:
                setattr(self, key, tool_config[key])

        # Environment variable overrides (highest priority)
        if "ULUWATU_BASE_URL" in os.environ:
            self.base_url = os.environ["ULUWATU_BASE_URL"]
        if "ULUWATU_DOMAIN" in os.environ:
            self.domain = os.environ["ULUWATU_DOMAIN"]
        if "ULUWATU_GENERATOR" in os.environ:
            self.generator = os.environ["ULUWATU_GENERATOR"]
        if "ULUWATU_PUBLISH_DIR" in os.environ:
            self.publish_dir = os.environ["ULUWATU_PUBLISH_DIR"]
        if "ULUWATU_LOG_LEVEL" in os.environ:
            self.log_level = os.environ["ULUWATU_LOG_LEVEL"]

        self._check_types()

        if self.generator not in GENERATORS:
            raise ConfigError(
                f"Unknown generator: {self.generator}. Available: {list(GENERATORS)}"
            )
        if not self.base_url.endswith("/"):
            self.base_url += "/"
        if not self.domain:
            self.domain = domain_from_url(self.base_url)

    def _check_types(self):
        """Reject config values of the wrong type before they are used."""
        for attr in STRING_SETTINGS:
            value = getattr(self, attr)
            if not isinstance(value, str):
                raise ConfigError(f"{attr} must be a string, got {type(value).__name__}")
        if self.domain is not None and not isinstance(self.domain, str):
            raise ConfigError(f"domain must be a string, got {type(self.domain).__name__}")
        for attr in ("minify", "build_drafts"):
            if not isinstance(getattr(self, attr), bool):
                raise ConfigError(f"{attr} must be a boolean")

    def resolve(self, directory: str | Path) -> Path:
        """Resolve a configured directory against the site root."""
        path = Path(directory)
        if path.is_absolute():
            return path
        return self.site_dir / path

    @property
    def content_path(self) -> Path:
        return self.resolve(self.content_dir)

    @property
    def static_path(self) -> Path:
        return self.resolve(self.static_dir)

    @property
    def templates_path(self) -> Path:
        return self.resolve(self.templates_dir)

    @property
    def publish_path(self) -> Path:
        return self.resolve(self.publish_dir)
