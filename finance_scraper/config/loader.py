"""
YAML configuration loader with validation.

Loads the portal definition from YAML files with:
- Environment variable substitution
- Schema validation
- Default values
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
import structlog

logger = structlog.get_logger(__name__)


@dataclass
class PortalConfig:
    """Location and client settings for the funding portal."""

    base_url: str

    # Page locations, formatted with term_id / fin_id
    listing_path: str = "/Home/ListFunded?FinanceTerm={term_id}"
    application_path: str = "/Home/ViewApplication/{fin_id}"
    post_evaluation_path: str = "/Home/ViewPostEvaluation/{fin_id}"
    download_prefix: str = "/Home/DownloadFile"

    # Client behaviour
    requests_per_second: float = 2.0
    timeout: float = 30.0
    max_concurrency: int = 5

    @classmethod
    def from_dict(cls, data: dict) -> "PortalConfig":
        """Create from dictionary (e.g., from YAML)."""
        if not data.get("base_url"):
            raise ValueError("Missing required field: base_url")

        return cls(
            base_url=data["base_url"].rstrip("/"),
            listing_path=data.get("listing_path", cls.listing_path),
            application_path=data.get("application_path", cls.application_path),
            post_evaluation_path=data.get("post_evaluation_path", cls.post_evaluation_path),
            download_prefix=data.get("download_prefix", cls.download_prefix),
            requests_per_second=float(data.get("requests_per_second", 2.0)),
            timeout=float(data.get("timeout", 30.0)),
            max_concurrency=int(data.get("max_concurrency", 5)),
        )

    def listing_page(self, term_id: int) -> str:
        return self.listing_path.format(term_id=term_id)

    def application_page(self, fin_id: int) -> str:
        return self.application_path.format(fin_id=fin_id)

    def post_evaluation_page(self, fin_id: int) -> str:
        return self.post_evaluation_path.format(fin_id=fin_id)


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variables in text.

    Supports formats:
    - ${VAR_NAME} - required, warns and substitutes "" if missing
    - ${VAR_NAME:-default} - optional with default

    Args:
        text: Text with env var placeholders

    Returns:
        Text with substituted values
    """
    def replace(match):
        var_expr = match.group(1)
        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return os.getenv(var_name, default)
        else:
            value = os.getenv(var_expr)
            if value is None:
                logger.warning("env_var_not_set", var=var_expr)
                return ""
            return value

    return re.sub(r"\$\{([^}]+)\}", replace, text)


class ConfigLoader:
    """
    Configuration loader for the funding portal.

    Loads YAML config files and validates against expected schema.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            config_dir: Directory containing config files
                       (defaults to package config directory)
        """
        if config_dir:
            self.config_dir = Path(config_dir)
        else:
            self.config_dir = Path(__file__).parent

    def load_file(self, filename: str) -> dict:
        """
        Load YAML config file.

        Args:
            filename: Config file name (relative to config_dir)

        Returns:
            Parsed config dict
        """
        filepath = self.config_dir / filename

        if not filepath.exists():
            raise FileNotFoundError(f"Config file not found: {filepath}")

        logger.info("loading_config", file=str(filepath))

        with open(filepath, "r", encoding="utf-8") as f:
            content = f.read()

        content = substitute_env_vars(content)
        config = yaml.safe_load(content)

        return config or {}

    def load_portal(self, filename: str = "portal.yml") -> PortalConfig:
        """
        Load the portal definition from YAML.

        Args:
            filename: Portal config file name

        Returns:
            PortalConfig object

        Raises:
            ValueError: If required fields missing
        """
        config = self.load_file(filename)
        portal = PortalConfig.from_dict(config.get("portal", {}))
        logger.info("portal_loaded", base_url=portal.base_url)
        return portal


def load_portal(config_path: Optional[str] = None) -> PortalConfig:
    """
    Convenience function to load the portal config.

    Args:
        config_path: Optional path to a portal YAML file

    Returns:
        PortalConfig object
    """
    if config_path:
        loader = ConfigLoader(str(Path(config_path).parent))
        return loader.load_portal(Path(config_path).name)
    return ConfigLoader().load_portal()
