"""
Configuration module for the funding portal.

Provides:
- YAML config loading with validation
- Portal URL and client settings
- Environment variable substitution
"""

from .loader import ConfigLoader, PortalConfig, load_portal

__all__ = ["ConfigLoader", "PortalConfig", "load_portal"]
