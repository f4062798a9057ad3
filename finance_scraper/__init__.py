"""
Finance Scraper - structured extraction from the event funding portal.

Architecture:
- core/: Stable foundation (models, errors, HTTP client, normalizers, tree helpers)
- parsers/: Extraction strategies (event listing, application, post-evaluation)
- config/: YAML-driven portal definition
- orchestrator: Term-level pipeline composing all records
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
