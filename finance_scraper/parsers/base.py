"""
Base class for extractor strategies.

Extractors implement the extraction phase - converting one parsed
portal page into structured records. They never fetch, and they keep
no state between calls.
"""

from abc import ABC, abstractmethod
from typing import Any

from bs4 import BeautifulSoup

import structlog

from finance_scraper.core.selectors import DOWNLOAD_PREFIX, parse_html

logger = structlog.get_logger(__name__)


class ExtractorStrategy(ABC):
    """
    Abstract base class for extractor strategies.

    Each strategy handles one page type:
    - Term listing
    - Application form
    - Post-evaluation form
    """

    def __init__(self, download_prefix: str = DOWNLOAD_PREFIX):
        """
        Initialize extractor.

        Args:
            download_prefix: href prefix identifying supporting documents
        """
        self.download_prefix = download_prefix
        self.logger = logger.bind(extractor=self.__class__.__name__)

    @abstractmethod
    def extract(self, soup: BeautifulSoup) -> Any:
        """
        Extract records from a parsed page.

        Args:
            soup: Parsed HTML document

        Returns:
            Strategy-specific record(s)
        """
        pass

    def parse(self, html: str) -> Any:
        """Parse raw HTML and extract records from it."""
        return self.extract(parse_html(html))
