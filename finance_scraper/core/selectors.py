"""
Tree helpers shared by every extractor.

Provides a narrow read-only query interface over parsed HTML so the
extractors only depend on id, tag and CSS lookups plus child enumeration.
"""

from typing import Optional, Union

from bs4 import BeautifulSoup, Tag

import structlog

from .models import Document

logger = structlog.get_logger(__name__)


# Links to supporting documents all go through this endpoint
DOWNLOAD_PREFIX = "/Home/DownloadFile"

# Element names treated as section headings inside form groups
HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


def parse_html(html: str) -> BeautifulSoup:
    """Parse raw HTML into a navigable tree."""
    return BeautifulSoup(html, "lxml")


def element_children(node: Optional[Tag]) -> list[Tag]:
    """
    Return the element children of a node in document order.

    Text, comment and other non-element nodes are dropped.
    """
    if node is None:
        return []
    return [child for child in node.children if isinstance(child, Tag)]


def cell_text(node: Tag) -> str:
    """Trimmed text content of an element and its descendants."""
    return node.get_text().strip()


class DocumentQuery:
    """
    Read-only lookups over a parsed document or any subtree.

    Usage:
        query = DocumentQuery(parse_html(html))
        table = query.by_id("FundedTable")
    """

    def __init__(self, root: Union[BeautifulSoup, Tag]):
        """
        Initialize query with a parsed root.

        Args:
            root: BeautifulSoup document or element to search under
        """
        self.root = root

    def by_id(self, element_id: str) -> Optional[Tag]:
        """Find the descendant with the given id attribute."""
        return self.root.find(id=element_id)

    def by_tag(self, name: Union[str, list[str]]) -> list[Tag]:
        """Find all descendants with the given tag name(s), in document order."""
        return list(self.root.find_all(name))

    def by_selector(self, selector: str) -> list[Tag]:
        """Find all descendants matching a CSS selector."""
        return list(self.root.select(selector))

    def first(self, selector: str) -> Optional[Tag]:
        """Find the first descendant matching a CSS selector."""
        return self.root.select_one(selector)

    def children(self) -> list[Tag]:
        """Element children of the root."""
        return element_children(self.root)


def is_document_link(href: Optional[str], prefix: str = DOWNLOAD_PREFIX) -> bool:
    """Check if an href points at the document download endpoint."""
    return bool(href) and href.startswith(prefix)


def extract_document_links(
    root: Union[BeautifulSoup, Tag],
    prefix: str = DOWNLOAD_PREFIX,
) -> list[Document]:
    """
    Extract every supporting-document link from a page.

    Order follows the document and repeated links are all kept.

    Args:
        root: Parsed HTML
        prefix: Download endpoint prefix an href must start with

    Returns:
        List of Document records
    """
    documents = []
    for link in DocumentQuery(root).by_tag("a"):
        href = link.get("href")
        if not is_document_link(href, prefix):
            continue
        documents.append(Document(label=cell_text(link), path=href))

    logger.debug("document_links_found", count=len(documents))
    return documents
