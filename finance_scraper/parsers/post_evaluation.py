"""
Post-evaluation form parser.

The evaluation form lays questions out as form groups rather than the
definition lists used by the application form.
"""

from typing import Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from finance_scraper.core.models import PostEvaluationRecord
from finance_scraper.core.selectors import (
    HEADING_TAGS,
    DocumentQuery,
    extract_document_links,
)

from .base import ExtractorStrategy


# Answer recorded for a checkbox without a checked attribute
POST_EVALUATION_UNCHECKED = ""

FORM_GROUP = ".form-group"


def _node_text(node) -> str:
    if isinstance(node, Tag):
        return node.get_text()
    return str(node)


def _first_text_node(nodes) -> Optional[NavigableString]:
    """First plain text node (comments, CDATA and the like excluded)."""
    for node in nodes:
        if isinstance(node, NavigableString) and not isinstance(node, PreformattedString):
            return node
    return None


class PostEvaluationExtractor(ExtractorStrategy):
    """Parser for post-event evaluation pages."""

    def extract(self, soup: BeautifulSoup) -> PostEvaluationRecord:
        """
        Extract the post-evaluation record.

        A page without form groups yields an empty question mapping.

        Args:
            soup: Parsed post-evaluation page

        Returns:
            PostEvaluationRecord with questions and documents
        """
        questions: dict[str, str] = {}

        for group in DocumentQuery(soup).by_selector(FORM_GROUP):
            if group.find(HEADING_TAGS):
                # Section divider, e.g. "PART B - SUPPORTING DOCUMENTS"
                continue

            nodes = list(group.children)
            if len(nodes) < 2:
                self.logger.warning("form_group_without_prompt", html=str(group)[:100])
                continue

            prompt = _node_text(nodes[1]).strip()
            questions[prompt] = self._answer(group, nodes)

        record = PostEvaluationRecord(
            questions=questions,
            documents=extract_document_links(soup, self.download_prefix),
        )

        self.logger.info(
            "post_evaluation_extracted",
            questions=len(record.questions),
            documents=len(record.documents),
        )
        return record

    @staticmethod
    def _answer(group: Tag, nodes: list) -> str:
        checkbox = group.find("input")
        if checkbox is not None:
            checked = checkbox.get("checked")
            return checked if checked is not None else POST_EVALUATION_UNCHECKED

        text = _first_text_node(nodes[1:])
        return text.strip() if text is not None else ""
