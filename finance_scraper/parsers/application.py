"""
Application form parser.

Extracts:
- Question/answer pairs from definition lists
- Cost breakdown lines from the budget table
- Supporting document links
"""

from bs4 import BeautifulSoup, Tag

from finance_scraper.core.errors import FieldParseError, StructuralPreconditionError
from finance_scraper.core.models import ApplicationRecord, CostLine
from finance_scraper.core.normalizer import parse_amount, parse_optional_amount
from finance_scraper.core.selectors import (
    DocumentQuery,
    cell_text,
    element_children,
    extract_document_links,
)

from .base import ExtractorStrategy


# Answer recorded for a checkbox without a checked attribute
APPLICATION_UNCHECKED = "unchecked"

# category, description, requested, awarded
REQUIRED_COST_COLUMNS = 4


class ApplicationExtractor(ExtractorStrategy):
    """Parser for application form pages."""

    def extract(self, soup: BeautifulSoup) -> ApplicationRecord:
        """
        Extract the application record.

        Args:
            soup: Parsed application page

        Returns:
            ApplicationRecord with questions, costs and documents

        Raises:
            StructuralPreconditionError: Cost table body missing or too narrow
            FieldParseError: A cell cannot be normalized
        """
        query = DocumentQuery(soup)

        record = ApplicationRecord(
            questions=self._extract_questions(query),
            costs=self._extract_costs(query),
            documents=extract_document_links(soup, self.download_prefix),
        )

        self.logger.info(
            "application_extracted",
            questions=len(record.questions),
            costs=len(record.costs),
            documents=len(record.documents),
        )
        return record

    def _extract_questions(self, query: DocumentQuery) -> dict[str, str]:
        """
        Read term/definition pairs from every definition list.

        Labels repeated in a later list overwrite earlier answers.
        """
        questions: dict[str, str] = {}

        for dl in query.by_tag("dl"):
            items = element_children(dl)
            if len(items) % 2:
                raise FieldParseError(
                    "Definition list has a term without a definition",
                    context={"term": cell_text(items[-1])},
                )

            for term, definition in zip(items[::2], items[1::2]):
                label = cell_text(term)
                if label in questions:
                    self.logger.debug("question_overwritten", label=label)
                questions[label] = self._answer(definition)

        return questions

    @staticmethod
    def _answer(definition: Tag) -> str:
        checkbox = definition.find("input")
        if checkbox is None:
            return cell_text(definition)
        checked = checkbox.get("checked")
        return checked if checked is not None else APPLICATION_UNCHECKED

    def _extract_costs(self, query: DocumentQuery) -> list[CostLine]:
        """Parse the budget table, skipping the totals row."""
        tbody = query.first("tbody")
        if tbody is None:
            raise StructuralPreconditionError("Missing cost table tbody")

        costs = []
        for row in element_children(tbody):
            cells = element_children(row)
            if cells and cells[0].has_attr("colspan"):
                self.logger.debug("cost_row_skipped", row=cell_text(row)[:100])
                continue

            if len(cells) < REQUIRED_COST_COLUMNS:
                raise StructuralPreconditionError(
                    f"Cost row has {len(cells)} cells, expected at least {REQUIRED_COST_COLUMNS}",
                    context={"row": cell_text(row)[:100]},
                )

            values = [cell_text(cell) for cell in cells[:6]]
            values += [""] * (6 - len(values))
            category, description, requested, awarded, appeal_requested, appeal_approved = values

            costs.append(CostLine(
                category=category,
                description=description,
                requested=parse_amount(requested),
                awarded=parse_amount(awarded),
                appeal_requested=parse_optional_amount(appeal_requested),
                appeal_approved=parse_optional_amount(appeal_approved),
            ))

        return costs
