"""
Term listing parser.

Converts the funded-events table of a term into Event records.
"""

from bs4 import BeautifulSoup, Tag

from finance_scraper.core.errors import StructuralPreconditionError
from finance_scraper.core.models import Event
from finance_scraper.core.normalizer import (
    parse_fin_id,
    parse_compact_date,
    parse_optional_amount,
)
from finance_scraper.core.selectors import DocumentQuery, cell_text, element_children

from .base import ExtractorStrategy


# Container holding header and body of the results table
RESULTS_TABLE_ID = "FundedTable"

# Action button linking to an event's post-evaluation form
POST_EVALUATION_BUTTON = ".btn-info"

# id, organization, name, date, venue, awarded, updated
EVENT_COLUMNS = 7


class EventListExtractor(ExtractorStrategy):
    """Parser for the funded-events listing of one term."""

    def extract(self, soup: BeautifulSoup) -> list[Event]:
        """
        Extract every event row from the listing.

        Args:
            soup: Parsed listing page

        Returns:
            One Event per body row, in table order

        Raises:
            StructuralPreconditionError: Table, body or columns missing
            FieldParseError: A cell cannot be normalized
        """
        body = self._find_body(soup)
        events = [self._parse_row(row) for row in element_children(body)]

        self.logger.info("events_extracted", count=len(events))
        return events

    def _find_body(self, soup: BeautifulSoup) -> Tag:
        """Locate the last section of the results table, which holds data rows."""
        table = DocumentQuery(soup).by_id(RESULTS_TABLE_ID)
        sections = element_children(table)
        if not sections:
            raise StructuralPreconditionError(
                f"Missing #{RESULTS_TABLE_ID} tbody",
                context={"table_found": table is not None},
            )
        return sections[-1]

    def _parse_row(self, row: Tag) -> Event:
        cells = element_children(row)
        if len(cells) < EVENT_COLUMNS:
            raise StructuralPreconditionError(
                f"Listing row has {len(cells)} cells, expected {EVENT_COLUMNS}",
                context={"row": cell_text(row)[:100]},
            )

        fin_id, organization, name, date, venue, awarded, updated = (
            cell_text(cell) for cell in cells[:EVENT_COLUMNS]
        )

        button = DocumentQuery(row).first(POST_EVALUATION_BUTTON)

        return Event(
            id=parse_fin_id(fin_id),
            organization=organization,
            name=name,
            date=parse_compact_date(date),
            venue=venue,
            awarded=parse_optional_amount(awarded),
            updated=parse_compact_date(updated),
            has_post_evaluation=bool(button is not None and button.get("href")),
        )
