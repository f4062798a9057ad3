"""
Core layer - stable foundation for the scraping system.

Components:
- models: Event, CostLine, Document and the composed record dataclasses
- errors: Structural and field-level extraction errors
- http_client: Throttled, retrying portal client
- selectors: Element children, narrow tree queries, document links
- normalizer: Identifier, compact date and dollar amount normalization
"""

from .models import (
    Event,
    CostLine,
    Document,
    ApplicationRecord,
    PostEvaluationRecord,
    EventRecord,
)
from .errors import ScraperError, StructuralPreconditionError, FieldParseError
from .normalizer import (
    parse_fin_id,
    parse_compact_date,
    parse_amount,
    parse_optional_amount,
)
from .selectors import (
    DocumentQuery,
    element_children,
    extract_document_links,
    parse_html,
)

__all__ = [
    "Event",
    "CostLine",
    "Document",
    "ApplicationRecord",
    "PostEvaluationRecord",
    "EventRecord",
    "ScraperError",
    "StructuralPreconditionError",
    "FieldParseError",
    "parse_fin_id",
    "parse_compact_date",
    "parse_amount",
    "parse_optional_amount",
    "DocumentQuery",
    "element_children",
    "extract_document_links",
    "parse_html",
]
