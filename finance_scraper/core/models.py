"""
Data models for the finance scraper.

Every record is derived in full from one parsed page. Optional values
are ``None`` in Python and omitted from serialized output.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional


def _serialize(data: dict) -> dict:
    """Drop absent values and render datetimes as ISO strings."""
    result = {}
    for k, v in data.items():
        if v is None:
            continue
        if isinstance(v, datetime):
            result[k] = v.isoformat()
        elif isinstance(v, dict):
            result[k] = _serialize(v)
        elif isinstance(v, list):
            result[k] = [_serialize(i) if isinstance(i, dict) else i for i in v]
        else:
            result[k] = v
    return result


@dataclass
class Event:
    """One funded event row from a term listing."""

    id: int
    organization: str
    name: str
    date: datetime  # UTC
    venue: str
    updated: datetime  # UTC
    awarded: Optional[float] = None
    has_post_evaluation: bool = False

    def to_dict(self) -> dict:
        return _serialize(asdict(self))


@dataclass
class CostLine:
    """
    One requested budget line from an application.

    Categories seen on the portal: Flyers, Programs, Food, Contract,
    Facility, Technology, Security, Other.
    """

    category: str
    description: str
    requested: float
    awarded: float
    appeal_requested: Optional[float] = None
    appeal_approved: Optional[float] = None

    def to_dict(self) -> dict:
        return _serialize(asdict(self))


@dataclass
class Document:
    """Supporting document link (metadata only, never downloaded)."""

    label: str
    path: str


@dataclass
class ApplicationRecord:
    """Application form contents for one event."""

    questions: dict[str, str] = field(default_factory=dict)
    costs: list[CostLine] = field(default_factory=list)
    documents: list[Document] = field(default_factory=list)

    def to_dict(self) -> dict:
        return _serialize(asdict(self))


@dataclass
class PostEvaluationRecord:
    """Post-event evaluation form contents for one event."""

    questions: dict[str, str] = field(default_factory=dict)
    documents: list[Document] = field(default_factory=list)

    def to_dict(self) -> dict:
        return _serialize(asdict(self))


@dataclass
class EventRecord:
    """
    Listing row composed with its detail pages.

    This is the primary output of the scraping pipeline.
    """

    event: Event
    application: ApplicationRecord
    post_evaluation: Optional[PostEvaluationRecord] = None

    def to_dict(self) -> dict:
        """Flatten into a single JSON-ready record keyed like the listing row."""
        data = {
            **self.event.to_dict(),
            **self.application.to_dict(),
        }
        if self.post_evaluation is not None:
            data["post_evaluation"] = self.post_evaluation.to_dict()
        return data
