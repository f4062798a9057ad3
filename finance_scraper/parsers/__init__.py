"""
Extractor strategies for portal pages.

Extractors handle the extraction phase - converting parsed listing,
application and post-evaluation pages into structured records.

Strategies:
- EventListExtractor: Term listing table
- ApplicationExtractor: Application form with cost breakdown
- PostEvaluationExtractor: Post-event evaluation form
"""

from .base import ExtractorStrategy
from .event_list import EventListExtractor
from .application import ApplicationExtractor, APPLICATION_UNCHECKED
from .post_evaluation import PostEvaluationExtractor, POST_EVALUATION_UNCHECKED

__all__ = [
    "ExtractorStrategy",
    "EventListExtractor",
    "ApplicationExtractor",
    "PostEvaluationExtractor",
    "APPLICATION_UNCHECKED",
    "POST_EVALUATION_UNCHECKED",
]
