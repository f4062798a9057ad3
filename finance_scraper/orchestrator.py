"""
Term orchestrator for the scraping pipeline.

Coordinates:
- Portal configuration loading
- Listing fetch and event extraction
- Concurrent application / post-evaluation extraction
- Output generation
"""

import asyncio
import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import structlog

from .config.loader import PortalConfig, load_portal
from .core.http_client import PortalClient
from .core.models import Event, EventRecord
from .parsers.application import ApplicationExtractor
from .parsers.event_list import EventListExtractor
from .parsers.post_evaluation import PostEvaluationExtractor

logger = structlog.get_logger(__name__)


class FinanceScraper:
    """
    Orchestrator for one term of the funding portal.

    Holds no state between runs apart from statistics of the last run.
    """

    def __init__(
        self,
        portal: Optional[PortalConfig] = None,
        output_dir: str = "output",
        client: Optional[PortalClient] = None,
    ):
        """
        Initialize scraper.

        Args:
            portal: Portal configuration (loads packaged portal.yml if omitted)
            output_dir: Directory for output files
            client: Portal client to use (built from the portal config if omitted)
        """
        self.portal = portal or load_portal()
        self.output_dir = Path(output_dir)
        self.client = client or PortalClient(self.portal)

        self.events = EventListExtractor(self.portal.download_prefix)
        self.applications = ApplicationExtractor(self.portal.download_prefix)
        self.post_evaluations = PostEvaluationExtractor(self.portal.download_prefix)

        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> dict:
        return {
            "events_listed": 0,
            "events_extracted": 0,
            "post_evaluations": 0,
        }

    async def run(
        self,
        term_id: int,
        max_events: Optional[int] = None,
    ) -> list[EventRecord]:
        """
        Extract every event of a term with its detail pages.

        On the first failing event the remaining ones are cancelled and
        awaited before the client closes, then the failure is raised.

        Args:
            term_id: Funding term identifier
            max_events: Optional limit on listed events to process

        Returns:
            Composed records in listing order

        Raises:
            ScraperError: If any page fails extraction
            httpx.HTTPError: If any page cannot be fetched
        """
        logger.info("starting_scrape", term_id=term_id, max_events=max_events)
        self.stats = self._empty_stats()

        async with self.client:
            events = self.events.parse(await self.client.fetch_listing(term_id))
            self.stats["events_listed"] = len(events)

            if max_events is not None:
                events = events[:max_events]

            semaphore = asyncio.Semaphore(self.portal.max_concurrency)
            tasks = [
                asyncio.create_task(self._process_event(event, semaphore))
                for event in events
            ]
            try:
                records = await asyncio.gather(*tasks)
            finally:
                pending = [task for task in tasks if not task.done()]
                for task in pending:
                    task.cancel()
                # Retrieve every outcome before the client closes
                await asyncio.gather(*tasks, return_exceptions=True)
                if pending:
                    logger.warning("events_cancelled", term_id=term_id, count=len(pending))

        self.stats["events_extracted"] = len(records)
        logger.info("scrape_complete", term_id=term_id, **self.stats)

        return list(records)

    async def _process_event(
        self,
        event: Event,
        semaphore: asyncio.Semaphore,
    ) -> EventRecord:
        """
        Fetch and extract the detail pages of one event.

        Args:
            event: Listing row
            semaphore: Bounds concurrent detail fetches

        Returns:
            EventRecord for the event
        """
        async with semaphore:
            logger.info("extracting", fin_id=event.id, name=event.name)

            try:
                application = self.applications.parse(
                    await self.client.fetch_application(event.id)
                )

                post_evaluation = None
                if event.has_post_evaluation:
                    post_evaluation = self.post_evaluations.parse(
                        await self.client.fetch_post_evaluation(event.id)
                    )
                    self.stats["post_evaluations"] += 1
            except Exception as e:
                logger.error("extraction_failed", fin_id=event.id, error=str(e))
                raise

        return EventRecord(
            event=event,
            application=application,
            post_evaluation=post_evaluation,
        )

    def save_json(self, records: list[EventRecord], filename: Optional[str] = None) -> str:
        """
        Save records to JSON file.

        Args:
            records: Records to save
            filename: Optional filename (auto-generated if not provided)

        Returns:
            Path to saved file
        """
        if not filename:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"events_{timestamp}.json"

        self.output_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.output_dir / filename

        data = [r.to_dict() for r in records]

        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

        logger.info("saved_json", path=str(filepath), records=len(records))
        return str(filepath)

    def save_jsonl(self, records: list[EventRecord], filename: Optional[str] = None) -> str:
        """
        Save records to JSONL file (one JSON per line).

        Args:
            records: Records to save
            filename: Optional filename

        Returns:
            Path to saved file
        """
        if not filename:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"events_{timestamp}.jsonl"

        self.output_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.output_dir / filename

        with open(filepath, "w", encoding="utf-8") as f:
            for record in records:
                line = json.dumps(record.to_dict(), ensure_ascii=False)
                f.write(line + "\n")

        logger.info("saved_jsonl", path=str(filepath), records=len(records))
        return str(filepath)


async def run_scraper(
    term_id: int,
    max_events: Optional[int] = None,
    config_path: Optional[str] = None,
    output_dir: str = "output",
) -> list[EventRecord]:
    """
    Convenience function to scrape a term and save it as JSON.

    Args:
        term_id: Funding term identifier
        max_events: Optional limit on listed events
        config_path: Path to a portal YAML file
        output_dir: Output directory

    Returns:
        Extracted records
    """
    scraper = FinanceScraper(
        portal=load_portal(config_path),
        output_dir=output_dir,
    )

    records = await scraper.run(term_id, max_events=max_events)

    if records:
        scraper.save_json(records, f"apps-{term_id}.json")

    return records
