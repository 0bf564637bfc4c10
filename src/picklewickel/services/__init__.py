"""
PickleWickel services: every write to the key-value store goes through here.

Each service wraps a ``CollectionRepository`` and performs whole-collection
read-modify-write cycles, checking the ingestion kill-switch first.

Usage:
    from picklewickel.services import MatchService, ScrapeIngestionService

    with get_session() as session:
        repo = CollectionRepository(SqlKeyValueStore(session))
        MatchService(repo).approve_match(match_id)
"""

from picklewickel.services.base import RepositoryService, utc_now_iso
from picklewickel.services.match_service import CSVImportOutcome, MatchService
from picklewickel.services.scrape_ingestion import (
    BulkReplaceResult,
    IngestResult,
    ScrapeIngestionService,
    reconcile_scraped_match,
)
from picklewickel.services.scrape_targets import ScrapeTargetService, ScrapeTargetSummary
from picklewickel.services.scraper_health import HealthMetrics, HealthReport, ScraperHealthService
from picklewickel.services.tournament_service import TournamentService

__all__ = [
    "RepositoryService",
    "utc_now_iso",
    # Matches
    "MatchService",
    "CSVImportOutcome",
    # Scrape ingestion
    "ScrapeIngestionService",
    "reconcile_scraped_match",
    "IngestResult",
    "BulkReplaceResult",
    # Tournaments
    "TournamentService",
    # Scrape targets
    "ScrapeTargetService",
    "ScrapeTargetSummary",
    # Scraper health
    "ScraperHealthService",
    "HealthMetrics",
    "HealthReport",
]
