"""
PickleWickel - Pickleball Tournament Score Tracker

Collects match data from three places and reconciles it into one
canonical match record shape for the public scores pages.

Main components:
- records: canonical match model, cleaning and legacy upgrade
- csv_import: CSV bulk import with fingerprint deduplication
- services: admin CRUD, scrape ingestion, tournaments, scrape targets
- sorting: admin, schedule and bracket orderings
- web: FastAPI app
"""

__version__ = "1.0.0"
