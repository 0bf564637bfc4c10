"""FastAPI application serving the public pages, admin tools and ingestion API."""
