import logging
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from picklewickel.config import Settings, settings
from picklewickel.db.session import get_db
from picklewickel.derived_state import derive_winners
from picklewickel.errors import NotFoundError, PickleWickelError, StorageError, ValidationError
from picklewickel.match_statuses import is_public_status, normalize_status_filter
from picklewickel.records import Match
from picklewickel.search import format_players, format_scores, search_matches
from picklewickel.services.match_service import MatchService
from picklewickel.services.scrape_ingestion import ScrapeIngestionService
from picklewickel.services.scrape_targets import ScrapeTargetService
from picklewickel.services.scraper_health import ScraperHealthService
from picklewickel.services.tournament_service import TournamentService
from picklewickel.sorting import (
    RoundGroup,
    available_dates,
    build_schedule_view,
    resolve_schedule_date,
    sort_admin_matches,
)
from picklewickel.store.kv import SqlKeyValueStore
from picklewickel.store.repository import CollectionRepository

logger = logging.getLogger(__name__)

app = FastAPI(title="PickleWickel")


@app.exception_handler(PickleWickelError)
async def domain_error_handler(request: Request, exc: PickleWickelError):
    """Answer every domain error with its own status code and a JSON body."""
    body: dict[str, Any] = {"error": exc.message}
    if isinstance(exc, ValidationError):
        if exc.field:
            body["field"] = exc.field
        if exc.row is not None:
            body["row"] = exc.row
    if isinstance(exc, StorageError):
        logger.error("Storage failure on %s %s (key=%s): %s", request.method, request.url.path, exc.key, exc)
    return JSONResponse(body, status_code=exc.status_code)


def get_config() -> Settings:
    return settings


def get_repo(
    db: Session = Depends(get_db),
    config: Settings = Depends(get_config),
) -> CollectionRepository:
    return CollectionRepository(SqlKeyValueStore(db), config)


def _serialize_match(match: Match) -> dict:
    """Stored document plus the display fields the pages need."""
    payload = match.to_document()
    payload.update(derive_winners(match).to_dict())
    payload["team1Display"] = format_players(match.team1)
    payload["team2Display"] = format_players(match.team2)
    payload["scoreDisplay"] = format_scores(match.set_scores_team1, match.set_scores_team2)
    return payload


def _serialize_round(group: RoundGroup) -> dict:
    return {
        "round": group.round,
        "expanded": group.expanded,
        "matches": [_serialize_match(m) for m in group.matches],
    }


def _flag(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    return value.lower() == "true"


async def _csv_text(request: Request) -> str:
    """CSV text from an uploaded file, a JSON ``{"text": ...}`` body or a raw text body."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get("file")
        if upload is None or isinstance(upload, str):
            raise ValidationError("Missing CSV file upload", field="file")
        raw = await upload.read()
    elif content_type.startswith("application/json"):
        data = await request.json()
        if not isinstance(data, dict) or not isinstance(data.get("text"), str):
            raise ValidationError("JSON body must carry the CSV as 'text'", field="text")
        return data["text"]
    else:
        raw = await request.body()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ValidationError("CSV must be UTF-8 text", field="file") from exc


# ==========================================================================
# Public reads
# ==========================================================================
# These degrade to empty payloads when storage is unreachable.


@app.get("/api/matches")
async def api_matches(
    repo: CollectionRepository = Depends(get_repo),
    date: Optional[str] = Query(None, description="Only matches on this date (YYYY-MM-DD)"),
    search: Optional[str] = Query(None, description="Player, tournament, draw, round or court"),
    status: Optional[str] = Query(None, description="Comma-separated statuses (default: public statuses)"),
    tournament: Optional[str] = Query(None, description="Exact tournament name"),
):
    """Public match list. Review-queue matches are excluded unless asked for."""
    try:
        matches = MatchService(repo).all_matches()
    except StorageError:
        logger.exception("Match list unavailable")
        return {"matches": [], "total": 0}

    requested = normalize_status_filter(status.split(",") if status else None, default_group="public")
    # The review queue never leaks through an explicit status filter
    allowed = [s for s in requested if is_public_status(s)]
    matches = [m for m in matches if m.status in allowed]
    if date:
        matches = [m for m in matches if m.date == date]
    if tournament:
        matches = [m for m in matches if m.tournament_name == tournament]
    if search:
        matches = search_matches(matches, search)

    return {"matches": [_serialize_match(m) for m in matches], "total": len(matches)}


@app.get("/api/matches/scraped")
async def api_scraped_matches(repo: CollectionRepository = Depends(get_repo)):
    return [m.to_document() for m in ScrapeIngestionService(repo).list_scraped()]


@app.post("/api/matches/scraped")
async def api_ingest_scraped(
    payload: Any = Body(...),
    dry: Optional[str] = Query(None, description="'1' runs the reconciliation without saving"),
    repo: CollectionRepository = Depends(get_repo),
):
    """Ingestion endpoint for the scraping pipeline (object) or admin sync (array)."""
    result = ScrapeIngestionService(repo).ingest(payload, dry_run=dry == "1")
    return result.to_dict()


@app.get("/api/matches/{match_id}")
async def api_match_detail(match_id: str, repo: CollectionRepository = Depends(get_repo)):
    match = MatchService(repo).get_match(match_id)
    if not is_public_status(match.status):
        raise NotFoundError(f"Match '{match_id}' not found")
    return _serialize_match(match)


@app.get("/api/schedule")
async def api_schedule(
    repo: CollectionRepository = Depends(get_repo),
    date: Optional[str] = Query(None, description="Schedule date (YYYY-MM-DD); defaults to today"),
):
    """Scores page for one date: live bucket, priority rounds, collapsible rounds."""
    try:
        matches = MatchService(repo).public_matches()
    except StorageError:
        logger.exception("Schedule unavailable")
        matches = []

    dates = available_dates(matches)
    selected = resolve_schedule_date(date, dates)
    view = build_schedule_view(matches, selected)
    return {
        "date": view.date,
        "dates": dates,
        "isEmpty": view.is_empty,
        "live": [_serialize_match(m) for m in view.live],
        "priorityRounds": [_serialize_round(g) for g in view.priority_rounds],
        "collapsibleRounds": [_serialize_round(g) for g in view.collapsible_rounds],
    }


@app.get("/api/tournaments")
async def api_tournaments(
    repo: CollectionRepository = Depends(get_repo),
    league: Optional[str] = Query(None, description="League filter; 'All' keeps every league"),
):
    try:
        tournaments = TournamentService(repo).hybrid_tournaments(league=league)
    except StorageError:
        logger.exception("Tournament list unavailable")
        return []
    return [t.to_dict() for t in tournaments]


@app.get("/api/tournaments/{slug}")
async def api_tournament_detail(
    slug: str,
    repo: CollectionRepository = Depends(get_repo),
    draw: Optional[str] = Query(None, description="Restrict to one draw"),
):
    tournament, rounds = TournamentService(repo).bracket(slug, draw_name=draw)
    draws = sorted({m.draw_name for group in rounds for m in group.matches})
    return {
        "tournament": tournament.to_dict(),
        "draws": draws,
        "rounds": [_serialize_round(g) for g in rounds],
    }


# ==========================================================================
# Admin: matches
# ==========================================================================


@app.get("/api/admin/matches")
async def admin_matches(
    repo: CollectionRepository = Depends(get_repo),
    sort: Optional[str] = Query(None, description="Column: date,time,tournament,draw,players,status,court"),
    direction: str = Query("asc", description="asc or desc"),
    search: Optional[str] = Query(None),
    tournament: Optional[str] = Query(None, description="Exact tournament name"),
):
    """Admin table: every match, including the review queue."""
    matches = MatchService(repo).all_matches()
    if tournament:
        matches = [m for m in matches if m.tournament_name == tournament]
    if search:
        matches = search_matches(matches, search)
    ordered = sort_admin_matches(matches, column=sort, direction=direction)
    return {"matches": [_serialize_match(m) for m in ordered], "total": len(ordered)}


@app.post("/api/admin/matches", status_code=201)
async def admin_create_match(payload: dict = Body(...), repo: CollectionRepository = Depends(get_repo)):
    return MatchService(repo).add_match(payload).to_document()


@app.patch("/api/admin/matches/{match_id}")
async def admin_update_match(
    match_id: str,
    updates: dict = Body(...),
    repo: CollectionRepository = Depends(get_repo),
):
    return MatchService(repo).update_match(match_id, updates).to_document()


@app.delete("/api/admin/matches/{match_id}")
async def admin_delete_match(match_id: str, repo: CollectionRepository = Depends(get_repo)):
    MatchService(repo).delete_match(match_id)
    return {"success": True, "deleted": match_id}


@app.post("/api/admin/matches/bulk-delete")
async def admin_bulk_delete(payload: dict = Body(...), repo: CollectionRepository = Depends(get_repo)):
    ids = payload.get("ids")
    if not isinstance(ids, list):
        raise ValidationError("Body must carry a list of match 'ids'", field="ids")
    removed = MatchService(repo).delete_matches(str(i) for i in ids)
    return {"success": True, "deletedCount": removed}


@app.post("/api/admin/matches/{match_id}/duplicate", status_code=201)
async def admin_duplicate_match(match_id: str, repo: CollectionRepository = Depends(get_repo)):
    return MatchService(repo).duplicate_match(match_id).to_document()


@app.post("/api/admin/csv/preview")
async def admin_csv_preview(request: Request, repo: CollectionRepository = Depends(get_repo)):
    """Parse a CSV and report valid, duplicate and error rows without saving."""
    text = await _csv_text(request)
    result = MatchService(repo).preview_csv_import(text)
    return {"fatal": result.fatal, **result.to_dict()}


@app.post("/api/admin/csv/commit")
async def admin_csv_commit(request: Request, repo: CollectionRepository = Depends(get_repo)):
    text = await _csv_text(request)
    return MatchService(repo).commit_csv_import(text).to_dict()


@app.get("/api/admin/review")
async def admin_review_queue(repo: CollectionRepository = Depends(get_repo)):
    queue = MatchService(repo).review_queue()
    return {"matches": [_serialize_match(m) for m in queue], "total": len(queue)}


@app.post("/api/admin/review/{match_id}/approve")
async def admin_approve_match(match_id: str, repo: CollectionRepository = Depends(get_repo)):
    return MatchService(repo).approve_match(match_id).to_document()


# ==========================================================================
# Admin: tournaments
# ==========================================================================


@app.get("/api/admin/tournaments")
async def admin_tournaments(
    repo: CollectionRepository = Depends(get_repo),
    league: Optional[str] = Query(None),
):
    return [t.to_dict() for t in TournamentService(repo).hybrid_tournaments(league=league)]


@app.post("/api/admin/tournaments", status_code=201)
async def admin_create_tournament(payload: dict = Body(...), repo: CollectionRepository = Depends(get_repo)):
    return TournamentService(repo).create(payload)


@app.patch("/api/admin/tournaments/{tournament_id}")
async def admin_update_tournament(
    tournament_id: str,
    updates: dict = Body(...),
    repo: CollectionRepository = Depends(get_repo),
):
    return TournamentService(repo).update(tournament_id, updates)


@app.delete("/api/admin/tournaments/{tournament_id}")
async def admin_delete_tournament(tournament_id: str, repo: CollectionRepository = Depends(get_repo)):
    """Delete a managed or inferred tournament and every match carrying its name."""
    removed = TournamentService(repo).delete(tournament_id)
    return {"success": True, "deletedMatches": removed}


@app.delete("/api/admin/tournaments")
async def admin_delete_tournament_by_name(
    name: str = Query(..., description="Exact tournament name"),
    repo: CollectionRepository = Depends(get_repo),
):
    removed = TournamentService(repo).delete_by_name(name)
    return {"success": True, "deletedMatches": removed}


# ==========================================================================
# Scrape targets
# ==========================================================================


@app.get("/api/scrape-targets")
async def api_scrape_targets(
    repo: CollectionRepository = Depends(get_repo),
    league: Optional[str] = Query(None),
    tournamentMode: Optional[str] = Query(None, description="'true' or 'false'"),
    isActive: Optional[str] = Query(None, description="'true' or 'false'"),
    limit: Optional[int] = Query(None, ge=0),
):
    service = ScrapeTargetService(repo)
    targets = service.list_targets(
        league=league,
        tournament_mode=_flag(tournamentMode),
        is_active=_flag(isActive),
        limit=limit,
    )
    return {
        "targets": targets,
        "count": len(targets),
        "summary": service.summary().to_dict(),
        "filters": {
            "league": league or "all",
            "tournamentMode": tournamentMode or "all",
            "isActive": isActive or "all",
            "limit": limit if limit is not None else "none",
        },
    }


@app.post("/api/scrape-targets", status_code=201)
async def api_create_scrape_target(payload: dict = Body(...), repo: CollectionRepository = Depends(get_repo)):
    target = ScrapeTargetService(repo).create(payload)
    return {"success": True, "target": target}


@app.put("/api/scrape-targets")
async def api_update_scrape_target(
    id: str = Query(..., description="Target id"),
    updates: dict = Body(...),
    repo: CollectionRepository = Depends(get_repo),
):
    target = ScrapeTargetService(repo).update(id, updates)
    return {"success": True, "target": target}


@app.delete("/api/scrape-targets")
async def api_delete_scrape_target(
    id: str = Query(..., description="Target id"),
    repo: CollectionRepository = Depends(get_repo),
):
    target = ScrapeTargetService(repo).delete(id)
    return {"success": True, "deletedTarget": target}


# ==========================================================================
# Scraper health
# ==========================================================================


@app.post("/api/scraper/health")
async def api_record_health(payload: dict = Body(...), repo: CollectionRepository = Depends(get_repo)):
    metrics = ScraperHealthService(repo).record(payload)
    return {"success": True, "recorded": True, "healthMetrics": metrics.to_dict()}


@app.get("/api/scraper/health")
async def api_health_report(
    repo: CollectionRepository = Depends(get_repo),
    limit: int = Query(50, ge=0),
    workflow: Optional[str] = Query(None),
):
    return ScraperHealthService(repo).report(limit=limit, workflow=workflow).to_dict()


# Only for debugging
if __name__ == "__main__":
    import uvicorn

    from picklewickel.logging_config import configure_logging

    configure_logging()
    uvicorn.run(
        "picklewickel.web.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
