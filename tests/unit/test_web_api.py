"""
Tests for the FastAPI endpoints using TestClient.

The app's database and settings dependencies are overridden with the
in-memory fixtures from conftest.
"""

import pytest
from fastapi.testclient import TestClient

from picklewickel.db.session import get_db
from picklewickel.errors import StorageError
from picklewickel.services.match_service import MatchService
from picklewickel.store.repository import Collection
from picklewickel.web.main import app, get_config

CSV_TEXT = (
    "date,time,tournamentName,drawName,round,team1Player1,team2Player1,status,scores,winner\n"
    '2025-03-16,14:00,PPA Atlanta Open,Men\'s Singles,Finals,Tyson McGuffin,Federico Staksrud,Completed,"11-5,11-7",team1\n'
)


@pytest.fixture
def client(db_session, config):
    def _db():
        yield db_session

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_config] = lambda: config
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def target(client):
    response = client.post("/api/scrape-targets", json={
        "league": "PPA",
        "tournamentName": "PPA Atlanta Open",
        "url": "https://example.com/ppa-atlanta",
        "tournamentMode": True,
    })
    assert response.status_code == 201
    return response.json()["target"]


def _manual(**overrides):
    data = {
        "date": "2025-03-15",
        "time": "10:00",
        "status": "Completed",
        "tournamentName": "PPA Atlanta Open",
        "drawName": "Men's Doubles",
        "round": "Finals",
        "team1": {"players": [{"name": "Ben Johns"}, {"name": "Collin Johns"}]},
        "team2": {"players": [{"name": "Hayden Patriquin"}, {"name": "Federico Staksrud"}]},
        "setScoresTeam1": [11, 11],
        "setScoresTeam2": [5, 7],
    }
    data.update(overrides)
    return data


class TestScrapedIngestionApi:
    def test_ingest_lands_in_review_queue(self, client, target):
        response = client.post("/api/matches/scraped", json={
            "scrapeTargetId": target["id"],
            "tournamentName": "PPA Atlanta Open",
            "date": "2025-03-15",
            "status": "Completed",
            "externalRefId": "ppa-1",
        })

        assert response.status_code == 200
        body = response.json()
        assert body["operation"] == "created"
        assert body["match"]["status"] == "pending_approval"
        assert body["autoApproved"] is False

        queue = client.get("/api/admin/review").json()
        assert queue["total"] == 1
        assert client.get("/api/matches").json()["total"] == 0

    def test_error_statuses(self, client, target):
        missing = client.post("/api/matches/scraped", json={"tournamentName": "x"})
        unknown = client.post("/api/matches/scraped", json={
            "scrapeTargetId": "nope", "tournamentName": "x", "date": "2025-03-15",
        })
        client.put(f"/api/scrape-targets?id={target['id']}", json={"tournamentMode": False})
        forbidden = client.post("/api/matches/scraped", json={
            "scrapeTargetId": target["id"], "tournamentName": "x", "date": "2025-03-15",
        })

        assert missing.status_code == 400
        assert missing.json()["error"] == "Missing required fields: scrapeTargetId, tournamentName, date"
        assert unknown.status_code == 404
        assert forbidden.status_code == 403

    def test_dry_run(self, client, target):
        response = client.post("/api/matches/scraped?dry=1", json={
            "scrapeTargetId": target["id"], "tournamentName": "PPA Atlanta Open", "date": "2025-03-15",
        })

        assert response.json()["dryRun"] is True
        assert client.get("/api/matches/scraped").json() == []

    def test_bulk_replace(self, client):
        response = client.post("/api/matches/scraped", json=[{"id": "a"}, {"id": "b"}])

        assert response.json() == {
            "success": True,
            "operation": "bulk-update",
            "count": 2,
            "message": "Bulk update completed",
        }

    def test_approve_flow(self, client, target):
        created = client.post("/api/matches/scraped", json={
            "scrapeTargetId": target["id"],
            "tournamentName": "PPA Atlanta Open",
            "date": "2025-03-15",
            "setScoresTeam1": [11, 11],
            "setScoresTeam2": [3, 8],
        }).json()

        approved = client.post(f"/api/admin/review/{created['match']['id']}/approve")

        assert approved.status_code == 200
        assert approved.json()["status"] == "Completed"
        assert client.get("/api/matches").json()["total"] == 1


class TestAdminMatchesApi:
    def test_crud(self, client):
        created = client.post("/api/admin/matches", json=_manual())
        assert created.status_code == 201
        match_id = created.json()["id"]

        patched = client.patch(f"/api/admin/matches/{match_id}", json={"court": "CC"})
        assert patched.json()["court"] == "CC"

        detail = client.get(f"/api/matches/{match_id}").json()
        assert detail["team1IsWinner"] is True
        assert detail["scoreDisplay"] == "11-5, 11-7"

        copy = client.post(f"/api/admin/matches/{match_id}/duplicate").json()
        deleted = client.post("/api/admin/matches/bulk-delete", json={"ids": [match_id, copy["id"]]})
        assert deleted.json()["deletedCount"] == 2
        assert client.get(f"/api/matches/{match_id}").status_code == 404

    def test_invalid_match_is_400(self, client):
        response = client.post("/api/admin/matches", json=_manual(date="15/03/2025"))

        assert response.status_code == 400

    def test_admin_listing_column_sort(self, client):
        client.post("/api/admin/matches", json=_manual(court="2"))
        client.post("/api/admin/matches", json=_manual(court="1", round="Semifinals"))

        body = client.get("/api/admin/matches?sort=court&direction=desc").json()

        assert [m["court"] for m in body["matches"]] == ["2", "1"]
        assert client.get("/api/admin/matches?sort=bogus").status_code == 400

    def test_kill_switch(self, client, config):
        config.ingestion_enabled = False

        response = client.post("/api/admin/matches", json=_manual())

        assert response.status_code == 503
        assert client.get("/api/matches").status_code == 200


class TestCsvApi:
    def test_preview_with_text_body(self, client):
        response = client.post(
            "/api/admin/csv/preview", content=CSV_TEXT, headers={"content-type": "text/csv"}
        )

        body = response.json()
        assert body["validCount"] == 1
        assert body["fatal"] is False
        assert client.get("/api/admin/matches").json()["total"] == 0

    def test_commit_with_uploaded_file(self, client):
        response = client.post(
            "/api/admin/csv/commit",
            files={"file": ("matches.csv", CSV_TEXT.encode("utf-8"), "text/csv")},
        )

        assert response.status_code == 200
        assert response.json()["createdCount"] == 1

        again = client.post("/api/admin/csv/preview", json={"text": CSV_TEXT}).json()
        assert again["duplicateCount"] == 1

    def test_commit_missing_headers(self, client):
        response = client.post("/api/admin/csv/commit", json={"text": "date\n2025-01-01\n"})

        assert response.status_code == 400


class TestPublicViews:
    def test_review_queue_hidden_from_public_routes(self, client, target):
        created = client.post("/api/matches/scraped", json={
            "scrapeTargetId": target["id"], "tournamentName": "PPA Atlanta Open", "date": "2025-03-15",
        }).json()
        match_id = created["match"]["id"]

        listing = client.get("/api/matches?status=pending_approval,Completed").json()
        detail = client.get(f"/api/matches/{match_id}")

        assert listing == {"matches": [], "total": 0}
        assert detail.status_code == 404
        assert client.get("/api/admin/review").json()["total"] == 1

    def test_public_views_survive_malformed_stored_match(self, client):
        client.post("/api/matches/scraped", json=[{
            "id": "bad",
            "date": "2025-03-15",
            "time": "10:00",
            "status": "Completed",
            "tournamentName": "PPA Atlanta Open",
            "round": "Finals",
            "team1": "not a team",
            "setScoresTeam1": ["11", None],
            "setScoresTeam2": [5, "x"],
        }])

        schedule = client.get("/api/schedule?date=2025-03-15")
        tournaments = client.get("/api/tournaments")

        assert schedule.status_code == 200
        assert [m["id"] for m in schedule.json()["priorityRounds"][0]["matches"]] == ["bad"]
        assert tournaments.status_code == 200
        assert [t["name"] for t in tournaments.json()] == ["PPA Atlanta Open"]

    def test_schedule(self, client):
        client.post("/api/admin/matches", json=_manual())
        client.post("/api/admin/matches", json=_manual(status="Live", round="Pool Play"))

        body = client.get("/api/schedule?date=2025-03-15").json()

        assert body["dates"] == ["2025-03-15"]
        assert len(body["live"]) == 1
        assert [g["round"] for g in body["priorityRounds"]] == ["Finals"]

    def test_schedule_degrades_when_storage_fails(self, client, monkeypatch):
        def broken(self):
            raise StorageError("down", key="picklewickel_matches_v1")

        monkeypatch.setattr(MatchService, "public_matches", broken)

        response = client.get("/api/schedule?date=2025-03-15")

        assert response.status_code == 200
        assert response.json()["isEmpty"] is True

    def test_tournaments_and_bracket(self, client):
        client.post("/api/admin/matches", json=_manual())
        client.post("/api/admin/tournaments", json={
            "name": "APP Orlando", "startDate": "2025-05-01", "endDate": "2025-05-04",
        })

        listing = client.get("/api/tournaments").json()
        assert [(t["name"], t["isManaged"]) for t in listing] == [
            ("APP Orlando", True),
            ("PPA Atlanta Open", False),
        ]

        detail = client.get("/api/tournaments/ppa-atlanta-open").json()
        assert detail["tournament"]["league"] == "PPA"
        assert [r["round"] for r in detail["rounds"]] == ["Finals"]
        assert client.get("/api/tournaments/unknown").status_code == 404

    def test_delete_tournament_by_name(self, client, repo):
        client.post("/api/admin/matches", json=_manual())
        client.post("/api/admin/matches", json=_manual(tournamentName="PPA Atlanta Open Qualifier"))

        response = client.delete("/api/admin/tournaments", params={"name": "PPA Atlanta Open"})

        assert response.json()["deletedMatches"] == 1
        remaining = repo.load_all(Collection.MATCHES)
        assert [d["tournamentName"] for d in remaining] == ["PPA Atlanta Open Qualifier"]


class TestScrapeTargetsAndHealthApi:
    def test_target_listing(self, client, target):
        conflict = client.post("/api/scrape-targets", json={
            "league": "PPA", "tournamentName": "Again", "url": target["url"],
        })
        body = client.get("/api/scrape-targets?tournamentMode=true").json()

        assert conflict.status_code == 409
        assert body["count"] == 1
        assert body["summary"]["total"] == 1
        assert body["filters"]["league"] == "all"

    def test_delete_target(self, client, target):
        response = client.delete("/api/scrape-targets", params={"id": target["id"]})

        assert response.json()["deletedTarget"]["id"] == target["id"]
        assert client.get("/api/scrape-targets").json()["count"] == 0

    def test_health(self, client):
        recorded = client.post("/api/scraper/health", json={"status": "completed", "workflow": "ppa"})
        missing = client.post("/api/scraper/health", json={"workflow": "ppa"})
        report = client.get("/api/scraper/health").json()

        assert recorded.json()["healthMetrics"]["successRate"] == 100
        assert missing.status_code == 400
        assert report["metrics"]["totalRecords"] == 1
