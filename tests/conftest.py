"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from picklewickel.config import Settings
from picklewickel.db.models import Base
from picklewickel.records import Match, Player, Team
from picklewickel.store.kv import SqlKeyValueStore
from picklewickel.store.repository import CollectionRepository


@pytest.fixture
def test_engine():
    """
    Fresh SQLite in-memory database per test.

    StaticPool keeps the single connection alive so the TestClient thread
    sees the same database.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(test_engine):
    Session = sessionmaker(bind=test_engine, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def config():
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, database_url="sqlite://", ingestion_enabled=True)


@pytest.fixture
def repo(db_session, config):
    return CollectionRepository(SqlKeyValueStore(db_session), config)


@pytest.fixture
def make_match():
    """Factory for canonical matches with sensible defaults."""

    def _make(
        id="m_1",
        date="2025-03-14",
        time="10:00",
        status="Upcoming",
        tournament_name="PPA Atlanta Open",
        draw_name="Men's Doubles",
        round="Quarterfinals",
        court="",
        team1=("Ben Johns", "Collin Johns"),
        team2=("Hayden Patriquin", "Federico Staksrud"),
        scores1=(),
        scores2=(),
        **extra,
    ) -> Match:
        return Match(
            id=id,
            date=date,
            time=time,
            status=status,
            tournament_name=tournament_name,
            draw_name=draw_name,
            round=round,
            court=court,
            team1=Team(players=[Player(n) for n in team1]),
            team2=Team(players=[Player(n) for n in team2]),
            set_scores_team1=list(scores1),
            set_scores_team2=list(scores2),
            **extra,
        )

    return _make
