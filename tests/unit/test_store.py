"""
Unit tests for the key-value store and collection repository.
"""

import pytest
from sqlalchemy.exc import OperationalError

from picklewickel.errors import StorageError
from picklewickel.store.kv import SqlKeyValueStore
from picklewickel.store.repository import Collection, CollectionRepository


class TestSqlKeyValueStore:
    def test_get_missing_key(self, db_session):
        assert SqlKeyValueStore(db_session).get("nothing") is None

    def test_set_replaces_whole_document(self, db_session):
        store = SqlKeyValueStore(db_session)
        store.set("k", [{"id": 1}])
        store.set("k", [{"id": 2}, {"id": 3}])
        store.commit()

        assert store.get("k") == [{"id": 2}, {"id": 3}]

    def test_get_returns_a_copy(self, db_session):
        store = SqlKeyValueStore(db_session)
        store.set("k", [{"id": 1}])
        store.commit()

        store.get("k")[0]["id"] = 99

        assert store.get("k") == [{"id": 1}]

    def test_failures_become_storage_errors(self, db_session, monkeypatch):
        store = SqlKeyValueStore(db_session)

        def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(db_session, "get", broken)

        with pytest.raises(StorageError) as exc_info:
            store.get("picklewickel_matches_v1")
        assert exc_info.value.key == "picklewickel_matches_v1"


class TestCollectionRepository:
    def test_keys_come_from_settings(self, repo):
        assert repo.key_for(Collection.MATCHES) == "picklewickel_matches_v1"
        assert repo.key_for(Collection.SCRAPE_TARGETS) == "picklewickel_scrape-targets_v1"

    def test_missing_collection_is_empty(self, repo):
        assert repo.load_all(Collection.TOURNAMENTS) == []

    def test_non_list_document_is_empty(self, db_session, config):
        store = SqlKeyValueStore(db_session)
        store.set(config.tournaments_key, {"not": "a list"})
        store.commit()

        assert CollectionRepository(store, config).load_all(Collection.TOURNAMENTS) == []

    def test_legacy_matches_upgraded_on_load(self, repo):
        repo.replace_all(Collection.MATCHES, [{"id": "old", "playersTeam1": ["A"], "playersTeam2": ["B"]}])
        repo.commit()

        loaded = repo.load_all(Collection.MATCHES)[0]

        assert loaded["team1"]["players"] == [{"name": "A"}]
        assert "playersTeam1" not in loaded

    def test_other_collections_are_not_upgraded(self, repo):
        repo.replace_all(Collection.TOURNAMENTS, [{"id": "t1", "name": "PPA Atlanta Open"}])
        repo.commit()

        assert repo.load_all(Collection.TOURNAMENTS) == [{"id": "t1", "name": "PPA Atlanta Open"}]
