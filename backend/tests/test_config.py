"""
NoteSync Backend: Configuration and Wiring Tests
================================================

What:  Settings validation and build_synchronizer backend selection.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError as SettingsValidationError

from notesync.config import Settings
from notesync.services.blob_service import LocalBlobStore
from notesync.services.graphql_record_store import GraphQLRecordStore
from notesync.services.note_synchronizer import build_synchronizer
from notesync.services.sql_record_store import SqlRecordStore


class TestSettings:

    def test_backend_normalized(self):
        assert Settings(record_store_backend="GraphQL").record_store_backend == "graphql"

    def test_unknown_backend_rejected(self):
        with pytest.raises(SettingsValidationError):
            Settings(record_store_backend="dynamo")

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(SettingsValidationError):
            Settings(log_level="chatty")

    def test_cors_origins_list(self):
        settings = Settings(cors_origins="http://a.test, http://b.test")
        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_graphql_backend_requires_url(self):
        settings = Settings(record_store_backend="graphql", graphql_url="")
        with pytest.raises(ValueError, match="GRAPHQL_URL"):
            settings.validate_required_for_production()

    def test_sql_backend_needs_nothing_extra(self):
        Settings(record_store_backend="sql").validate_required_for_production()


class TestBuildSynchronizer:

    @pytest.mark.asyncio
    async def test_sql_backend(self, temp_storage):
        config = Settings(record_store_backend="sql", blob_root=temp_storage)

        synchronizer = build_synchronizer(config)

        assert isinstance(synchronizer.record_store, SqlRecordStore)
        assert isinstance(synchronizer.blob_store, LocalBlobStore)
        assert synchronizer.blob_store.storage_root == Path(temp_storage).resolve()
        await synchronizer.aclose()

    @pytest.mark.asyncio
    async def test_graphql_backend(self, temp_storage):
        config = Settings(
            record_store_backend="graphql",
            graphql_url="https://api.example.com/graphql",
            graphql_api_key="da2-test",
            blob_root=temp_storage,
        )

        synchronizer = build_synchronizer(config)

        assert isinstance(synchronizer.record_store, GraphQLRecordStore)
        assert synchronizer.record_store.url == "https://api.example.com/graphql"
        await synchronizer.aclose()
