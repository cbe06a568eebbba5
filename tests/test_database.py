"""Tests for database engine and session management."""

from unittest.mock import AsyncMock, MagicMock, patch

import src.database as database
from src.database import close_database, get_db, get_db_engine


class TestEngineLifecycle:
    async def test_close_database_disposes_engine(self):
        mock_engine = MagicMock()
        mock_engine.dispose = AsyncMock()

        with patch.object(database, "_engine", mock_engine), patch.object(
            database, "_async_session_maker", MagicMock()
        ):
            await close_database()

            assert database._engine is None
            assert database._async_session_maker is None

        mock_engine.dispose.assert_awaited_once()

    async def test_close_database_without_engine_is_noop(self):
        with patch.object(database, "_engine", None):
            await close_database()

    def test_get_db_engine_returns_shared_engine(self):
        mock_engine = MagicMock()
        with patch("src.database.get_engine", return_value=mock_engine):
            assert get_db_engine() is mock_engine

    def test_testing_engine_uses_null_pool(self):
        with patch.object(database, "_engine", None), patch(
            "src.database.create_async_engine"
        ) as mock_create:
            database.get_engine()

        kwargs = mock_create.call_args.kwargs
        assert kwargs["poolclass"].__name__ == "NullPool"


class TestGetDb:
    async def test_yields_session_from_session_maker(self):
        mock_session = MagicMock()
        session_ctx = MagicMock()
        session_ctx.__aenter__ = AsyncMock(return_value=mock_session)
        session_ctx.__aexit__ = AsyncMock(return_value=None)
        mock_maker = MagicMock(return_value=session_ctx)

        with patch("src.database.get_session_maker", return_value=mock_maker):
            gen = get_db()
            session = await gen.__anext__()
            await gen.aclose()

        assert session is mock_session
        session_ctx.__aexit__.assert_awaited_once()


class TestPoolConfiguration:
    def test_pool_sized_from_settings(self):
        with patch.object(database, "_engine", None), patch(
            "src.database.create_async_engine"
        ) as mock_create, patch("src.database.settings") as mock_settings:
            mock_settings.testing = False
            mock_settings.database_pool_size = 20
            mock_settings.database_max_overflow = 5
            database.get_engine()

        kwargs = mock_create.call_args.kwargs
        assert kwargs["pool_size"] == 20
        assert kwargs["max_overflow"] == 5
