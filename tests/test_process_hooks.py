"""Tests for process-level fault handling."""

import asyncio
import json
import sys
import threading
from unittest.mock import MagicMock, patch

import pytest

from src.core.process_hooks import FATAL_EXIT_CODE, ProcessFaultHandler
from src.services.error_log import ErrorLog


def _entries(error_log: ErrorLog) -> list[dict]:
    [path] = error_log.directory.glob("error_*.log")
    return [json.loads(line) for line in path.read_text().splitlines()]


@pytest.fixture
def exit_func() -> MagicMock:
    return MagicMock()


@pytest.fixture
def handler(error_log, exit_func) -> ProcessFaultHandler:
    return ProcessFaultHandler(error_log, exit_func=exit_func)


def _raised(exc: BaseException):
    try:
        raise exc
    except BaseException as e:
        return type(e), e, e.__traceback__


class TestUncaughtException:
    def test_logs_records_and_exits(self, handler, error_log, exit_func):
        handler.handle_uncaught_exception(*_raised(RuntimeError("corrupted state")))

        entry = _entries(error_log)[0]
        assert entry["type"] == "uncaughtException"
        assert entry["error"] == "corrupted state"
        exit_func.assert_called_once_with(FATAL_EXIT_CODE)

    def test_keyboard_interrupt_uses_default_hook(self, handler, error_log, exit_func):
        with patch.object(sys, "__excepthook__") as default_hook:
            handler.handle_uncaught_exception(*_raised(KeyboardInterrupt()))

        default_hook.assert_called_once()
        exit_func.assert_not_called()
        assert not error_log.directory.exists()

    def test_thread_exception_follows_same_policy(self, handler, error_log, exit_func):
        exc_type, exc, tb = _raised(ValueError("worker died"))
        args = threading.ExceptHookArgs([exc_type, exc, tb, None])

        handler.handle_thread_exception(args)

        assert _entries(error_log)[0]["error"] == "worker died"
        exit_func.assert_called_once_with(FATAL_EXIT_CODE)


class TestLoopException:
    async def test_exception_is_recorded_without_exit(self, handler, error_log, exit_func):
        await handler.handle_loop_exception(
            asyncio.get_running_loop(),
            {"message": "Task exception was never retrieved", "exception": OSError("reset")},
        )

        entry = _entries(error_log)[0]
        assert entry["type"] == "unhandledRejection"
        assert entry["error_type"] == "OSError"
        exit_func.assert_not_called()

    async def test_message_only_context(self, handler, error_log, exit_func):
        await handler.handle_loop_exception(
            asyncio.get_running_loop(), {"message": "Task was destroyed"}
        )

        entry = _entries(error_log)[0]
        assert entry["error"] == "Task was destroyed"
        assert entry["stack"] is None
        exit_func.assert_not_called()

    def test_record_is_written_off_the_loop_thread(self, handler, error_log):
        loop = MagicMock()

        with patch.object(error_log, "record") as mock_record:
            handler.handle_loop_exception(loop, {"message": "Task was destroyed"})

            mock_record.assert_not_called()
            executor, job = loop.run_in_executor.call_args.args
            assert executor is None
            job()

        mock_record.assert_called_once_with(
            "Task was destroyed", type="unhandledRejection"
        )


class TestInstall:
    def test_installs_hooks(self, handler):
        loop = MagicMock()
        with patch.object(sys, "excepthook"), patch.object(threading, "excepthook"):
            handler.install(loop)

            assert sys.excepthook == handler.handle_uncaught_exception
            assert threading.excepthook == handler.handle_thread_exception

        loop.set_exception_handler.assert_called_once_with(handler.handle_loop_exception)

    async def test_failed_background_task_is_recorded(self, handler, error_log, exit_func):
        loop = asyncio.get_running_loop()
        pending = []
        previous = loop.get_exception_handler()
        loop.set_exception_handler(
            lambda lp, context: pending.append(handler.handle_loop_exception(lp, context))
        )
        try:
            loop.call_exception_handler(
                {"message": "Future exception was never retrieved", "exception": ValueError("x")}
            )
        finally:
            loop.set_exception_handler(previous)
        await asyncio.gather(*pending)

        assert _entries(error_log)[0]["type"] == "unhandledRejection"
        exit_func.assert_not_called()
