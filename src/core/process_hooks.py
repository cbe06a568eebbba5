"""Process-level fault handling.

Faults that escape every request handler end up here:

- An uncaught exception (main thread or worker thread) is logged,
  recorded in the error log, and terminates the process with status 1,
  since the process may be left in an inconsistent state.
- An exception reported by the asyncio event loop (an un-awaited task
  that failed, a callback error) is logged and recorded, but the
  process keeps running.
"""

import asyncio
import os
import sys
import threading
from collections.abc import Callable
from functools import partial
from types import TracebackType
from typing import Any

from src.logging_config import get_logger
from src.services.error_log import ErrorLog

logger = get_logger(__name__)

FATAL_EXIT_CODE = 1


def _default_exit(code: int) -> None:
    os._exit(code)


class ProcessFaultHandler:
    """Installs the excepthooks and the event loop exception handler."""

    def __init__(
        self,
        error_log: ErrorLog,
        exit_func: Callable[[int], Any] = _default_exit,
    ):
        self.error_log = error_log
        self.exit_func = exit_func

    def handle_uncaught_exception(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        """sys.excepthook: log, record, then terminate."""
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc, tb)
            return
        logger.critical(
            "Uncaught exception, terminating process",
            exc_info=(exc_type, exc, tb),
            error_type=exc_type.__name__,
        )
        self.error_log.record(exc, type="uncaughtException")
        self.exit_func(FATAL_EXIT_CODE)

    def handle_thread_exception(self, args: threading.ExceptHookArgs) -> None:
        """threading.excepthook: same policy as the main thread."""
        if args.exc_value is None:
            return
        self.handle_uncaught_exception(args.exc_type, args.exc_value, args.exc_traceback)

    def handle_loop_exception(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> asyncio.Future:
        """Event loop exception handler: log and record, keep running.

        The record is written on the loop's default executor; the returned
        future completes once it is on disk.
        """
        exc = context.get("exception")
        message = context.get("message", "Unhandled exception in event loop")
        if exc is not None:
            logger.critical(
                "Unhandled async exception",
                exc_info=(type(exc), exc, exc.__traceback__),
                loop_message=message,
            )
        else:
            logger.error("Unhandled async error", loop_message=message)
        return loop.run_in_executor(
            None,
            partial(
                self.error_log.record,
                exc if exc is not None else message,
                type="unhandledRejection",
            ),
        )

    def install(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Install all hooks; the loop handler only if a loop is given."""
        sys.excepthook = self.handle_uncaught_exception
        threading.excepthook = self.handle_thread_exception
        if loop is not None:
            loop.set_exception_handler(self.handle_loop_exception)
