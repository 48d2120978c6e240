"""Logging utilities for forestkit.

This module provides a custom TRAINING log level and a context manager for
enabling/disabling forestkit logging with loguru.

Models emit TRAINING records only when constructed with ``verbose=True``;
those records describe tree structure as it is grown (accepted splits, child
sizes, forest members, cross-validation folds).

Note:
    Importing this module removes loguru's default stderr handler (ID 0) so
    that ``enable_logging()`` output is not duplicated. If your application
    has already replaced handler 0 the removal is a no-op.
"""

from __future__ import annotations

import contextlib
import sys
import threading
import warnings
from typing import TYPE_CHECKING, ClassVar, Final, Literal

from loguru import logger

if TYPE_CHECKING:
    from types import TracebackType

    from loguru import Record

PACKAGE_NAME: Final[str] = __name__.split(".")[0]

with contextlib.suppress(ValueError):
    logger.remove(0)

# TRAINING sits between INFO (20) and WARNING (30)
TRAINING_LEVEL: Final[str] = "TRAINING"
TRAINING_LEVEL_NUMBER: Final[int] = 25


def _register_training_level() -> None:
    """Register the TRAINING custom log level with loguru.

    If the level already exists with a different numeric value a UserWarning
    is emitted, because loguru does not allow an existing level to be renumbered.
    """
    try:
        existing_level = logger.level(TRAINING_LEVEL)
    except ValueError:
        logger.level(TRAINING_LEVEL, no=TRAINING_LEVEL_NUMBER, icon="🌲")
    else:
        if existing_level.no != TRAINING_LEVEL_NUMBER:
            msg = (
                f"TRAINING level already registered with numeric value {existing_level.no},"
                f" expected {TRAINING_LEVEL_NUMBER}"
            )
            warnings.warn(msg, stacklevel=2)


_register_training_level()

type LogLevel = Literal[
    "TRACE",
    "DEBUG",
    "INFO",
    "TRAINING",
    "WARNING",
    "ERROR",
    "CRITICAL",
]

type LogFormat = Literal["short", "full"]


class LoggingHandle:
    """Handle for one forestkit logging handler.

    Examples:
        >>> with enable_logging():  # doctest: +SKIP
        ...     tree.fit(data, labels)

        >>> handle = enable_logging(level="DEBUG")  # doctest: +SKIP
        >>> handle.disable()  # doctest: +SKIP
    """

    _active_ids: ClassVar[set[int]] = set()
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, handler_id: int) -> None:
        """Initialize the logging handle.

        Args:
            handler_id (int): The loguru handler ID from logger.add().
        """
        self.handler_id: int | None = handler_id
        with LoggingHandle._lock:
            LoggingHandle._active_ids.add(handler_id)

    def disable(self) -> None:
        """Remove this handle's handler.

        Disabling the last active handle also calls ``logger.disable("forestkit")``.
        Calling this more than once is a no-op.
        """
        with LoggingHandle._lock:
            if self.handler_id is None:
                return
            LoggingHandle._active_ids.discard(self.handler_id)
            with contextlib.suppress(ValueError):
                logger.remove(self.handler_id)
            self.handler_id = None
            if not LoggingHandle._active_ids:
                logger.disable(PACKAGE_NAME)

    def __enter__(self) -> LoggingHandle:
        """Enter context manager.

        Returns:
            LoggingHandle: This handle instance.
        """
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager and disable logging.

        Args:
            exc_type (type[BaseException] | None): The exception type, if raised.
            exc_val (BaseException | None): The exception instance, if raised.
            exc_tb (TracebackType | None): The traceback, if raised.
        """
        self.disable()

    @classmethod
    def get_active_handle_count(cls) -> int:
        """Return the number of currently active logging handles.

        Returns:
            int: Count of handles that have not been disabled.
        """
        with cls._lock:
            return len(cls._active_ids)


def enable_logging(
    *,
    level: LogLevel = TRAINING_LEVEL,
    log_format: LogFormat = "short",
) -> LoggingHandle:
    """Enable forestkit logging to stderr.

    Args:
        level (LogLevel): Minimum log level to display. The default "TRAINING"
            shows the structural diagnostics of verbose models plus warnings.
            Lower to "INFO" for per-model summaries or "DEBUG" for every
            train and predict call.
        log_format (LogFormat): "short" shows the function name only; "full"
            shows module:function:line.

    Returns:
        LoggingHandle: Independent handle for managing the logging handler.

    Note:
        When the last active handle is disabled, ``logger.disable("forestkit")``
        is called, which also silences any handler you routed forestkit
        records to yourself.
    """
    logger.enable(PACKAGE_NAME)

    if log_format == "short":
        format_str = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "  # noqa: RUF027 - loguru format string
            "<cyan>{function}</cyan> - "
            "<level>{message}</level> {extra}"
        )
    else:  # "full"
        format_str = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "  # noqa: RUF027 - loguru format string
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level> {extra}"
        )

    handler_id = logger.add(
        sys.stderr,
        level=level,
        filter=_is_forestkit_record,
        format=format_str,
    )

    return LoggingHandle(handler_id)


def _is_forestkit_record(record: Record) -> bool:
    """Pass only records emitted from inside the forestkit package.

    Args:
        record (Record): The loguru Record object to filter.

    Returns:
        bool: True if the record comes from a forestkit module.
    """
    name = record["name"]
    return name is not None and name.startswith(PACKAGE_NAME)
