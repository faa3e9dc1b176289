# topmark:header:start
#
#   project      : PipeMerge
#   file         : conftest.py
#   file_relpath : tests/conftest.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Pytest configuration for the PipeMerge test suite.

Sets TRACE logging for the whole run, keeps the developer's
``PIPEMERGE_LOG_LEVEL`` out of the tests, and provides typed wrappers for
pytest decorators plus a few shared fixtures.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar, cast

import pytest

from pipemerge.config import logging
from pipemerge.history.recorder import HistoryStore
from pipemerge.pipeline.context import ExecutionContext

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

F = TypeVar("F", bound=Callable[..., object])

DecoratorType = Callable[[F], F]


def as_typed_mark(mark: Any) -> DecoratorType[Any]:
    """Wrap a pytest mark so static type checkers preserve the function type.

    Args:
        mark (Any): A pytest mark decorator such as `pytest.mark.integration`.

    Returns:
        DecoratorType[Any]: A decorator that preserves the wrapped function's type.
    """

    def _decorator(func: F) -> F:
        return cast("F", mark(func))

    return _decorator


mark_integration: DecoratorType[Any] = as_typed_mark(pytest.mark.integration)
mark_pipeline: DecoratorType[Any] = as_typed_mark(pytest.mark.pipeline)
mark_cli: DecoratorType[Any] = as_typed_mark(pytest.mark.cli)


def parametrize(*args: Any, **kwargs: Any) -> Callable[[F], F]:
    """Typed wrapper for `pytest.mark.parametrize`."""
    mark: pytest.MarkDecorator = pytest.mark.parametrize(*args, **kwargs)
    return as_typed_mark(mark)


def hookimpl(*args: Any, **kwargs: Any) -> Callable[[F], F]:
    """Typed wrapper for `pytest.hookimpl`."""
    return as_typed_mark(pytest.hookimpl(*args, **kwargs))


def fixture(*args: Any, **kwargs: Any) -> Callable[[F], F]:
    """Typed wrapper for `pytest.fixture`."""
    return as_typed_mark(pytest.fixture(*args, **kwargs))


@pytest.fixture(autouse=True)
def silence_pipemerge_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure the runtime log level is not forced via env during tests."""
    monkeypatch.delenv(logging.LOG_LEVEL_ENV_VAR, raising=False)


@hookimpl(tryfirst=True)
def pytest_configure(config: pytest.Config) -> None:
    """Set the logging level to TRACE for all tests."""
    logging.setup_logging(level=logging.TRACE_LEVEL)


@fixture()
def context() -> ExecutionContext:
    """Return a fresh context over a small user payload."""
    return ExecutionContext.bootstrap({"user": {"email": "  John@Example.COM ", "name": "John"}})


@fixture()
def history_store() -> Iterator[HistoryStore]:
    """Return an in-memory SQLite history store with its schema created."""
    store = HistoryStore("sqlite://")
    store.create_schema()
    yield store
    store.dispose()


@fixture()
def history_db_url(tmp_path: Path) -> str:
    """Return a file-backed SQLite URL inside ``tmp_path``."""
    return f"sqlite:///{tmp_path / 'history.db'}"
