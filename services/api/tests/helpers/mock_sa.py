"""
MockSASession -- test helper that wraps an AsyncMock session with a call
queue dispatcher, so tests script what each session.execute() returns.

Usage:
    session = MockSASession()
    session.returns_many([vendor_a, vendor_b])   # next execute -> scalars().all()
    session.returns_rowcount(5)                  # next execute -> .rowcount
    session.returns_rows([("v-1", 3)])           # next execute -> .all()
    session.raises(OperationalError(...))        # next execute raises

Chain for sequential calls:
    session.returns_many([...]).returns_rowcount(2)

Assert via:
    session.mock.commit.assert_awaited_once()
    session.statements   # every statement passed to execute(), in order
"""

from __future__ import annotations

from collections import deque
from typing import Any
from unittest.mock import AsyncMock, MagicMock


class _ScalarsResult:
    def __init__(self, items: list[Any] | None):
        self._items = items or []

    def all(self) -> list[Any]:
        return list(self._items)

    def first(self) -> Any | None:
        return self._items[0] if self._items else None


class _ExecuteResult:
    """Stand-in for the Result returned by session.execute()."""

    def __init__(
        self,
        *,
        scalars_items: list[Any] | None = None,
        rowcount: int | None = None,
        rows: list[tuple] | None = None,
    ):
        self._scalars_items = scalars_items
        self._rowcount = rowcount
        self._rows = rows

    def scalars(self) -> _ScalarsResult:
        return _ScalarsResult(self._scalars_items)

    @property
    def rowcount(self) -> int:
        return self._rowcount if self._rowcount is not None else 0

    def all(self) -> list[tuple]:
        return list(self._rows or [])


class _Raise:
    def __init__(self, exc: BaseException):
        self.exc = exc


class MockSASession:
    """
    AsyncMock session whose execute() pops scripted results in order.
    An unscripted execute() returns an empty result (rowcount 0, no rows).
    """

    def __init__(self) -> None:
        self._queue: deque[_ExecuteResult | _Raise] = deque()
        self.statements: list[Any] = []
        self.mock = AsyncMock()
        self.mock.commit = AsyncMock()
        self.mock.rollback = AsyncMock()
        self.mock.close = AsyncMock()
        self.mock.add = MagicMock()

        async def _execute_side_effect(statement, *args, **kwargs):
            self.statements.append(statement)
            if not self._queue:
                return _ExecuteResult()
            item = self._queue.popleft()
            if isinstance(item, _Raise):
                raise item.exc
            return item

        self.mock.execute = AsyncMock(side_effect=_execute_side_effect)

    def returns_many(self, items: list[Any]) -> MockSASession:
        """Next execute() returns these items via scalars().all()."""
        self._queue.append(_ExecuteResult(scalars_items=items))
        return self

    def returns_rowcount(self, count: int) -> MockSASession:
        """Next execute() reports this rowcount."""
        self._queue.append(_ExecuteResult(rowcount=count))
        return self

    def returns_rows(self, rows: list[tuple]) -> MockSASession:
        """Next execute() returns these row tuples via .all()."""
        self._queue.append(_ExecuteResult(rows=rows))
        return self

    def raises(self, exc: BaseException) -> MockSASession:
        """Next execute() raises exc."""
        self._queue.append(_Raise(exc))
        return self

    @property
    def pending(self) -> int:
        """Scripted results not consumed yet."""
        return len(self._queue)

    def sql(self, index: int) -> str:
        """Compiled-ish SQL text of the index-th executed statement."""
        return str(self.statements[index])
