#!filepath: lanetrace/utils/errors.py
from __future__ import annotations

from pathlib import Path
from typing import Optional


class TimelineError(RuntimeError):
    """
    所有 lanetrace 错误的基类（结构化错误值）

    - kind      : 错误类别（usage / io / parse / semantic）
    - file      : 出错的文件（可选）
    - operation : 出错时正在执行的操作（可选）

    只在最外层（CLI）打印一次，不打印 traceback。
    """

    kind: str = "error"

    def __init__(
        self,
        message: str,
        *,
        file: Optional[str | Path] = None,
        operation: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.file = str(file) if file is not None else None
        self.operation = operation

    def with_context(
        self,
        *,
        file: Optional[str | Path] = None,
        operation: Optional[str] = None,
    ) -> "TimelineError":
        """Fill in context that is only known further up the call chain."""
        if self.file is None and file is not None:
            self.file = str(file)
        if self.operation is None and operation is not None:
            self.operation = operation
        return self

    def describe(self) -> str:
        where = [p for p in (self.operation, self.file) if p]
        suffix = f" ({', '.join(where)})" if where else ""
        return f"{self.kind} error: {self.message}{suffix}"

    def __str__(self) -> str:
        return self.describe()


class UsageError(TimelineError):
    """Missing or invalid command line arguments."""

    kind = "usage"


class TimelineIOError(TimelineError):
    """File open / read / write failure."""

    kind = "io"


class ParseError(TimelineError):
    """Malformed or truncated JSON input."""

    kind = "parse"


class SemanticError(TimelineError):
    """Unrecognized event shape or invalid open/close sequencing."""

    kind = "semantic"
