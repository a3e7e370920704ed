#!filepath: lanetrace/io/chunk_reader.py
from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Optional

from lanetrace import logs
from lanetrace.utils.errors import TimelineIOError


class ChunkReader:
    """
    按需把输入文件分块读入调用方持有的 buffer。

    - read_next 只在 EOF 时返回少于 size 的字节数（不是错误）
    - 不保留之前读过的字节：续读状态全部在 IncrementalDecoder 中
    - 作为 context manager 使用，任何退出路径都会关闭文件
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._fp: Optional[BinaryIO] = None
        self.at_eof = False
        self.bytes_read = 0
        self.chunks_read = 0

    def open(self) -> "ChunkReader":
        try:
            self._fp = open(self.path, "rb")
        except OSError as e:
            raise TimelineIOError(
                f"cannot open input: {e.strerror or e}",
                file=self.path,
                operation="open",
            ) from e
        logs.debug(f"[ChunkReader] opened {self.path}")
        return self

    def close(self) -> None:
        if self._fp is not None:
            self._fp.close()
            self._fp = None

    def __enter__(self) -> "ChunkReader":
        if self._fp is None:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def read_next(self, buffer: bytearray, size: int) -> int:
        """
        读取最多 size 字节到 buffer[0:size]，返回实际读取字节数。
        buffer 不够大时就地扩容。
        """
        if self._fp is None:
            raise TimelineIOError("reader is not open", file=self.path, operation="read")
        if size <= 0:
            raise ValueError("size must be positive")

        if len(buffer) < size:
            buffer.extend(bytes(size - len(buffer)))

        total = 0
        try:
            while total < size:
                data = self._fp.read(size - total)
                if not data:
                    self.at_eof = True
                    break
                buffer[total:total + len(data)] = data
                total += len(data)
        except OSError as e:
            raise TimelineIOError(
                f"read failed: {e.strerror or e}",
                file=self.path,
                operation="read",
            ) from e

        self.bytes_read += total
        self.chunks_read += 1
        return total
