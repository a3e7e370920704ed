#!filepath: lanetrace/decoder/incremental.py
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Union

# ============================
# feed() 的三种结果
# ============================


@dataclass(frozen=True)
class ObjectReady:
    value: Any
    # 当前 slice 中属于该对象（含前导空白）的字节数
    bytes_consumed: int


@dataclass(frozen=True)
class NeedMoreInput:
    # 未完成 value 已缓存的字节数；0 表示处于两个 value 之间
    pending: int


@dataclass(frozen=True)
class MalformedInput:
    code: str
    # 出错字节在当前 slice 中的偏移
    offset: int
    detail: str = ""


FeedResult = Union[ObjectReady, NeedMoreInput, MalformedInput]

_WHITESPACE = b" \t\r\n"
_OPENERS = b"{["
_CLOSERS = b"}]"
_QUOTE = ord('"')
_BACKSLASH = ord("\\")

# 字符串外：只关心引号和括号；字符串内：只关心引号和反斜杠
_STRUCTURAL = re.compile(rb'["{}\[\]]')
_IN_STRING = re.compile(rb'["\\]')


def _reject_constant(name: str):
    raise ValueError(f"non-standard JSON constant: {name}")


class IncrementalDecoder:
    """
    可续读的 JSON 解码器（背靠背 JSON value 流）

    - 扫描状态（嵌套深度 / 字符串内 / 转义）跨 feed() 调用保持
    - 已扫描的字节只缓存、不重扫；value 闭合后一次性交给 json 解码
    - 顶层只接受 object / array
    - 一旦返回 MalformedInput，解码器进入终止态
    """

    def __init__(self):
        self.objects_decoded = 0
        self._malformed: MalformedInput | None = None
        self._reset()

    def _reset(self) -> None:
        self._buf = bytearray()
        self._started = False
        self._depth = 0
        self._in_string = False
        self._escape = False

    @property
    def pending(self) -> int:
        return len(self._buf) if self._started else 0

    @property
    def failed(self) -> bool:
        return self._malformed is not None

    def feed(self, data: bytes | bytearray | memoryview) -> FeedResult:
        if self._malformed is not None:
            return self._malformed

        n = len(data)
        pos = 0

        if not self._started:
            while pos < n and data[pos] in _WHITESPACE:
                pos += 1
            if pos == n:
                return NeedMoreInput(pending=0)
            if data[pos] not in _OPENERS:
                return self._fail("unexpected-token", pos, f"byte {bytes([data[pos]])!r}")
            self._started = True

        start = pos
        end = self._scan(data, pos)

        if end is None:
            self._buf += data[start:]
            return NeedMoreInput(pending=len(self._buf))

        self._buf += data[start:end]
        raw = bytes(self._buf)
        self._reset()

        try:
            value = json.loads(raw.decode("utf-8"), parse_constant=_reject_constant)
        except UnicodeDecodeError as e:
            return self._fail("invalid-utf8", end, str(e))
        except RecursionError:
            return self._fail("too-deep", end, "value is nested too deeply to decode")
        except ValueError as e:
            # json.JSONDecodeError 是 ValueError 的子类
            return self._fail("invalid-json", end, str(e))

        self.objects_decoded += 1
        return ObjectReady(value=value, bytes_consumed=end)

    def _scan(self, data, pos: int) -> int | None:
        """
        从 pos 继续扫描，返回 value 闭合后的位置（exclusive）；
        slice 用完仍未闭合则返回 None（状态已保存）。
        """
        n = len(data)
        while pos < n:
            if self._in_string:
                if self._escape:
                    self._escape = False
                    pos += 1
                    continue
                m = _IN_STRING.search(data, pos)
                if m is None:
                    return None
                pos = m.start()
                if data[pos] == _BACKSLASH:
                    self._escape = True
                else:
                    self._in_string = False
                pos += 1
                continue

            m = _STRUCTURAL.search(data, pos)
            if m is None:
                return None
            pos = m.start()
            b = data[pos]
            pos += 1
            if b == _QUOTE:
                self._in_string = True
            elif b in _OPENERS:
                self._depth += 1
            elif b in _CLOSERS:
                self._depth -= 1
                if self._depth == 0:
                    return pos
        return None

    def _fail(self, code: str, offset: int, detail: str) -> MalformedInput:
        self._malformed = MalformedInput(code=code, offset=offset, detail=detail)
        self._reset()
        return self._malformed
