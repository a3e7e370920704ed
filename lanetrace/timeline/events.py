#!filepath: lanetrace/timeline/events.py
"""
事件 schema（v1，外部版本化契约）

每条日志是一个 JSON object：

    {"lane": "A", "ts": 0,  "op": "open",    "state": "busy"}
    {"lane": "A", "ts": 10, "op": "close"}
    {"lane": "A", "ts": 12, "op": "instant", "state": "vblank"}
    {"lane": "B", "ts": 0,  "op": "register"}

- lane  : 非空字符串，不含 XML 非法字符
- ts    : 毫秒（有限的 int / float，不接受 bool）
- op    : register / open / close / instant
- state : open / instant 必填；close 可省略（忽略）
- v     : 可选，schema 版本，目前只有 1
- 其他字段忽略（留给 producer 扩展）
"""
from __future__ import annotations

import math
import re
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)

from lanetrace.utils.errors import SemanticError

SCHEMA_VERSION = 1

# XML 1.0 不允许的字符：C0 控制字符（\t \n \r 除外）、代理项、U+FFFE / U+FFFF
_XML_ILLEGAL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


class EventOp(str, Enum):
    REGISTER = "register"
    OPEN = "open"
    CLOSE = "close"
    INSTANT = "instant"


class TimelineEvent(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    lane: StrictStr = Field(min_length=1)
    ts: Union[StrictInt, StrictFloat]
    op: EventOp
    state: Optional[StrictStr] = None
    v: Literal[1] = SCHEMA_VERSION

    @field_validator("ts")
    @classmethod
    def check_finite_ts(cls, v):
        # json 把 1e400 解成 inf；超大整数转 float 时溢出
        try:
            finite = math.isfinite(v)
        except OverflowError:
            finite = False
        if not finite:
            raise ValueError("timestamp must be a finite number")
        return v

    @field_validator("lane", "state")
    @classmethod
    def check_xml_text(cls, v):
        if v is not None and _XML_ILLEGAL.search(v):
            raise ValueError("contains characters that are not allowed in XML text")
        return v

    @model_validator(mode="after")
    def check_state_required(self) -> "TimelineEvent":
        if self.op in (EventOp.OPEN, EventOp.INSTANT) and not self.state:
            raise ValueError(f"op {self.op.value!r} requires a non-empty 'state'")
        return self


def parse_event(obj: Any) -> TimelineEvent:
    """
    decoded JSON value → TimelineEvent；形状不符时抛 SemanticError
    """
    if not isinstance(obj, dict):
        raise SemanticError(
            f"expected a JSON object, got {type(obj).__name__}",
            operation="interpret",
        )
    try:
        return TimelineEvent.model_validate(obj)
    except ValidationError as e:
        errs = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<event>'}: {err['msg']}"
            for err in e.errors()
        )
        raise SemanticError(f"unrecognized event {obj!r}: {errs}", operation="interpret") from e
