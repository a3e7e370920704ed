#!filepath: lanetrace/timeline/interpreter.py
from __future__ import annotations

from typing import Any, Optional

from lanetrace import logs
from lanetrace.engines.base import BaseEngine
from lanetrace.timeline.events import EventOp, TimelineEvent, parse_event
from lanetrace.timeline.model import TimelineModel


class EventInterpreter(BaseEngine[Any, TimelineEvent]):
    """
    decoded JSON object → timeline 操作 → 写入 TimelineModel

    - register : 注册 lane（幂等）
    - open     : lane 上不能已有 open interval
    - close    : lane 上必须有 open interval
    - instant  : 直接追加 marker
    每个事件都会先隐式注册 lane；操作成功后才更新 lane 时间戳与全局 min / max。
    任何错误立即抛 SemanticError（fail-fast，不跳过）。
    """

    def __init__(self, model: TimelineModel):
        self.model = model
        self.last_ts: Optional[float] = None
        self.events_processed = 0

    def process(self, event: Any) -> TimelineEvent:
        ev = parse_event(event)

        lane = self.model.register_lane(ev.lane)
        self.model.check_order(lane, ev.ts)

        if ev.op is EventOp.OPEN:
            self.model.open_interval(lane, ev.ts, ev.state)
        elif ev.op is EventOp.CLOSE:
            self.model.close_interval(lane, ev.ts)
        elif ev.op is EventOp.INSTANT:
            self.model.add_instant(lane, ev.ts, ev.state)

        self.model.observe(lane, ev.ts)
        self.last_ts = ev.ts
        self.events_processed += 1
        return ev

    def finish(self) -> TimelineModel:
        """
        流结束：用最后一个事件的时间戳 finalize 模型
        """
        open_lanes = [lane.key for lane in self.model.lanes if lane.open_interval is not None]
        if open_lanes:
            logs.info(
                f"[Interpreter] closing {len(open_lanes)} open interval(s) at ts={self.last_ts}: "
                f"{', '.join(open_lanes)}"
            )
        self.model.finalize(self.last_ts)
        return self.model
