#!filepath: lanetrace/timeline/model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from lanetrace.utils.errors import SemanticError

# 未设置窗口边界的哨兵值
UNSET_MS = -1


def _unset_to_none(value: Optional[float]) -> Optional[float]:
    return None if value is None or value == UNSET_MS else value


@dataclass
class Interval:
    lane: str
    start: float
    end: Optional[float]
    state: str
    instant: bool = False

    @property
    def is_open(self) -> bool:
        return self.end is None


@dataclass
class Lane:
    """
    一个被监控实体的时间线

    - intervals 按 start 有序、互不重叠
    - markers 单独保存（零长度，可落在某个 interval 内部）
    - 同一时刻最多一个 open interval
    """

    key: str
    intervals: List[Interval] = field(default_factory=list)
    markers: List[Interval] = field(default_factory=list)
    open_interval: Optional[Interval] = None
    last_ts: Optional[float] = None


@dataclass(frozen=True)
class Window:
    from_ms: Optional[float] = None
    to_ms: Optional[float] = None

    @classmethod
    def from_args(cls, from_ms: Optional[float], to_ms: Optional[float]) -> "Window":
        """-1 / None 都表示未设置"""
        return cls(_unset_to_none(from_ms), _unset_to_none(to_ms))

    @property
    def is_set(self) -> bool:
        return self.from_ms is not None and self.to_ms is not None

    def resolve(self, model: "TimelineModel") -> "Window":
        """
        有效窗口：两端都给定时用请求值，否则用 [model.min_ts, model.max_ts]
        """
        if self.is_set:
            return self
        return Window(model.min_ts, model.max_ts)


class TimelineModel:
    """
    所有 Lane + 全局时间范围

    解析阶段只由 EventInterpreter 修改；finalize() 之后只读。
    """

    def __init__(self):
        self._lanes: Dict[str, Lane] = {}
        self.min_ts: Optional[float] = None
        self.max_ts: Optional[float] = None
        self.finalized = False

    # -------------------------------------------------
    # read
    # -------------------------------------------------
    @property
    def lanes(self) -> List[Lane]:
        # dict 保序 → 注册顺序
        return list(self._lanes.values())

    def lane(self, key: str) -> Lane:
        return self._lanes[key]

    def __len__(self) -> int:
        return len(self._lanes)

    def iter_intervals(self) -> Iterator[Interval]:
        """所有 interval 与 instant marker，按 lane 注册顺序"""
        for lane in self._lanes.values():
            yield from lane.intervals
            yield from lane.markers

    @property
    def is_empty(self) -> bool:
        return self.min_ts is None

    def snapshot(self) -> Tuple:
        """
        纯值快照，用于比较两个模型是否一致
        """
        return (
            self.min_ts,
            self.max_ts,
            self.finalized,
            tuple(
                (
                    lane.key,
                    tuple((i.start, i.end, i.state) for i in lane.intervals),
                    tuple((m.start, m.state) for m in lane.markers),
                    None if lane.open_interval is None
                    else (lane.open_interval.start, lane.open_interval.state),
                )
                for lane in self._lanes.values()
            ),
        )

    # -------------------------------------------------
    # mutate（仅解析阶段）
    # -------------------------------------------------
    def _check_mutable(self) -> None:
        if self.finalized:
            raise SemanticError("timeline model is finalized", operation="mutate")

    def register_lane(self, key: str) -> Lane:
        self._check_mutable()
        lane = self._lanes.get(key)
        if lane is None:
            lane = Lane(key=key)
            self._lanes[key] = lane
        return lane

    def check_order(self, lane: Lane, ts: float) -> None:
        if lane.last_ts is not None and ts < lane.last_ts:
            raise SemanticError(
                f"timestamp goes backwards on lane {lane.key!r}: {ts} < {lane.last_ts}",
                operation="observe",
            )

    def observe(self, lane: Lane, ts: float) -> None:
        """记录一个已成功应用的时间戳：lane.last_ts 与全局 min / max"""
        self._check_mutable()
        self.check_order(lane, ts)
        lane.last_ts = ts
        if self.min_ts is None or ts < self.min_ts:
            self.min_ts = ts
        if self.max_ts is None or ts > self.max_ts:
            self.max_ts = ts

    def open_interval(self, lane: Lane, ts: float, state: str) -> Interval:
        self._check_mutable()
        if lane.open_interval is not None:
            raise SemanticError(
                f"interval already open on lane {lane.key!r}", operation="open"
            )
        lane.open_interval = Interval(lane=lane.key, start=ts, end=None, state=state)
        return lane.open_interval

    def close_interval(self, lane: Lane, ts: float) -> Interval:
        self._check_mutable()
        interval = lane.open_interval
        if interval is None:
            raise SemanticError(
                f"no interval to close on lane {lane.key!r}", operation="close"
            )
        interval.end = ts
        lane.intervals.append(interval)
        lane.open_interval = None
        return interval

    def add_instant(self, lane: Lane, ts: float, state: str) -> Interval:
        self._check_mutable()
        marker = Interval(lane=lane.key, start=ts, end=ts, state=state, instant=True)
        lane.markers.append(marker)
        return marker

    # -------------------------------------------------
    # finalize
    # -------------------------------------------------
    def finalize(self, last_timestamp: Optional[float]) -> None:
        """
        用最后一个成功处理事件的时间戳关闭所有仍 open 的 interval，
        然后冻结模型。只能调用一次。

        last_timestamp 早于 interval.start（其他 lane 的最后事件更早）时，
        interval 收缩为零长度。
        """
        if self.finalized:
            raise SemanticError("timeline model already finalized", operation="finalize")

        for lane in self._lanes.values():
            if lane.open_interval is None:
                continue
            if last_timestamp is None:
                raise SemanticError(
                    f"cannot close open interval on lane {lane.key!r} without a timestamp",
                    operation="finalize",
                )
            self.close_interval(lane, max(last_timestamp, lane.open_interval.start))

        self.finalized = True
