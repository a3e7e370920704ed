#!filepath: lanetrace/render/svg_renderer.py
from __future__ import annotations

import io
import re
from pathlib import Path
from typing import Dict, Optional, Tuple

import svgwrite

from lanetrace import logs
from lanetrace.config.render_config import RenderConfig
from lanetrace.timeline.model import Interval, TimelineModel, Window
from lanetrace.utils.errors import SemanticError, TimelineIOError, UsageError
from lanetrace.utils.filesystem import FileSystem

_CLASS_UNSAFE = re.compile(r"[^A-Za-z0-9_-]+")


def clip_interval(interval: Interval, window: Window) -> Optional[Tuple[float, float]]:
    """
    把 interval 裁剪到窗口内；不可见时返回 None。

    - 普通 interval：max(start, from) < min(end, to) 才保留
    - instant marker：from <= ts <= to 才保留
    """
    if interval.instant:
        if window.from_ms <= interval.start <= window.to_ms:
            return interval.start, interval.start
        return None

    start = max(interval.start, window.from_ms)
    end = min(interval.end, window.to_ms)
    if start >= end:
        return None
    return start, end


def _fmt(value: float) -> float:
    # 固定精度，保证输出稳定
    return round(value, 3)


def _fmt_ms(value: float) -> str:
    return f"{round(value, 3):g}"


class SVGRenderer:
    """
    finalized TimelineModel + Window → SVG 文档

    - lane 按注册顺序排成水平行
    - 时间 → 像素为线性映射
    - 颜色按 state 首次出现顺序从 palette 中分配
    - 纯函数：相同输入产生逐字节相同的输出
    """

    def __init__(self, config: RenderConfig | None = None):
        self.config = config or RenderConfig()

    # -------------------------------------------------
    # public
    # -------------------------------------------------
    def render(self, model: TimelineModel, window: Window) -> str:
        if not model.finalized:
            raise SemanticError("timeline model must be finalized before rendering", operation="render")

        win = window.resolve(model)
        if win.is_set and win.from_ms > win.to_ms:
            raise UsageError(
                f"window start {win.from_ms} is after window end {win.to_ms}",
                operation="render",
            )

        dwg = self._build(model, win)
        buf = io.StringIO()
        dwg.write(buf)
        return buf.getvalue()

    def write(self, model: TimelineModel, window: Window, path: str | Path) -> int:
        """
        渲染并原子写入 path，返回写入的字节数。
        """
        data = self.render(model, window).encode("utf-8")
        try:
            FileSystem.safe_write(path, data)
        except OSError as e:
            raise TimelineIOError(
                f"cannot write output: {e.strerror or e}",
                file=path,
                operation="write",
            ) from e
        logs.info(f"[SVGRenderer] wrote {path} ({FileSystem.format_size(len(data))})")
        return len(data)

    # -------------------------------------------------
    # layout
    # -------------------------------------------------
    def _build(self, model: TimelineModel, win: Window) -> svgwrite.Drawing:
        cfg = self.config
        lanes = model.lanes
        row_pitch = cfg.lane_height + cfg.lane_gap

        plot_x0 = cfg.margin + cfg.label_width
        axis_y = cfg.margin + len(lanes) * row_pitch
        width = plot_x0 + cfg.plot_width + cfg.margin
        height = axis_y + cfg.axis_height + cfg.margin

        dwg = svgwrite.Drawing(size=(width, height), profile="full", debug=False)
        dwg.viewbox(0, 0, width, height)
        if win.is_set:
            dwg.set_desc(title=f"timeline {_fmt_ms(win.from_ms)} .. {_fmt_ms(win.to_ms)} ms")
        dwg.add(dwg.rect(insert=(0, 0), size=(width, height), fill="white"))

        if not win.is_set:
            # 空模型：没有时间范围，也就没有行和刻度
            return dwg

        span = win.to_ms - win.from_ms
        scale = cfg.plot_width / span if span > 0 else 0.0

        def to_x(t: float) -> float:
            return _fmt(plot_x0 + (t - win.from_ms) * scale)

        colors = self._assign_colors(model)
        drawn = 0
        dropped = 0

        for idx, lane in enumerate(lanes):
            y = cfg.margin + idx * row_pitch
            row = dwg.g(class_="lane")

            row.add(dwg.rect(
                insert=(plot_x0, y),
                size=(cfg.plot_width, cfg.lane_height),
                fill="#f4f4f4",
            ))
            row.add(dwg.text(
                lane.key,
                insert=(cfg.margin, _fmt(y + cfg.lane_height * 0.7)),
                font_size=cfg.font_size,
                font_family="sans-serif",
            ))

            for interval in lane.intervals:
                clipped = clip_interval(interval, win)
                if clipped is None:
                    dropped += 1
                    continue
                x0, x1 = to_x(clipped[0]), to_x(clipped[1])
                rect = dwg.rect(
                    insert=(x0, y),
                    size=(_fmt(x1 - x0), cfg.lane_height),
                    fill=colors[interval.state],
                    class_=f"interval state-{self._css_name(interval.state)}",
                )
                rect.set_desc(title=(
                    f"{lane.key}: {interval.state} "
                    f"[{_fmt_ms(interval.start)}, {_fmt_ms(interval.end)}] ms"
                ))
                row.add(rect)
                drawn += 1

            for marker in lane.markers:
                if clip_interval(marker, win) is None:
                    dropped += 1
                    continue
                x = to_x(marker.start)
                line = dwg.line(
                    start=(x, y),
                    end=(x, y + cfg.lane_height),
                    stroke=colors[marker.state],
                    stroke_width=2,
                    class_=f"instant state-{self._css_name(marker.state)}",
                )
                line.set_desc(title=f"{lane.key}: {marker.state} @ {_fmt_ms(marker.start)} ms")
                row.add(line)
                drawn += 1

            dwg.add(row)

        self._draw_axis(dwg, win, plot_x0, axis_y, to_x)

        logs.debug(f"[SVGRenderer] lanes={len(lanes)} drawn={drawn} clipped_out={dropped}")
        return dwg

    def _draw_axis(self, dwg, win: Window, plot_x0: float, axis_y: float, to_x) -> None:
        cfg = self.config
        axis = dwg.g(class_="axis", stroke="black")
        axis.add(dwg.line(start=(plot_x0, axis_y), end=(plot_x0 + cfg.plot_width, axis_y)))

        span = win.to_ms - win.from_ms
        ticks = cfg.tick_count if span > 0 else 0
        labels = dwg.g(class_="tick-labels", font_size=cfg.font_size,
                       font_family="sans-serif", text_anchor="middle")

        for k in range(ticks + 1):
            t = win.from_ms + span * k / ticks if ticks else win.from_ms
            x = to_x(t)
            axis.add(dwg.line(start=(x, axis_y), end=(x, axis_y + 5)))
            labels.add(dwg.text(_fmt_ms(t), insert=(x, axis_y + 5 + cfg.font_size)))

        dwg.add(axis)
        dwg.add(labels)

    def _assign_colors(self, model: TimelineModel) -> Dict[str, str]:
        palette = self.config.palette
        colors: Dict[str, str] = {}
        for interval in model.iter_intervals():
            if interval.state not in colors:
                colors[interval.state] = palette[len(colors) % len(palette)]
        return colors

    @staticmethod
    def _css_name(state: str) -> str:
        return _CLASS_UNSAFE.sub("_", state) or "_"
