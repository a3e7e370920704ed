#!filepath: lanetrace/config/render_config.py
from typing import List

from pydantic import BaseModel, Field


DEFAULT_PALETTE = [
    "#4e79a7",
    "#f28e2b",
    "#59a14f",
    "#e15759",
    "#76b7b2",
    "#edc948",
    "#b07aa1",
    "#ff9da7",
    "#9c755f",
    "#bab0ac",
]


class RenderConfig(BaseModel):
    """
    SVG 布局参数（单位：px）
    """

    margin: int = Field(default=10, ge=0)
    label_width: int = Field(default=120, ge=0)
    plot_width: int = Field(default=1000, gt=0)
    lane_height: int = Field(default=20, gt=0)
    lane_gap: int = Field(default=6, ge=0)
    axis_height: int = Field(default=30, ge=0)
    tick_count: int = Field(default=10, ge=1)
    font_size: int = Field(default=12, gt=0)
    palette: List[str] = Field(default_factory=lambda: list(DEFAULT_PALETTE), min_length=1)
