#!filepath: lanetrace/pipeline/context.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from lanetrace.timeline.model import TimelineModel, Window


@dataclass
class PipelineContext:
    """
    PipelineContext = 一次运行的唯一上下文

    - Pipeline 负责构造
    - DecodeStep 产出 model，RenderStep 消费 model
    - 不放业务逻辑
    """

    input_path: Path
    output_path: Path
    window: Window

    # -------- decode 产出 --------
    model: Optional[TimelineModel] = None
    objects_decoded: int = 0
    bytes_read: int = 0

    # -------- render 产出 --------
    bytes_written: int = 0
