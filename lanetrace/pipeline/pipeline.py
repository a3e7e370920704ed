#!filepath: lanetrace/pipeline/pipeline.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from lanetrace import logs
from lanetrace.config.app_config import AppConfig
from lanetrace.observability.instrumentation import Instrumentation
from lanetrace.pipeline.context import PipelineContext
from lanetrace.pipeline.step import PipelineStep
from lanetrace.pipeline.steps.decode_step import DecodeStep
from lanetrace.pipeline.steps.render_step import RenderStep
from lanetrace.timeline.model import Window


class TimelinePipeline:
    """
    TimelinePipeline = 调度器

    - 按顺序执行 Step（decode → render）
    - 任一 Step 抛错即中止，不会产生部分输出
    - 运行结束后输出 phase 报告
    """

    def __init__(self, steps: List[PipelineStep], inst: Instrumentation):
        self.steps = steps
        self.inst = inst

    def run(
        self,
        input_path: str | Path,
        output_path: str | Path,
        window: Optional[Window] = None,
    ) -> PipelineContext:
        ctx = PipelineContext(
            input_path=Path(input_path),
            output_path=Path(output_path),
            window=window or Window(),
        )

        logs.info(f"[Pipeline] ====== START {ctx.input_path} ======")

        for step in self.steps:
            ctx = step.run(ctx)

        self.inst.generate_report(str(ctx.input_path))
        logs.info(f"[Pipeline] ====== DONE {ctx.output_path} ======")
        return ctx


def build_timeline_pipeline(
    config: AppConfig | None = None,
    inst: Instrumentation | None = None,
) -> TimelinePipeline:
    config = config or AppConfig()
    inst = inst or Instrumentation(enabled=True)
    steps: List[PipelineStep] = [
        DecodeStep(chunk_size=config.reader.chunk_size, inst=inst),
        RenderStep(config=config.render, inst=inst),
    ]
    return TimelinePipeline(steps=steps, inst=inst)
