#!filepath: lanetrace/pipeline/steps/render_step.py
from __future__ import annotations

from lanetrace import logs
from lanetrace.config.render_config import RenderConfig
from lanetrace.pipeline.context import PipelineContext
from lanetrace.pipeline.step import PipelineStep
from lanetrace.render.svg_renderer import SVGRenderer
from lanetrace.utils.errors import TimelineError


class RenderStep(PipelineStep):
    """
    render phase：finalized model + window → SVG 文件（只执行一次）
    """

    def __init__(self, config: RenderConfig | None = None, inst=None):
        super().__init__(inst)
        self.renderer = SVGRenderer(config)

    def run(self, ctx: PipelineContext) -> PipelineContext:
        if ctx.model is None:
            raise RuntimeError(f"[{self.step_name}] no timeline model in context")

        win = ctx.window.resolve(ctx.model)
        logs.info(f"[{self.step_name}] rendering window=[{win.from_ms}, {win.to_ms}] -> {ctx.output_path}")

        try:
            with self.inst.timer("render"):
                ctx.bytes_written = self.renderer.write(ctx.model, ctx.window, ctx.output_path)
        except TimelineError as e:
            raise e.with_context(file=ctx.output_path)

        self.inst.metrics.record("bytes_written", ctx.bytes_written)
        return ctx
