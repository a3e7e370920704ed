#!filepath: lanetrace/pipeline/step.py
from __future__ import annotations

from abc import ABC, abstractmethod

from lanetrace.observability.instrumentation import Instrumentation, NoOpInstrumentation
from lanetrace.pipeline.context import PipelineContext


class PipelineStep(ABC):
    """
    Pipeline Step 基类

    - 每个 Step 对应一个 phase（decode / render）
    - Step 通过 ctx 传递结果，失败直接抛 TimelineError
    - Instrumentation 是可选横切关注点，Step 行为不依赖 inst 是否存在
    """

    def __init__(self, inst: Instrumentation | None = None):
        self.inst: Instrumentation = inst if inst is not None else NoOpInstrumentation()

    @property
    def step_name(self) -> str:
        """默认使用类名作为 Step 名称。"""
        return self.__class__.__name__

    @abstractmethod
    def run(self, ctx: PipelineContext) -> PipelineContext:
        ...
