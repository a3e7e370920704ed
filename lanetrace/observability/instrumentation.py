#!filepath: lanetrace/observability/instrumentation.py
from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator

from lanetrace.observability.metrics import MetricRecorder
from lanetrace.observability.phase_reporter import PhaseReporter


@dataclass
class Instrumentation:
    """
    运行期可观测性（phase 计时 + 计数）

    - phases 按进入顺序记录（decode / finalize / render）
    - 失败的 phase 同样记录耗时
    """

    enabled: bool = True
    phases: Dict[str, float] = field(default_factory=dict, init=False)

    def __post_init__(self):
        self.metrics = MetricRecorder(enabled=self.enabled)

    @contextmanager
    def timer(self, name: str) -> Iterator[None]:
        if not self.enabled:
            yield
            return

        start = time.perf_counter()
        try:
            yield
        finally:
            self.phases[name] = time.perf_counter() - start

    def generate_report(self, source: str):
        if self.enabled:
            PhaseReporter(self.phases, self.metrics.metrics, source).print()


class NoOpInstrumentation(Instrumentation):
    """Step 未注入 Instrumentation 时使用。"""

    def __init__(self):
        super().__init__(enabled=False)
