#!filepath: lanetrace/observability/phase_reporter.py
from typing import Any, Dict

from lanetrace import logs


class PhaseReporter:
    """
    一次运行的 phase 耗时 + 计数报告（冷路径，只打日志）
    """

    def __init__(self, phases: Dict[str, float], metrics: Dict[str, Any], source: str):
        self.phases = phases
        self.metrics = metrics
        self.source = source

    def print(self):
        logs.info(f"[Phases] ===== run summary for {self.source} =====")

        total = 0.0
        for name, sec in self.phases.items():
            logs.info(f"[Phases] {str(name):<20} {sec:>8.3f}s")
            total += sec
        logs.info(f"[Phases] Total{'':<15} {total:>8.3f}s")

        for name, value in self.metrics.items():
            logs.info(f"[Phases] {str(name):<20} {value}")

        logs.info("[Phases] =========================================")
