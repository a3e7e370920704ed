# tests/conftest.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Iterable

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


@pytest.fixture
def scenario_events() -> list[dict]:
    """
    最小场景：lane A 上一个 [0, 10] 的 busy interval
    """
    return [
        {"lane": "A", "ts": 0, "op": "open", "state": "busy"},
        {"lane": "A", "ts": 10, "op": "close"},
    ]


@pytest.fixture
def rich_events() -> list[dict]:
    """
    多 lane / instant / 未关闭 interval 混合的日志
    """
    return [
        {"lane": "display", "ts": 0, "op": "register"},
        {"lane": "gpu", "ts": 1, "op": "open", "state": "render", "frame": 1},
        {"lane": "display", "ts": 2, "op": "instant", "state": "vblank"},
        {"lane": "gpu", "ts": 7.5, "op": "close"},
        {"lane": "cpu", "ts": 8, "op": "open", "state": "busy \"quoted\" {brace}"},
        {"lane": "gpu", "ts": 9, "op": "open", "state": "render"},
        {"lane": "cpu", "ts": 12, "op": "close", "state": "ignored"},
        {"lane": "display", "ts": 18, "op": "instant", "state": "vblank"},
        {"lane": "cpu", "ts": 20, "op": "open", "state": "idle é漢"},
        {"lane": "gpu", "ts": 25, "op": "close"},
        {"lane": "gpu", "ts": 30, "op": "instant", "state": "flip"},
    ]


@pytest.fixture
def write_log(tmp_path: Path) -> Callable[..., Path]:
    """
    把事件写成背靠背 JSON（默认无分隔符）
    """

    def _write(events: Iterable[dict], name: str = "events.log", sep: str = "") -> Path:
        path = tmp_path / name
        text = sep.join(json.dumps(e, ensure_ascii=False) for e in events)
        path.write_bytes(text.encode("utf-8"))
        return path

    return _write
