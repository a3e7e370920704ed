#!filepath: lanetrace/engines/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

InEvent = TypeVar("InEvent")
OutEvent = TypeVar("OutEvent")


class BaseEngine(ABC, Generic[InEvent, OutEvent]):
    """
    Engine 抽象基类：

    - 不做任何 I/O（不读写文件）
    - 专注“输入事件 → 输出”的纯逻辑
    - 可以持有状态（状态机）
    """

    @abstractmethod
    def process(self, event: InEvent) -> OutEvent:
        """
        处理单个事件（最小粒度单位）。
        """
        raise NotImplementedError
