#!filepath: lanetrace/utils/logger.py
import os
import sys
from typing import Optional

from loguru import logger


class Logging:
    """
    lanetrace 日志模块（loguru 封装）
    ---------------------------------------
    - 默认只输出到 stderr
    - 可选按日期切割的文件日志
    - 支持日志保留周期
    ---------------------------------------
    """

    def __init__(
        self,
        log_dir: Optional[str] = None,
        rotation: str = "1 day",
        retention: str = "30 days",
        log_level: str = "WARNING",
    ):
        self.log_dir = log_dir
        self.rotation = rotation
        self.retention = retention
        self.level = log_level

        self._configure()

    def configure(
        self,
        *,
        log_dir: Optional[str] = None,
        rotation: Optional[str] = None,
        retention: Optional[str] = None,
        log_level: Optional[str] = None,
    ) -> None:
        """
        重新配置全局 logger（CLI 读取配置后调用）
        """
        self.log_dir = log_dir
        if rotation is not None:
            self.rotation = rotation
        if retention is not None:
            self.retention = retention
        if log_level is not None:
            self.level = log_level

        self._configure()

    def _configure(self) -> None:
        logger.remove()

        logger.add(
            sink=sys.stderr,
            level=self.level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
            backtrace=False,
            diagnose=False,
        )

        if self.log_dir:
            os.makedirs(self.log_dir, exist_ok=True)
            logger.add(
                sink=f"{self.log_dir}/{{time:YYYY-MM-DD}}.log",
                rotation=self.rotation,
                retention=self.retention,
                level="DEBUG",
                format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
                backtrace=True,
                diagnose=True,
            )

        logger.debug("[Logger] configured level={} dir={}", self.level, self.log_dir)

    # ---------- 基础接口封装 ----------
    def debug(self, msg: str, *args, **kwargs):
        logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        logger.warning(msg, *args, **kwargs)


# 默认全局 logs（CLI 中通过 configure 重新配置）
logs = Logging()
