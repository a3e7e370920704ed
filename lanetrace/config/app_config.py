#!filepath: lanetrace/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .log_config import LogConfig
from .reader_config import ReaderConfig
from .render_config import RenderConfig


def default_config_path() -> str:
    """
    包内自带的默认配置：lanetrace/config/base.yml
    """
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), "base.yml")


# 环境变量 → (section, key)
ENV_OVERRIDES = {
    "LANETRACE_LOG_LEVEL": ("log", "level"),
    "LANETRACE_LOG_DIR": ("log", "dir"),
    "LANETRACE_CHUNK_SIZE": ("reader", "chunk_size"),
}


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    reader: ReaderConfig = Field(default_factory=ReaderConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用包内 config/base.yml
        - .env 从当前工作目录读取（不覆盖已有环境变量）
        - LANETRACE_* 环境变量覆盖 YAML
        """
        load_dotenv(os.path.join(os.getcwd(), ".env"))

        if path is None:
            path = default_config_path()

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        if not isinstance(raw, dict):
            raise ValueError(f"Config file must contain a mapping: {path}")

        for env_key, (section, key) in ENV_OVERRIDES.items():
            value = os.getenv(env_key)
            if value:
                if raw.get(section) is None:
                    raw[section] = {}
                raw[section][key] = value

        return cls(**raw)
