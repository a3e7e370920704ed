#!filepath: lanetrace/utils/filesystem.py
from pathlib import Path

from lanetrace import logs


class FileSystem:
    """
    统一文件系统工具
    - 自动创建目录
    - 安全写入文件（临时文件 → rename）
    """

    @staticmethod
    def ensure_dir(path: str | Path) -> Path:
        """
        创建目录（如果不存在）
        """
        p = Path(path)
        if not p.exists():
            p.mkdir(parents=True, exist_ok=True)
            logs.debug(f"[FS] created dir: {p}")
        return p

    @staticmethod
    def format_size(size_bytes: float) -> str:
        for unit in ["B", "KB", "MB", "GB", "TB"]:
            if size_bytes < 1024:
                return f"{size_bytes:.2f} {unit}"
            size_bytes /= 1024
        return f"{size_bytes:.2f} PB"

    @staticmethod
    def safe_write(path: str | Path, data: bytes) -> None:
        """
        原子写入（避免部分写入导致文件损坏）
            1) 先写入 <name>.tmp
            2) rename → 正式文件
        失败时删除临时文件并抛出 OSError。
        """
        path = Path(path)
        FileSystem.ensure_dir(path.parent)

        tmp_path = path.with_name(path.name + ".tmp")

        try:
            with open(tmp_path, "wb") as f:
                f.write(data)
            logs.debug(f"[FS] wrote tmp file: {tmp_path}")
            tmp_path.replace(path)
        except OSError:
            if tmp_path.exists():
                tmp_path.unlink()
            raise

        logs.debug(f"[FS] atomic write done: {path}")
