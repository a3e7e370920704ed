#!filepath: lanetrace/config/reader_config.py
from pydantic import BaseModel, Field


class ReaderConfig(BaseModel):
    # bytes per read_next() call
    chunk_size: int = Field(default=8192, gt=0)
