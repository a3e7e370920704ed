#!filepath: lanetrace/pipeline/steps/decode_step.py
from __future__ import annotations

from lanetrace import logs
from lanetrace.decoder.incremental import IncrementalDecoder, MalformedInput, ObjectReady
from lanetrace.io.chunk_reader import ChunkReader
from lanetrace.pipeline.context import PipelineContext
from lanetrace.pipeline.step import PipelineStep
from lanetrace.timeline.interpreter import EventInterpreter
from lanetrace.timeline.model import TimelineModel
from lanetrace.utils.errors import ParseError, TimelineError


def decode_stream(
    reader: ChunkReader,
    decoder: IncrementalDecoder,
    interpreter: EventInterpreter,
    chunk_size: int,
) -> int:
    """
    驱动循环：chunk → decoder → interpreter

    - ObjectReady   : 分发给 interpreter，offset 前移，继续喂同一个 chunk 的剩余部分
    - NeedMoreInput : EOF 且没有 pending 字节 → 正常结束；EOF 且有 pending → truncated；
                      否则读下一个 chunk
    - MalformedInput: 抛 ParseError

    返回解码出的对象数。
    """
    buffer = bytearray()
    view = memoryview(b"")
    chunk_start = 0
    offset = 0
    objects = 0

    while True:
        result = decoder.feed(view[offset:])

        if isinstance(result, ObjectReady):
            offset += result.bytes_consumed
            objects += 1
            interpreter.process(result.value)
            continue

        if isinstance(result, MalformedInput):
            position = chunk_start + offset + result.offset
            raise ParseError(
                f"JSON parse failure [{result.code}] at byte {position}: {result.detail}",
                file=reader.path,
                operation="decode",
            )

        if reader.at_eof:
            if result.pending:
                raise ParseError(
                    f"truncated input: {result.pending} byte(s) of an incomplete value at end of file",
                    file=reader.path,
                    operation="decode",
                )
            return objects

        n = reader.read_next(buffer, chunk_size)
        chunk_start = reader.bytes_read - n
        view = memoryview(bytes(buffer[:n]))
        offset = 0


class DecodeStep(PipelineStep):
    """
    decode phase：读输入 → 增量解码 → 解释事件 → finalize 模型

    reader / decoder 只在本 Step 内存活，任何退出路径都会释放。
    """

    def __init__(self, chunk_size: int = 8192, inst=None):
        super().__init__(inst)
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    def run(self, ctx: PipelineContext) -> PipelineContext:
        model = TimelineModel()
        interpreter = EventInterpreter(model)
        decoder = IncrementalDecoder()

        logs.info(f"[{self.step_name}] decoding {ctx.input_path} chunk_size={self.chunk_size}")

        try:
            with self.inst.timer("decode"), ChunkReader(ctx.input_path) as reader:
                objects = decode_stream(reader, decoder, interpreter, self.chunk_size)
                ctx.bytes_read = reader.bytes_read
                self.inst.metrics.record("chunks", reader.chunks_read)

            with self.inst.timer("finalize"):
                interpreter.finish()
        except TimelineError as e:
            raise e.with_context(file=ctx.input_path)

        ctx.model = model
        ctx.objects_decoded = objects

        self.inst.metrics.record("objects", objects)
        self.inst.metrics.record("lanes", len(model))
        self.inst.metrics.record("intervals", sum(1 for _ in model.iter_intervals()))

        logs.info(
            f"[{self.step_name}] {objects} objects, {len(model)} lanes, "
            f"range=[{model.min_ts}, {model.max_ts}]"
        )
        return ctx
