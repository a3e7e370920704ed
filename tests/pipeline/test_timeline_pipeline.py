#!filepath: tests/pipeline/test_timeline_pipeline.py
import xml.etree.ElementTree as ET

import pytest

from lanetrace.config.app_config import AppConfig
from lanetrace.config.reader_config import ReaderConfig
from lanetrace.observability.instrumentation import Instrumentation
from lanetrace.pipeline.pipeline import build_timeline_pipeline
from lanetrace.timeline.model import Window
from lanetrace.utils.errors import ParseError, SemanticError


def test_pipeline_end_to_end(tmp_path, write_log, scenario_events):
    path = write_log(scenario_events)
    out = tmp_path / "out" / "timeline.svg"
    inst = Instrumentation(enabled=True)

    ctx = build_timeline_pipeline(AppConfig(), inst).run(path, out, Window(0, 20))

    assert out.exists()
    assert ctx.bytes_written == out.stat().st_size
    assert ctx.objects_decoded == 2
    assert list(inst.phases) == ["decode", "finalize", "render"]


def test_pipeline_output_is_byte_identical_across_chunk_sizes(tmp_path, write_log, rich_events):
    path = write_log(rich_events, sep="\n")
    outputs = []
    for size in (1, 7, 8192):
        cfg = AppConfig(reader=ReaderConfig(chunk_size=size))
        out = tmp_path / f"out_{size}.svg"
        build_timeline_pipeline(cfg).run(path, out, Window(2, 26))
        outputs.append(out.read_bytes())

    assert outputs[0] == outputs[1] == outputs[2]


@pytest.mark.contract
def test_bad_sequencing_writes_no_output(tmp_path, write_log):
    path = write_log([
        {"lane": "A", "ts": 0, "op": "open", "state": "busy"},
        {"lane": "A", "ts": 1, "op": "open", "state": "busy"},
    ])
    out = tmp_path / "out.svg"

    with pytest.raises(SemanticError):
        build_timeline_pipeline().run(path, out)

    assert not out.exists()


def test_malformed_input_writes_no_output(tmp_path):
    path = tmp_path / "bad.log"
    path.write_bytes(b'{"lane":"A","ts":0,"op":"register"}{"lane":')
    out = tmp_path / "out.svg"

    with pytest.raises(ParseError):
        build_timeline_pipeline().run(path, out)

    assert not out.exists()


@pytest.mark.parametrize(
    "payload",
    [
        # 1e400 被 json 解成 inf
        b'{"lane":"A","ts":0,"op":"open","state":"busy"}{"lane":"A","ts":1e400,"op":"close"}',
        b'{"lane":"A\\u0001","ts":0,"op":"register"}',
        b'{"lane":"A","ts":0,"op":"instant","state":"\\u001b[31m"}',
    ],
)
def test_events_that_cannot_be_drawn_are_rejected(tmp_path, payload):
    path = tmp_path / "events.log"
    path.write_bytes(payload)
    out = tmp_path / "out.svg"

    with pytest.raises(SemanticError):
        build_timeline_pipeline().run(path, out)

    assert not out.exists()


def test_output_with_unusual_labels_is_well_formed_xml(tmp_path, write_log):
    path = write_log([
        {"lane": "<cpu & \"gpu\">", "ts": 0, "op": "open", "state": "a\tb\nc"},
        {"lane": "<cpu & \"gpu\">", "ts": 4, "op": "close"},
        {"lane": "ünï", "ts": 2, "op": "instant", "state": "'quoted'"},
    ])
    out = tmp_path / "out.svg"

    build_timeline_pipeline().run(path, out)

    root = ET.fromstring(out.read_bytes())
    labels = [t.text for t in root.iter("{http://www.w3.org/2000/svg}text")]
    assert "<cpu & \"gpu\">" in labels
    assert "ünï" in labels
