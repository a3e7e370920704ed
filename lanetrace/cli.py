#!filepath: lanetrace/cli.py
import sys
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich import print
from rich.console import Console
from rich.markup import escape

from lanetrace import AppConfig, logs
from lanetrace.observability.instrumentation import Instrumentation
from lanetrace.pipeline.pipeline import build_timeline_pipeline
from lanetrace.timeline.model import Window
from lanetrace.utils.errors import TimelineError, UsageError

app = typer.Typer(
    help="Render a JSON event log as an SVG timeline.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

err_console = Console(stderr=True, soft_wrap=True)

# typer 可能自带一份 click：usage 异常类从 typer 自身的 BadParameter 上取
ClickUsageError = next(c for c in typer.BadParameter.__mro__ if c.__name__ == "UsageError")


def _parse_ms(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise typer.BadParameter(f"expected an integer number of milliseconds, got {value!r}") from None


@app.command()
def render(
    input_file: Path = typer.Option(..., "-i", "--input", help="Read FILE as the input data."),
    output_file: Path = typer.Option(..., "-o", "--output", help="Write FILE as the output SVG."),
    from_ms: Optional[int] = typer.Option(
        None, "-a", "--from-ms", parser=_parse_ms, help="Start the graph at MS milliseconds."
    ),
    to_ms: Optional[int] = typer.Option(
        None, "-b", "--to-ms", parser=_parse_ms, help="End the graph at MS milliseconds."
    ),
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="YAML config file."),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Debug logging to stderr."),
):
    """
    Read an event log and write the timeline as SVG.
    """
    window = Window.from_args(from_ms, to_ms)
    if window.is_set and window.from_ms >= window.to_ms:
        raise UsageError(f"--from-ms ({from_ms}) must be less than --to-ms ({to_ms})")
    if not window.is_set and (window.from_ms is not None or window.to_ms is not None):
        logs.warning("[CLI] only one window bound given; rendering the full range")

    cfg = load_config(config)
    logs.configure(
        log_dir=cfg.log.dir,
        rotation=cfg.log.rotation,
        retention=cfg.log.retention,
        log_level="DEBUG" if verbose else cfg.log.level,
    )

    pipeline = build_timeline_pipeline(cfg, Instrumentation(enabled=True))
    ctx = pipeline.run(input_file, output_file, window)

    print(
        f"[green]wrote {escape(str(ctx.output_path))}[/green] "
        f"({ctx.objects_decoded} events, {len(ctx.model)} lanes)"
    )


def load_config(path: Optional[Path]) -> AppConfig:
    try:
        return AppConfig.load(str(path) if path is not None else None)
    except FileNotFoundError as e:
        raise UsageError(str(e), file=path, operation="load config") from e
    except (ValidationError, ValueError) as e:
        raise UsageError(f"invalid config: {e}", file=path, operation="load config") from e


def main(argv: Optional[List[str]] = None) -> int:
    """
    运行 CLI，返回退出码：成功 0，任何失败 1（错误只在这里报告一次）
    """
    command = typer.main.get_command(app)
    try:
        rv = command.main(args=argv, prog_name="lanetrace", standalone_mode=False)
    except ClickUsageError as e:
        err_console.print(f"[red]usage error:[/red] {escape(e.format_message())}", highlight=False)
        err_console.print("Try 'lanetrace --help' for help.", highlight=False)
        return 1
    except typer.Abort:
        err_console.print("[red]aborted[/red]")
        return 1
    except TimelineError as e:
        logs.debug(f"[CLI] {e.describe()}")
        err_console.print(f"[red]{escape(e.describe())}[/red]", highlight=False)
        return 1

    # --help 在 standalone_mode=False 下返回 Exit 的退出码
    return rv if isinstance(rv, int) else 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()

# python -m lanetrace.cli -i trace.log -o trace.svg -a 0 -b 200
