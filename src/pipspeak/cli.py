# src/pipspeak/cli.py
from __future__ import annotations
import time
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, TypeVar
import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from .barcodes import LengthVarianceError
from .config import ConfigError, PipspeakConfig
from .disambiguate import ambiguous_variants
from .fastq import FastqFormatError, FastqWriter, read_pairs
from .pipeline import Demultiplexer
from .report import OutputPaths, RunLog, print_statistics, write_whitelist
from .utils.fs import ensure_dir
from .utils.logging import get_logger, setup_logging

app = typer.Typer(add_completion=False, help="PIPseq → 10X-compatible FASTQ conversion with barcode correction")
console = Console(stderr=True)
log = get_logger(__name__)

# errors that mean bad input rather than a bug
INPUT_ERRORS = (ConfigError, LengthVarianceError, FastqFormatError, FileNotFoundError)

T = TypeVar("T")


@app.callback()
def _main(verbose: int = typer.Option(0, "-v", count=True, help="-v/-vv for more logs")):
    setup_logging(verbose)


def _track(items: Iterable[T], progress: Progress, every: int = 10_000) -> Iterator[T]:
    task = progress.add_task("Processing read pairs", total=None)
    n = 0
    for item in items:
        yield item
        n += 1
        if n % every == 0:
            progress.update(task, completed=n)
    progress.update(task, completed=n)


def _load_config(config: Path, exact: bool):
    cfg = PipspeakConfig.from_yaml(config)
    return cfg, cfg.load_barcodes(exact=exact)


@app.command()
def run(
    r1: Path = typer.Option(..., "-i", "--r1", exists=True, dir_okay=False, readable=True, help="Input FASTQ for R1 (barcodes + UMI)"),
    r2: Path = typer.Option(..., "-I", "--r2", exists=True, dir_okay=False, readable=True, help="Input FASTQ for R2"),
    prefix: str = typer.Option(..., "-p", "--prefix", help="Output prefix; writes <prefix>_R1.fq.gz, <prefix>_R2.fq.gz, <prefix>_whitelist.txt, <prefix>_log.yaml"),
    config: Path = typer.Option(..., "-c", "--config", exists=True, dir_okay=False, readable=True, help="YAML with barcode file paths and spacers"),
    offset: int = typer.Option(5, "-s", "--offset", min=0, help="How far into R1 the first barcode may start"),
    umi_len: int = typer.Option(12, "-u", "--umi-len", min=0, help="Length of the UMI following barcode 4"),
    exact: bool = typer.Option(False, "-x", "--exact", help="Disable single-mismatch correction"),
    spacers: bool = typer.Option(True, "--spacers/--no-spacers", help="Keep spacers of barcodes 1-3 in the output construct"),
    quiet: bool = typer.Option(False, "-q", "--quiet", help="No progress bar or statistics table"),
):
    """Match the four barcodes in R1, correct them, and write construct+UMI as the new R1."""
    started = datetime.now().astimezone()
    t0 = time.perf_counter()
    try:
        _, library = _load_config(config, exact)
    except INPUT_ERRORS as e:
        console.print(f"[red]Cannot load barcodes[/]: {e}")
        raise typer.Exit(1)

    outputs = OutputPaths.from_prefix(prefix)
    ensure_dir(outputs.r1.parent)
    demux = Demultiplexer(library, offset=offset, umi_len=umi_len, include_spacers=spacers)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            TextColumn("{task.completed:,.0f} pairs"),
            TimeElapsedColumn(),
            console=console,
            disable=quiet,
        ) as progress, FastqWriter(outputs.r1) as w1, FastqWriter(outputs.r2) as w2:
            for rec1, rec2 in demux.run(_track(read_pairs(r1, r2), progress)):
                w1.write(rec1)
                w2.write(rec2)
    except Exception as e:
        # no partial outputs, whatever stopped the run
        for p in (outputs.r1, outputs.r2):
            p.unlink(missing_ok=True)
        if isinstance(e, INPUT_ERRORS):
            console.print(f"[red]Aborted[/]: {e}")
            raise typer.Exit(1)
        raise

    stats = demux.stats
    write_whitelist(outputs.whitelist, stats)
    RunLog.build(
        stats,
        r1=r1,
        r2=r2,
        outputs=outputs,
        offset=offset,
        umi_len=umi_len,
        exact=exact,
        include_spacers=spacers,
        started=started,
        elapsed=time.perf_counter() - t0,
    ).write(outputs.log)
    log.info(f"wrote {outputs.r1}, {outputs.r2}, {outputs.whitelist}, {outputs.log}")
    if not quiet:
        print_statistics(stats, console)


@app.command("check-config")
def check_config(
    config: Path = typer.Option(..., "-c", "--config", exists=True, dir_okay=False, readable=True, help="YAML with barcode file paths and spacers"),
    exact: bool = typer.Option(False, "-x", "--exact", help="Disable single-mismatch correction"),
):
    """Load all four barcode sets and summarize them."""
    try:
        cfg, library = _load_config(config, exact)
    except INPUT_ERRORS as e:
        console.print(f"[red]Invalid config[/]: {e}")
        raise typer.Exit(1)

    table = Table(title=f"pipspeak barcodes ({config})")
    table.add_column("Set")
    table.add_column("File", overflow="fold")
    table.add_column("Barcodes", justify="right")
    table.add_column("Length", justify="right")
    table.add_column("Spacer")
    table.add_column("Lookup keys", justify="right")
    table.add_column("Ambiguous", justify="right")
    paths = [cfg.barcodes.bc1, cfg.barcodes.bc2, cfg.barcodes.bc3, cfg.barcodes.bc4]
    for name, path, bcs in zip(library._fields, paths, library):
        n_amb = 0 if exact else len(ambiguous_variants(bcs.sequences))
        table.add_row(
            name,
            str(path),
            str(bcs.size),
            str(bcs.length),
            str(bcs.spacer) if bcs.spacer else "-",
            str(len(bcs.lookup)),
            str(n_amb),
        )
    Console().print(table)


def main():
    app()


if __name__ == "__main__":
    main()
