# src/pipspeak/report.py
from __future__ import annotations
from datetime import datetime, timezone
from pathlib import Path
from typing import NamedTuple
import yaml
from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

from . import __version__
from .pipeline import Statistics
from .utils.fs import atomic_write_lines, atomic_write_text


class OutputPaths(NamedTuple):
    r1: Path
    r2: Path
    whitelist: Path
    log: Path

    @classmethod
    def from_prefix(cls, prefix: str | Path) -> "OutputPaths":
        p = str(prefix)
        return cls(Path(f"{p}_R1.fq.gz"), Path(f"{p}_R2.fq.gz"), Path(f"{p}_whitelist.txt"), Path(f"{p}_log.yaml"))


class Parameters(BaseModel):
    offset: int
    umi_len: int
    exact_matching: bool
    include_spacers: bool
    pipspeak_version: str = __version__


class FileIO(BaseModel):
    readpath_r1: str
    readpath_r2: str
    writepath_r1: str
    writepath_r2: str
    whitelist: str


class StatisticsSummary(BaseModel):
    total_reads: int
    passing_reads: int
    fraction_passing: float
    num_filtered_1: int
    num_filtered_2: int
    num_filtered_3: int
    num_filtered_4: int
    whitelist_size: int


class Timing(BaseModel):
    timestamp: str
    elapsed_time: float


class RunLog(BaseModel):
    """Everything worth knowing about one run, serialized as YAML."""
    parameters: Parameters
    file_io: FileIO
    statistics: StatisticsSummary
    timing: Timing

    @classmethod
    def build(
        cls,
        stats: Statistics,
        *,
        r1: Path,
        r2: Path,
        outputs: OutputPaths,
        offset: int,
        umi_len: int,
        exact: bool,
        include_spacers: bool,
        started: datetime,
        elapsed: float,
    ) -> "RunLog":
        return cls(
            parameters=Parameters(offset=offset, umi_len=umi_len, exact_matching=exact, include_spacers=include_spacers),
            file_io=FileIO(
                readpath_r1=str(r1),
                readpath_r2=str(r2),
                writepath_r1=str(outputs.r1),
                writepath_r2=str(outputs.r2),
                whitelist=str(outputs.whitelist),
            ),
            statistics=StatisticsSummary(**stats.as_dict()),
            timing=Timing(timestamp=started.astimezone(timezone.utc).isoformat(), elapsed_time=round(elapsed, 3)),
        )

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.model_dump(), sort_keys=False)

    def write(self, out: Path) -> None:
        atomic_write_text(out, self.to_yaml())


def write_whitelist(out: Path, stats: Statistics) -> None:
    """One distinct construct per line, sorted so reruns diff cleanly."""
    atomic_write_lines(out, sorted(stats.whitelist))


def statistics_table(stats: Statistics) -> Table:
    table = Table(title="pipspeak statistics")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Total reads", f"{stats.total_reads:,}")
    table.add_row("Passing reads", f"{stats.passing_reads:,}")
    table.add_row("Fraction passing", f"{stats.fraction_passing:.2%}")
    for i, n in enumerate(stats.filtered, start=1):
        table.add_row(f"Filtered: missing barcode {i}", f"{n:,}")
    table.add_row("Whitelist size", f"{stats.whitelist_size:,}")
    return table


def print_statistics(stats: Statistics, console: Console | None = None) -> None:
    (console or Console(stderr=True)).print(statistics_table(stats))
