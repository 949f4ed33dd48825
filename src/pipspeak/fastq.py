# src/pipspeak/fastq.py
from __future__ import annotations
from pathlib import Path
from typing import IO, Iterator, NamedTuple, Tuple
import gzip


class FastqFormatError(ValueError):
    """A FASTQ record could not be parsed."""


class FastqRecord(NamedTuple):
    id: str    # header without the leading '@'
    seq: str
    qual: str


def _is_gz(path: Path | str) -> bool:
    return str(path).endswith(".gz")


def _open_text(path: Path | str, mode: str) -> IO[str]:
    if _is_gz(path):
        return gzip.open(str(path), mode + "t", encoding="utf-8")
    return open(path, mode, encoding="utf-8")


def read_fastq(path: Path | str) -> Iterator[FastqRecord]:
    """
    Stream 4-line FASTQ records from a plain or gzip (.gz) file.
    Raises FastqFormatError on a truncated or malformed record.
    """
    with _open_text(path, "r") as fq:
        try:
            yield from _parse_records(fq, path)
        except (UnicodeDecodeError, EOFError, OSError) as e:
            # corrupt gzip stream, truncated archive or non-text bytes
            raise FastqFormatError(f"{path}: unreadable FASTQ input: {e}") from e


def _parse_records(fq: IO[str], path: Path | str) -> Iterator[FastqRecord]:
    n = 0
    while True:
        name = fq.readline()
        if not name:
            break
        if not name.strip():
            continue
        seq = fq.readline(); plus = fq.readline(); qual = fq.readline()
        n += 1
        name = name.rstrip("\r\n"); seq = seq.rstrip("\r\n"); plus = plus.rstrip("\r\n"); qual = qual.rstrip("\r\n")
        if not name.startswith("@"):
            raise FastqFormatError(f"{path}: record {n} header does not start with '@': {name!r}")
        if not plus.startswith("+"):
            raise FastqFormatError(f"{path}: record {n} ({name[1:]}) is missing its '+' line")
        if len(seq) != len(qual):
            raise FastqFormatError(
                f"{path}: record {n} ({name[1:]}) has {len(seq)} bases but {len(qual)} quality values"
            )
        yield FastqRecord(name[1:], seq, qual)


def read_pairs(r1: Path | str, r2: Path | str) -> Iterator[Tuple[FastqRecord, FastqRecord]]:
    """Lock-step pairs; the shorter file ends iteration for both."""
    return zip(read_fastq(r1), read_fastq(r2))


class FastqWriter:
    """Write FASTQ records to a plain or gzip (.gz) file."""

    def __init__(self, path: Path | str, compresslevel: int = 6):
        self.path = Path(path)
        if _is_gz(self.path):
            self._fh: IO[str] = gzip.open(str(self.path), "wt", compresslevel=compresslevel)
        else:
            self._fh = open(self.path, "w")
        self.n_written = 0

    def write(self, rec: FastqRecord) -> None:
        self._fh.write(f"@{rec.id}\n{rec.seq}\n+\n{rec.qual}\n")
        self.n_written += 1

    def close(self) -> None:
        self._fh.close()

    def __enter__(self) -> "FastqWriter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
