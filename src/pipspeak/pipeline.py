# src/pipspeak/pipeline.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, NamedTuple, Optional, Sequence, Set, Tuple

from .barcodes import BarcodeSet
from .fastq import FastqRecord
from .utils.logging import get_logger

log = get_logger(__name__)

ReadPair = Tuple[FastqRecord, FastqRecord]

N_STAGES = 4


# ----------------------------
# Run-wide statistics
# ----------------------------

@dataclass
class Statistics:
    """
    Counters for one run. `merge` is associative and commutative, so
    independent partial results can be combined in any order.
    """
    total_reads: int = 0
    passing_reads: int = 0
    filtered: List[int] = field(default_factory=lambda: [0] * N_STAGES)
    whitelist: Set[str] = field(default_factory=set)

    @property
    def fraction_passing(self) -> float:
        return self.passing_reads / self.total_reads if self.total_reads else 0.0

    @property
    def whitelist_size(self) -> int:
        return len(self.whitelist)

    def merge(self, other: "Statistics") -> "Statistics":
        return Statistics(
            total_reads=self.total_reads + other.total_reads,
            passing_reads=self.passing_reads + other.passing_reads,
            filtered=[a + b for a, b in zip(self.filtered, other.filtered)],
            whitelist=self.whitelist | other.whitelist,
        )

    __add__ = merge

    def as_dict(self) -> dict:
        out = {
            "total_reads": self.total_reads,
            "passing_reads": self.passing_reads,
            "fraction_passing": self.fraction_passing,
        }
        for i, n in enumerate(self.filtered, start=1):
            out[f"num_filtered_{i}"] = n
        out["whitelist_size"] = self.whitelist_size
        return out


# ----------------------------
# Per-read state machine
# ----------------------------

class Stage(NamedTuple):
    """One barcode segment: which set to search and how far past its length to look."""
    barcodes: BarcodeSet
    slack: int = 0


@dataclass
class ReadState:
    """Accumulator threaded through the stages for a single read pair."""
    r1: FastqRecord
    r2: FastqRecord
    pos: int = 0
    indices: List[int] = field(default_factory=list)


def advance(state: ReadState, stage: Stage) -> bool:
    """
    Search `stage` over [pos, pos + L + slack) of read 1 and, on a hit,
    record the index and move `pos` to the end of the match.
    """
    bcs = stage.barcodes
    hit = bcs.match_window(state.r1.seq, state.pos, state.pos + bcs.length + stage.slack)
    if hit is None:
        return False
    end, idx = hit
    state.pos += end
    state.indices.append(idx)
    return True


class Demultiplexer:
    """
    Four-stage matcher for PIPseq read 1.

    Stage 1 may start up to `offset` bases into the read; stages 2-4 must
    follow the previous match directly. Reads surviving all stages are
    rebuilt from canonical barcodes plus the UMI that follows stage 4.
    """

    def __init__(
        self,
        barcode_sets: Sequence[BarcodeSet],
        offset: int = 5,
        umi_len: int = 12,
        include_spacers: bool = True,
    ):
        if len(barcode_sets) != N_STAGES:
            raise ValueError(f"Expected {N_STAGES} barcode sets, got {len(barcode_sets)}")
        if offset < 0 or umi_len < 0:
            raise ValueError("offset and umi_len must be >= 0")
        self.barcode_sets = list(barcode_sets)
        self.offset = offset
        self.umi_len = umi_len
        self.include_spacers = include_spacers
        self.stages = [Stage(self.barcode_sets[0], slack=offset)] + [Stage(b) for b in self.barcode_sets[1:]]
        self.stats = Statistics(filtered=[0] * len(self.stages))

    def build_construct(self, indices: Sequence[int], umi: str) -> str:
        parts = [
            bcs.get_by_index(idx, include_spacer=self.include_spacers)
            for bcs, idx in zip(self.barcode_sets, indices)
        ]
        return "".join(parts) + umi

    def process(self, r1: FastqRecord, r2: FastqRecord) -> Optional[ReadPair]:
        """Return the rewritten pair, or None if the read was filtered."""
        self.stats.total_reads += 1
        state = ReadState(r1, r2)
        for i, stage in enumerate(self.stages):
            if not advance(state, stage):
                self.stats.filtered[i] += 1
                log.debug(f"{r1.id}: no match at barcode {i + 1}")
                return None

        umi_end = state.pos + self.umi_len
        if umi_end > len(r1.seq):
            # too short to hold the UMI; counted against the last stage
            self.stats.filtered[-1] += 1
            log.debug(f"{r1.id}: read ends before the {self.umi_len} bp UMI")
            return None

        construct = self.build_construct(state.indices, r1.seq[state.pos:umi_end])
        qual = r1.qual[umi_end - len(construct):umi_end]

        self.stats.whitelist.add(construct)
        self.stats.passing_reads += 1
        return FastqRecord(r1.id, construct, qual), r2

    def run(self, pairs: Iterable[ReadPair]) -> Iterator[ReadPair]:
        """Lazily yield rewritten pairs; statistics accumulate as the stream is consumed."""
        for r1, r2 in pairs:
            out = self.process(r1, r2)
            if out is not None:
                yield out
