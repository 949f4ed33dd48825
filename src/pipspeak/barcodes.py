# src/pipspeak/barcodes.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .disambiguate import build_lookup
from .utils.logging import get_logger

log = get_logger(__name__)

# (end position relative to the window start, canonical index)
Match = Tuple[int, int]


class LengthVarianceError(ValueError):
    """Barcode sequences of one set do not share a single length."""


class BarcodeIndexError(IndexError):
    """A canonical index outside the set was requested."""


@dataclass(frozen=True)
class Spacer:
    """Constant sequence appended after every barcode of a set."""
    seq: str

    def __len__(self) -> int:
        return len(self.seq)

    def __str__(self) -> str:
        return self.seq


def match_window(
    sequence: str,
    lookup: Mapping[str, int],
    length: int,
    start: int,
    end: int,
) -> Optional[Match]:
    """
    Find the leftmost `length`-sized window of sequence[start:end] present in `lookup`.

    Returns (end position relative to `start`, canonical index) or None.
    Out-of-range or too-small windows are a no-match, never an error.
    """
    n = len(sequence)
    if start > n or end > n or start > end or end - start < length:
        return None
    for pos in range(start, end - length + 1):
        idx = lookup.get(sequence[pos:pos + length])
        if idx is not None:
            return pos - start + length, idx
    return None


class BarcodeSet:
    """
    One ordered set of canonical barcodes plus its mismatch-tolerant lookup.

    Canonical sequences include the spacer, if any. The lookup is built
    eagerly in the constructor and never mutated afterwards.
    """

    def __init__(self, barcodes: Iterable[str], spacer: Optional[Spacer] = None, exact: bool = False, name: str = "barcodes"):
        self.name = name
        self.spacer = spacer
        self.exact = exact
        suffix = spacer.seq if spacer else ""
        self._barcodes: List[str] = [bc + suffix for bc in barcodes]

        sizes = sorted({len(bc) for bc in self._barcodes})
        if not sizes:
            raise LengthVarianceError(f"{name}: no barcodes found")
        if len(sizes) > 1:
            raise LengthVarianceError(f"{name}: barcodes have different lengths {sizes}")
        self.length = sizes[0]

        self.lookup: Dict[str, int] = build_lookup(self._barcodes, exact=exact)
        log.info(
            f"{name}: {len(self._barcodes)} barcodes of length {self.length} "
            f"({len(self.lookup)} lookup keys, exact={exact})"
        )

    @classmethod
    def from_lines(cls, lines: Iterable[str], spacer: Optional[Spacer] = None, exact: bool = False, name: str = "barcodes") -> "BarcodeSet":
        """Trim and uppercase each line, skipping blanks; the spacer is appended by the constructor."""
        barcodes = [ln.strip().upper() for ln in lines]
        return cls([bc for bc in barcodes if bc], spacer=spacer, exact=exact, name=name)

    @classmethod
    def from_file(cls, path: Path | str, spacer: Optional[Spacer] = None, exact: bool = False) -> "BarcodeSet":
        with open(path, "r") as fh:
            return cls.from_lines(fh, spacer=spacer, exact=exact, name=Path(path).name)

    def __len__(self) -> int:
        return self.length

    @property
    def size(self) -> int:
        return len(self._barcodes)

    @property
    def sequences(self) -> Tuple[str, ...]:
        return tuple(self._barcodes)

    def get_by_sequence(self, seq: str) -> Optional[int]:
        return self.lookup.get(seq)

    def get_by_index(self, idx: int, include_spacer: bool = True) -> str:
        if not 0 <= idx < len(self._barcodes):
            raise BarcodeIndexError(f"{self.name}: barcode index {idx} out of range (0..{len(self._barcodes) - 1})")
        bc = self._barcodes[idx]
        if not include_spacer and self.spacer:
            return bc[: len(bc) - len(self.spacer)]
        return bc

    def match_window(self, sequence: str, start: int, end: int) -> Optional[Match]:
        return match_window(sequence, self.lookup, self.length, start, end)

    def match_sequence(self, sequence: str) -> Optional[Match]:
        """Leftmost match anywhere in `sequence`."""
        return self.match_window(sequence, 0, len(sequence))
