from pathlib import Path
import pytest

from pipspeak.barcodes import BarcodeSet, Spacer
from pipspeak.fastq import FastqRecord

BC1 = ["AGAAACCA", "GATTTCCC", "AAGTCCAA", "GAGAAACC"]
BC2 = ["CCCCGGGG", "TTTTAAAA", "GGGGCCCC", "AAAATTTT"]
BC3 = ["ACACACAC", "GTGTGTGT", "CACACACA", "TGTGTGTG"]
BC4 = ["AACCGGTT", "CCGGTTAA", "GGTTAACC", "TTAACCGG"]
SPACERS = ["ATG", "GAG", "TCGAG"]
UMI = "ACGTACGTACGT"

_SWAP = {"A": "T", "C": "G", "G": "C", "T": "A"}


def mutate(seq: str, *positions: int) -> str:
    out = list(seq)
    for p in positions:
        out[p] = _SWAP[out[p]]
    return "".join(out)


@pytest.fixture
def barcode_sets():
    sets = [BarcodeSet(bcs, spacer=Spacer(s)) for bcs, s in zip([BC1, BC2, BC3], SPACERS)]
    sets.append(BarcodeSet(BC4))
    return sets


@pytest.fixture
def make_r1():
    """Build a read 1 from segment indices; `segments` overrides individual barcode segments."""
    def _make(idx=(0, 1, 2, 3), prefix="", umi=UMI, tail="TTTTTTTTTT", segments=None, spacers=None):
        segs = [BC1[idx[0]], BC2[idx[1]], BC3[idx[2]], BC4[idx[3]]]
        for i, s in (segments or {}).items():
            segs[i] = s
        sps = list(spacers or SPACERS) + [""]
        body = "".join(bc + sp for bc, sp in zip(segs, sps))
        seq = prefix + body + umi + tail
        qual = "".join(chr(33 + (i % 41)) for i in range(len(seq)))
        return FastqRecord("read1", seq, qual)
    return _make


@pytest.fixture
def r2():
    return FastqRecord("read1", "GATTACA" * 10, "I" * 70)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    bc_dir = tmp_path / "barcodes"
    bc_dir.mkdir()
    for name, bcs in zip(("bc1", "bc2", "bc3", "bc4"), (BC1, BC2, BC3, BC4)):
        (bc_dir / f"{name}.txt").write_text("\n".join(bcs) + "\n")
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "barcodes:\n"
        "  bc1: barcodes/bc1.txt\n"
        "  bc2: barcodes/bc2.txt\n"
        "  bc3: barcodes/bc3.txt\n"
        "  bc4: barcodes/bc4.txt\n"
        "spacers:\n"
        f"  s1: {SPACERS[0]}\n"
        f"  s2: {SPACERS[1]}\n"
        f"  s3: {SPACERS[2]}\n"
    )
    return cfg
