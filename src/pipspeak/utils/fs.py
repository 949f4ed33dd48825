from __future__ import annotations
from pathlib import Path
import os, tempfile
from typing import Iterable


def ensure_dir(p: Path) -> Path:
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_text(path: Path, text: str) -> None:
    """Write to a sibling temp file, then rename over `path`."""
    with tempfile.NamedTemporaryFile("w", delete=False, dir=str(ensure_dir(path.parent))) as tmp:
        tmp.write(text)
        tmp.flush()
        os.fsync(tmp.fileno())
    Path(tmp.name).replace(path)


def atomic_write_lines(path: Path, lines: Iterable[str]) -> None:
    atomic_write_text(path, "".join(f"{ln}\n" for ln in lines))
