# src/pipspeak/config.py
from __future__ import annotations
from pydantic import BaseModel, Field, ValidationError, field_validator
from pathlib import Path
from typing import List, NamedTuple, Optional
import yaml

from .barcodes import BarcodeSet, Spacer


class ConfigError(ValueError):
    """The YAML config is unreadable or incomplete."""


class BarcodePaths(BaseModel):
    bc1: Path = Field(..., description="Barcode set 1, one sequence per line")
    bc2: Path = Field(..., description="Barcode set 2")
    bc3: Path = Field(..., description="Barcode set 3")
    bc4: Path = Field(..., description="Barcode set 4 (no spacer)")


class Spacers(BaseModel):
    s1: str = Field(..., description="Spacer appended to every bc1 barcode")
    s2: str = Field(..., description="Spacer appended to every bc2 barcode")
    s3: str = Field(..., description="Spacer appended to every bc3 barcode")

    @field_validator("s1", "s2", "s3", mode="before")
    @classmethod
    def _clean(cls, v):
        if not isinstance(v, str):
            raise ValueError("spacer must be a sequence string")
        return v.strip().upper()


class BarcodeLibrary(NamedTuple):
    """The four barcode sets, in read order."""
    bc1: BarcodeSet
    bc2: BarcodeSet
    bc3: BarcodeSet
    bc4: BarcodeSet


class PipspeakConfig(BaseModel):
    barcodes: BarcodePaths
    spacers: Spacers
    source: Optional[Path] = Field(None, exclude=True, description="File the config was read from")

    @classmethod
    def from_yaml(cls, path: Path) -> "PipspeakConfig":
        """
        Read and validate a config file. Relative barcode paths are resolved
        against the config file's directory.
        """
        path = Path(path)
        with open(path, "r") as fh:
            try:
                data = yaml.safe_load(fh) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"{path}: invalid YAML: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping with 'barcodes' and 'spacers'")
        try:
            cfg = cls(**{**data, "source": path})
        except ValidationError as e:
            raise ConfigError(f"{path}: {e}") from e
        root = path.resolve().parent
        for key in ("bc1", "bc2", "bc3", "bc4"):
            p = getattr(cfg.barcodes, key)
            if not p.is_absolute():
                setattr(cfg.barcodes, key, root / p)
        return cfg

    def spacer_list(self) -> List[Optional[Spacer]]:
        return [Spacer(self.spacers.s1), Spacer(self.spacers.s2), Spacer(self.spacers.s3), None]

    def load_barcodes(self, exact: bool = False) -> BarcodeLibrary:
        """Load all four sets; spacers s1..s3 go on bc1..bc3, bc4 has none."""
        paths = [self.barcodes.bc1, self.barcodes.bc2, self.barcodes.bc3, self.barcodes.bc4]
        missing = [str(p) for p in paths if not p.exists()]
        if missing:
            raise FileNotFoundError(f"Missing barcode files: {' '.join(missing)}")
        sets = [BarcodeSet.from_file(p, spacer=s, exact=exact) for p, s in zip(paths, self.spacer_list())]
        return BarcodeLibrary(*sets)
