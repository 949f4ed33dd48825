from pathlib import Path
import pytest

from pipspeak.barcodes import LengthVarianceError
from pipspeak.config import ConfigError, PipspeakConfig


def test_config_loads(config_file: Path):
    cfg = PipspeakConfig.from_yaml(config_file)
    assert cfg.spacers.s1 == "ATG"
    assert cfg.barcodes.bc4 == config_file.parent.resolve() / "barcodes" / "bc4.txt"
    assert cfg.barcodes.bc1.is_absolute()


def test_load_barcodes(config_file: Path):
    lib = PipspeakConfig.from_yaml(config_file).load_barcodes()
    assert [len(b) for b in lib] == [11, 11, 13, 8]
    assert lib.bc4.spacer is None
    assert lib.bc3.get_by_index(0, include_spacer=False) == "ACACACAC"
    exact = PipspeakConfig.from_yaml(config_file).load_barcodes(exact=True)
    assert len(exact.bc1.lookup) == 4


def test_spacers_are_normalized(tmp_path: Path):
    y = tmp_path / "c.yaml"
    y.write_text("""
barcodes: {bc1: a.txt, bc2: b.txt, bc3: c.txt, bc4: /abs/d.txt}
spacers: {s1: " atg ", s2: GAG, s3: tcgag}
""")
    cfg = PipspeakConfig.from_yaml(y)
    assert (cfg.spacers.s1, cfg.spacers.s3) == ("ATG", "TCGAG")
    assert cfg.barcodes.bc4 == Path("/abs/d.txt")


@pytest.mark.parametrize("text", [
    "barcodes: {bc1: a, bc2: b, bc3: c, bc4: d}\n",
    "barcodes: {bc1: a, bc2: b, bc3: c}\nspacers: {s1: A, s2: C, s3: G}\n",
    "barcodes: {bc1: a, bc2: b, bc3: c, bc4: d}\nspacers: {s1: 5, s2: C, s3: G}\n",
    "- just\n- a list\n",
    "barcodes: [unclosed\n",
])
def test_bad_config(tmp_path: Path, text: str):
    y = tmp_path / "bad.yaml"
    y.write_text(text)
    with pytest.raises(ConfigError):
        PipspeakConfig.from_yaml(y)


def test_missing_barcode_file(config_file: Path):
    (config_file.parent / "barcodes" / "bc3.txt").unlink()
    cfg = PipspeakConfig.from_yaml(config_file)
    with pytest.raises(FileNotFoundError):
        cfg.load_barcodes()


def test_uneven_barcode_file(config_file: Path):
    (config_file.parent / "barcodes" / "bc2.txt").write_text("CCCCGGGG\nTTTTAAA\n")
    with pytest.raises(LengthVarianceError):
        PipspeakConfig.from_yaml(config_file).load_barcodes()
