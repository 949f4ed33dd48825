# src/pipspeak/disambiguate.py
from __future__ import annotations
from typing import Dict, Iterable, Iterator, List, Sequence, Tuple

NUCLEOTIDES = "ACGT"


def hamming_distance(query: str, ref: str) -> int:
    """Count mismatching positions across equal-length strings."""
    if len(query) != len(ref):
        raise ValueError(f"Cannot compare sequences of different lengths: {query!r} vs {ref!r}")
    return sum(0 if q == r else 1 for q, r in zip(query, ref))


def single_substitutions(sequence: str, alphabet: str = NUCLEOTIDES) -> Iterator[str]:
    """Yield every sequence at Hamming distance exactly 1 from `sequence`."""
    for i, current in enumerate(sequence):
        prefix, suffix = sequence[:i], sequence[i + 1:]
        for base in alphabet:
            if base != current:
                yield f"{prefix}{base}{suffix}"


def _first_positions(sequences: Iterable[str]) -> Dict[str, int]:
    first: Dict[str, int] = {}
    for i, seq in enumerate(sequences):
        first.setdefault(seq, i)
    return first


def _variant_parents(parents: Dict[str, int], alphabet: str) -> Dict[str, List[int]]:
    owners: Dict[str, List[int]] = {}
    for seq, i in parents.items():
        for variant in single_substitutions(seq, alphabet):
            owners.setdefault(variant, []).append(i)
    return owners


def disambiguate(
    sequences: Sequence[str],
    alphabet: str = NUCLEOTIDES,
) -> Dict[str, int]:
    """
    Map every unambiguous single-substitution variant to its parent.

    Returns {variant: position of the parent in `sequences`}. A variant is kept
    only if exactly one distinct parent produces it and it is not itself one of
    the parents. Duplicated parents resolve to their first position.
    """
    parents = _first_positions(sequences)
    return {
        variant: owners[0]
        for variant, owners in _variant_parents(parents, alphabet).items()
        if len(owners) == 1 and variant not in parents
    }


def ambiguous_variants(
    sequences: Sequence[str],
    alphabet: str = NUCLEOTIDES,
) -> Dict[str, Tuple[int, ...]]:
    """Variants at distance 1 from two or more parents, with the parents' positions."""
    parents = _first_positions(sequences)
    return {
        variant: tuple(owners)
        for variant, owners in _variant_parents(parents, alphabet).items()
        if len(owners) > 1 and variant not in parents
    }


def build_lookup(sequences: Iterable[str], exact: bool = False, alphabet: str = NUCLEOTIDES) -> Dict[str, int]:
    """
    Build the variant -> canonical index table for a barcode set.

    Exact mode is the identity over canonicals; fuzzy mode adds the
    unambiguous single-substitution variants.
    """
    seqs = list(sequences)
    lookup = _first_positions(seqs)
    if not exact:
        lookup.update(disambiguate(seqs, alphabet))
    return lookup
