"""
Pure combinatorics behind variant generation.

Nothing in this module touches the database: selections come in as plain
ids, combinations and signatures go out as tuples and strings.
"""

from itertools import product as _product
from typing import Dict, Iterable, Iterator, List, Mapping, Set, Tuple

from apps.catalog.exceptions import EmptySelection

SIGNATURE_SEPARATOR = ','

Combination = Tuple[int, ...]


def signature_of(value_ids: Iterable[int]) -> str:
    """
    Canonical, order-independent token for a set of attribute value ids.

    Example:
        signature_of([7, 3]) == signature_of([3, 7]) == "3,7"
    """
    return SIGNATURE_SEPARATOR.join(str(v) for v in sorted({int(v) for v in value_ids}))


def drop_empty(groups: Iterable[Iterable[int]]) -> List[Tuple[int, ...]]:
    """
    Normalize raw value-id groups: drop empty groups, collapse repeated ids
    (first occurrence wins) and reject a selection with nothing left.
    """
    normalized = []
    for group in groups or []:
        ordered = tuple(dict.fromkeys(int(v) for v in group))
        if ordered:
            normalized.append(ordered)
    if not normalized:
        raise EmptySelection()
    return normalized


def cartesian_product(groups: List[Tuple[int, ...]]) -> Iterator[Combination]:
    """
    Yield every combination picking one id per group, row-major
    (the last group varies fastest).
    """
    if not groups:
        return iter(())
    return _product(*groups)


def missing_combinations(
    groups: List[Tuple[int, ...]],
    existing_signatures: Set[str],
) -> List[Tuple[str, Combination]]:
    """
    Return ``(signature, combination)`` pairs for candidates whose signature
    is neither in ``existing_signatures`` nor produced earlier in this batch.
    """
    seen = set(existing_signatures)
    missing = []
    for combination in cartesian_product(groups):
        signature = signature_of(combination)
        if signature in seen:
            continue
        seen.add(signature)
        missing.append((signature, combination))
    return missing


class Selection:
    """
    Chosen attribute value ids keyed by attribute id.

    Built once at the boundary; insertion order of attributes and values is
    kept so the generated combinations come out in a stable order.
    """

    def __init__(self, groups: Mapping[int, Iterable[int]]):
        self._groups: Dict[int, Tuple[int, ...]] = {}
        for attribute_id, value_ids in groups.items():
            ordered = tuple(dict.fromkeys(int(v) for v in value_ids))
            if ordered:
                self._groups[int(attribute_id)] = ordered
        if not self._groups:
            raise EmptySelection()

    def __repr__(self):
        return f"Selection({self._groups!r})"

    def __eq__(self, other):
        if not isinstance(other, Selection):
            return NotImplemented
        return self._groups == other._groups

    def __len__(self):
        return len(self._groups)

    def items(self):
        return self._groups.items()

    @property
    def attribute_ids(self) -> List[int]:
        return list(self._groups)

    @property
    def value_ids(self) -> List[int]:
        return [v for values in self._groups.values() for v in values]

    @property
    def combination_count(self) -> int:
        count = 1
        for values in self._groups.values():
            count *= len(values)
        return count

    def as_lists(self) -> List[Tuple[int, ...]]:
        return list(self._groups.values())
