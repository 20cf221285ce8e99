"""Collateral/pair keyed storage for per-market snapshots.

Snapshots are fetched per (collateral_index, pair_index). A flat mapping
keyed by the tuple avoids nested dict lookups and makes a missing entry a
single, explicit case.
"""

from collections.abc import Iterator, Mapping
from typing import Generic, TypeVar

from perpcalc.exceptions import MissingDataError

T = TypeVar("T")

PairKey = tuple[int, int]


class PairMap(Generic[T]):
    """Mapping from ``(collateral_index, pair_index)`` to a snapshot value.

    Args:
        items: Optional initial entries keyed by ``(collateral_index, pair_index)``.
    """

    def __init__(self, items: Mapping[PairKey, T] | None = None) -> None:
        self._items: dict[PairKey, T] = dict(items or {})

    @classmethod
    def from_nested(cls, nested: Mapping[int, Mapping[int, T]]) -> "PairMap[T]":
        """Build from the ``{collateral: {pair: value}}`` shape returned by fetchers."""
        return cls(
            {
                (collateral_index, pair_index): value
                for collateral_index, by_pair in nested.items()
                for pair_index, value in by_pair.items()
            }
        )

    def get(self, collateral_index: int, pair_index: int) -> T | None:
        return self._items.get((collateral_index, pair_index))

    def require(self, collateral_index: int, pair_index: int) -> T:
        """Return the entry or raise MissingDataError.

        Raises:
            MissingDataError: If no entry exists for the key.
        """
        try:
            return self._items[(collateral_index, pair_index)]
        except KeyError:
            raise MissingDataError(
                f"missing data for collateral {collateral_index} pair {pair_index}"
            ) from None

    def set(self, collateral_index: int, pair_index: int, value: T) -> None:
        self._items[(collateral_index, pair_index)] = value

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[PairKey]:
        return iter(sorted(self._items))
