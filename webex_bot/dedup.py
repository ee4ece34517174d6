"""
Bounded ledger of processed message identifiers.
"""

from typing import Dict, Iterator

from webex_bot.core.logging import get_logger

logger = get_logger("dedup")


class DedupLedger:
    """
    Remembers which message IDs have been handled.

    Identifiers are kept in insertion order. Once the ledger grows past
    ``ceiling`` the oldest entries are dropped until ``floor`` remain.
    Message IDs carry no timestamp, so insertion order stands in for age;
    re-checking an ID with ``seen`` does not refresh it.
    """

    def __init__(self, ceiling: int = 200, floor: int = 100):
        if floor < 0 or floor > ceiling:
            raise ValueError(f"floor must be within [0, ceiling], got floor={floor} ceiling={ceiling}")
        self.ceiling = ceiling
        self.floor = floor
        # dicts preserve insertion order
        self._ids: Dict[str, None] = {}

    def seen(self, message_id: str) -> bool:
        return message_id in self._ids

    def mark_seen(self, message_id: str) -> None:
        if message_id not in self._ids:
            self._ids[message_id] = None

    def size(self) -> int:
        return len(self._ids)

    def needs_compaction(self) -> bool:
        return self.size() > self.ceiling

    def compact(self) -> int:
        """
        Evict the oldest identifiers down to the floor.

        Returns:
            Number of identifiers evicted.
        """
        excess = self.size() - self.floor
        if excess <= 0:
            return 0

        oldest = list(self._ids)[:excess]
        for message_id in oldest:
            del self._ids[message_id]

        logger.debug(f"Compacted dedup ledger: evicted {excess}, kept {self.size()}")
        return excess

    def compact_if_needed(self) -> int:
        if self.needs_compaction():
            return self.compact()
        return 0

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._ids

    def __len__(self) -> int:
        return self.size()

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))
