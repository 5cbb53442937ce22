"""
Ledger access layer handed to every contract operation.

A TransactionContext is the working set of one invocation: exact-key reads and
writes, prefix range scans and key history scans, plus the transaction id and
commit timestamp chosen by the host. Writes are buffered and only reach the
store when the host commits; reads are recorded so the store can reject the
commit if anything they observed has changed.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .canonical import canonical_json, iso_instant, load_json, parse_instant
from .errors import InvalidArgument
from .storage import LedgerStore, RangeRead, in_range


class TransactionContext:

    def __init__(self, store: LedgerStore, tx_id: str, tx_timestamp: datetime, read_only: bool = False):
        self.store = store
        self.tx_id = tx_id
        self.tx_datetime = parse_instant(tx_timestamp)
        self.tx_timestamp = iso_instant(self.tx_datetime)
        self.read_only = read_only
        self._writes: Dict[str, Optional[str]] = {}
        self._read_set: Dict[str, Optional[int]] = {}
        self._range_reads: List[RangeRead] = []

    # --- reads ---

    def get_state(self, key: str) -> Optional[str]:
        if key in self._writes:
            return self._writes[key]
        current = self.store.get(key)
        self._read_set.setdefault(key, current[1] if current else None)
        return current[0] if current else None

    def get_state_by_range(self, start: str, end: str) -> List[Tuple[str, str]]:
        """Keys in [start, end) in lexicographic order, pending writes included."""
        committed = self.store.range(start, end)
        self._range_reads.append(RangeRead(start, end, {key: version for key, _, version in committed}))
        merged = {key: value for key, value, _ in committed}
        for key, value in self._writes.items():
            if not in_range(key, start, end):
                continue
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        return sorted(merged.items())

    def get_history_for_key(self, key: str) -> List[Dict[str, Any]]:
        """Every committed version of key, oldest first."""
        return [
            {
                "txId": entry["txId"],
                "timestamp": entry["timestamp"],
                "isDelete": entry["isDelete"],
                "value": entry["value"],
            }
            for entry in self.store.history(key)
        ]

    def exists(self, key: str) -> bool:
        value = self.get_state(key)
        return value is not None and len(value) > 0

    def get_json(self, key: str) -> Optional[Dict[str, Any]]:
        value = self.get_state(key)
        if not value:
            return None
        return load_json(value)

    def scan_json(self, start: str, end: str) -> List[Tuple[str, Dict[str, Any]]]:
        return [(key, load_json(value)) for key, value in self.get_state_by_range(start, end) if value]

    # --- writes ---

    def _check_writable(self, key: str) -> None:
        if self.read_only:
            raise InvalidArgument(f"cannot write {key} from a read-only query")
        if not key:
            raise InvalidArgument("empty ledger key")

    def put_state(self, key: str, value: str) -> None:
        self._check_writable(key)
        self._writes[key] = value

    def put_json(self, key: str, record: Any) -> str:
        payload = canonical_json(record)
        self.put_state(key, payload)
        return payload

    def del_state(self, key: str) -> None:
        self._check_writable(key)
        self._writes[key] = None

    def move_state(self, old_key: str, new_key: str, record: Any) -> str:
        """Re-key a record: both halves land in the same commit or neither does."""
        self._check_writable(new_key)
        if old_key != new_key:
            self.del_state(old_key)
        return self.put_json(new_key, record)

    @property
    def pending_writes(self) -> Dict[str, Optional[str]]:
        return dict(self._writes)

    def commit(self) -> int:
        if self.read_only:
            raise InvalidArgument("read-only queries are never committed")
        return self.store.commit(self.tx_id, self.tx_timestamp, self._read_set, self._range_reads, self._writes)
