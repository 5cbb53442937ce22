# electionledger/canonical.py
# Byte-stable JSON for ledger records: identical state must serialise identically on every replica
import json
from datetime import date, datetime, timezone
from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from .errors import InvalidArgument


def _plain(value: Any) -> Any:
    # Unset optional fields are omitted from stored records
    if isinstance(value, BaseModel):
        return value.model_dump(exclude_none=True)
    if isinstance(value, dict):
        return {key: _plain(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(val) for val in value]
    return value


def canonical_json(value: Any) -> str:
    """Serialise a record (or any JSON-able value) with recursively sorted keys."""
    return json.dumps(
        jsonable_encoder(_plain(value)),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def load_json(text: str) -> Any:
    return json.loads(text)


def iso_instant(moment: datetime) -> str:
    """Format as a UTC instant with millisecond precision, e.g. 2026-10-18T09:30:00.000Z."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"


def parse_instant(text: str) -> datetime:
    """
    Parse a caller-supplied date or datetime.
    Accepts plain dates, naive datetimes (read as UTC), explicit offsets and a trailing Z.
    """
    if isinstance(text, datetime):
        moment = text
    elif isinstance(text, date):
        moment = datetime.combine(text, datetime.min.time())
    else:
        s = (text or "").strip()
        if not s:
            raise InvalidArgument("empty date")
        if s.endswith("Z") or s.endswith("z"):
            s = s[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(s)
        except ValueError:
            raise InvalidArgument(f"invalid date: {text!r}")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def normalize_instant(text: str) -> str:
    return iso_instant(parse_instant(text))
