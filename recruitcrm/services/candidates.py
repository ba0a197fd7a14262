"""Candidate payload normalization before insert."""

from datetime import date, datetime, timezone
from typing import Optional

from recruitcrm.models import Candidate

# Columns the database fills in itself
_SERVER_COLUMNS = {"id", "created_at"}


class CandidatePayloadError(ValueError):
    """Raised when a payload cannot become a candidates row."""


def prepare_candidate_row(candidate_data: dict, now: Optional[datetime] = None) -> dict:
    """
    Normalize a save-candidate payload.

    - ``willing_to_relocate`` becomes True only for the string "yes"
    - ``user_date_added`` defaults to now
    - an empty ``date_available`` becomes None
    - any embedded ``cv`` file object is dropped
    """
    now = now or datetime.now(timezone.utc)

    row = dict(candidate_data)
    row["willing_to_relocate"] = candidate_data.get("willing_to_relocate") == "yes"
    row["user_date_added"] = candidate_data.get("user_date_added") or now.isoformat()
    row["date_available"] = candidate_data.get("date_available") or None
    row.pop("cv", None)
    return row


def _coerce_date(value) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise CandidatePayloadError(f'invalid input syntax for type date: "{value}"')


def _coerce_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        raise CandidatePayloadError(f'invalid input syntax for type timestamp: "{value}"')


def build_candidate(row: dict) -> Candidate:
    """Turn a prepared row into a Candidate, rejecting unknown columns."""
    columns = {column.name for column in Candidate.__table__.columns} - _SERVER_COLUMNS
    unknown = sorted(key for key in row if key not in columns and key not in _SERVER_COLUMNS)
    if unknown:
        raise CandidatePayloadError(
            f"Could not find the '{unknown[0]}' column of 'candidates'"
        )

    values = {key: value for key, value in row.items() if key in columns}
    values["date_available"] = _coerce_date(values.get("date_available"))
    values["user_date_added"] = _coerce_datetime(values.get("user_date_added"))
    return Candidate(**values)
