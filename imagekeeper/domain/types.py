"""Field types shared by the domain models."""

from datetime import datetime, timezone
from typing import Annotated, List

from pydantic import AfterValidator


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from older stores are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _unique_ids(ids: List[str]) -> List[str]:
    seen = set()
    for item_id in ids:
        if item_id in seen:
            raise ValueError(f"Duplicate id in membership list: {item_id}")
        seen.add(item_id)
    return ids


def non_blank_name(value: str | None) -> str:
    if value is None or not value.strip():
        raise ValueError("Name must not be empty")
    return value.strip()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]
IdList = Annotated[List[str], AfterValidator(_unique_ids)]
RequiredName = Annotated[str, AfterValidator(non_blank_name)]
