from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator


def assume_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes so history records always compare cleanly."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


Timestamp = Annotated[datetime, AfterValidator(assume_utc)]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
