"""Date and time skill."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field

from ...base import BaseSkill
from ...operation import Operation, operation_from_model

if TYPE_CHECKING:
    from ....config import Settings

COMMON_TIMEZONES: dict[str, str] = {
    "buenos aires": "America/Argentina/Buenos_Aires",
    "argentina": "America/Argentina/Buenos_Aires",
    "new york": "America/New_York",
    "los angeles": "America/Los_Angeles",
    "london": "Europe/London",
    "paris": "Europe/Paris",
    "berlin": "Europe/Berlin",
    "tokyo": "Asia/Tokyo",
    "sydney": "Australia/Sydney",
    "dubai": "Asia/Dubai",
    "singapore": "Asia/Singapore",
    "hong kong": "Asia/Hong_Kong",
    "moscow": "Europe/Moscow",
    "sao paulo": "America/Sao_Paulo",
    "mexico city": "America/Mexico_City",
    "utc": "UTC",
}
_FORMATS: dict[str, str] = {
    "full": "%A, %d %B %Y %H:%M:%S %Z",
    "date": "%d %B %Y",
    "time": "%H:%M:%S",
}


class DateTimeInput(BaseModel):
    timezone: str = Field(default="UTC", description='Timezone name (city) or IANA identifier, e.g., "Tokyo"')
    format: Literal["full", "date", "time"] = Field(
        default="full", description="Output format: full (date and time), date only, or time only"
    )


def resolve_timezone(value: str) -> str:
    lowered = value.casefold().strip()
    return COMMON_TIMEZONES.get(lowered, value.strip())


def make_datetime_handler(now: Callable[[], datetime] | None = None) -> Callable[[DateTimeInput], str]:
    clock = now or (lambda: datetime.now(UTC))

    def _handler(params: DateTimeInput) -> str:
        tz_name = resolve_timezone(params.timezone)
        try:
            zone = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            return f"Error getting datetime: {exc}. Make sure the timezone is valid."
        current = clock().astimezone(zone)
        return f"{current.strftime(_FORMATS[params.format])} ({tz_name})"

    return _handler


class DateTimeSkill(BaseSkill):
    def __init__(self, now: Callable[[], datetime] | None = None) -> None:
        super().__init__(Path(__file__).parent)
        self._handler = make_datetime_handler(now)

    def is_available(self, settings: Settings) -> bool:
        return True

    def operations(self, settings: Settings) -> Sequence[Operation]:
        return [
            operation_from_model(
                DateTimeInput,
                self._handler,
                name="get_datetime",
                description=(
                    "Get the current date and time in a specific timezone. Use city names like "
                    '"Tokyo", "London", "Buenos Aires" or IANA timezone identifiers.'
                ),
            )
        ]
