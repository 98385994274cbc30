"""Text formatting helpers shared by chat-facing services."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

_MILLISECONDS_THRESHOLD = 10**12


def format_timestamp(value: datetime | int | float | None, timezone_name: str) -> str:
    """Render a datetime or unix time (seconds or milliseconds) for display."""
    if value is None:
        return "-"
    if isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=UTC)
    else:
        seconds = float(value)
        if seconds >= _MILLISECONDS_THRESHOLD:
            seconds /= 1000
        moment = datetime.fromtimestamp(seconds, tz=UTC)
    return moment.astimezone(ZoneInfo(timezone_name)).strftime("%Y-%m-%d %H:%M")


def or_dash(value: object) -> str:
    return "-" if value is None or value == "" else str(value)
