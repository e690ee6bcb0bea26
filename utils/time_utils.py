from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_gateway_datetime(value) -> datetime | None:
    """
    Parse an ISO-8601 timestamp sent by the payment gateway
    (e.g. "2024-05-01T10:15:00.000Z") into naive UTC.

    Returns None for missing or unparseable values.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
