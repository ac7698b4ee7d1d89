from datetime import datetime, timezone


def current_time_ms() -> int:
    """Current UTC time as Unix epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)
