from __future__ import annotations

from datetime import date, datetime

from zoneinfo import ZoneInfo

# Default application timezone aligned with frontend
DEFAULT_TIMEZONE_NAME = "America/Sao_Paulo"
DEFAULT_TZ = ZoneInfo(DEFAULT_TIMEZONE_NAME)


def local_today(tz: ZoneInfo = DEFAULT_TZ) -> date:
    """Calendar date on the farm, used for 'overdue' comparisons."""
    return datetime.now(tz).date()
