from datetime import datetime
from typing import Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from config import logger

async def get_current_date_time(timezone: Optional[str] = None) -> Dict[str, str]:
    """Current date and time, in UTC unless a valid IANA zone name is given."""
    zone_name = (timezone or "UTC").strip() or "UTC"
    try:
        zone = ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r requested, using UTC.", zone_name)
        zone_name = "UTC"
        zone = ZoneInfo("UTC")

    now = datetime.now(zone)
    return {
        "iso": now.isoformat(timespec="seconds"),
        "date": now.strftime("%Y-%m-%d"),
        "weekday": now.strftime("%A"),
        "timezone": zone_name,
    }
