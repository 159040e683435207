import math
import random
import re
import string
import threading
import time
from datetime import date, datetime, timedelta, timezone
from typing import Optional

_SCRIPT_TAG = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)


def sanitize_input(value):
    """Trim strings and strip <script> blocks. Non-strings pass through."""
    if not isinstance(value, str):
        return value
    return _SCRIPT_TAG.sub("", value.strip())


def is_valid_attendance_date(month: int, year: int, today: Optional[date] = None) -> bool:
    today = today or date.today()
    if month < 1 or month > 12:
        return False
    if year < today.year - 1 or year > today.year + 1:
        return False
    # current year ke future months allowed nahi
    if year == today.year and month > today.month:
        return False
    return True


def percentage(part, whole) -> int:
    """Round-half-up integer percentage (12.5 -> 13)."""
    if not whole or whole <= 0:
        return 0
    return int(math.floor(part / whole * 100 + 0.5))


# ==========================
#   TIME & ID HELPERS
# ==========================

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def now_iso() -> str:
    return utc_now().isoformat()


def expiry_from_days(days, now: Optional[datetime] = None) -> Optional[str]:
    if days in (None, ""):
        return None
    now = now or utc_now()
    return (now + timedelta(days=int(days))).isoformat()


def parse_timestamp(value) -> Optional[datetime]:
    """ISO string -> aware datetime. Naive values are treated as UTC."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_key_timestamp(value) -> float:
    parsed = parse_timestamp(value)
    return parsed.timestamp() if parsed else 0.0


_id_lock = threading.Lock()
_last_id_value = 0


def new_numeric_id() -> int:
    """Millisecond id, strictly increasing inside the process."""
    global _last_id_value
    with _id_lock:
        candidate = int(time.time() * 1000)
        if candidate <= _last_id_value:
            candidate = _last_id_value + 1
        _last_id_value = candidate
        return candidate


def new_token_id(prefix: str) -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"
