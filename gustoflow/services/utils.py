import time
import uuid


def new_id() -> str:
    """Short random record id."""
    return uuid.uuid4().hex[:9]


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)
