import os
import logging
from dotenv import load_dotenv
from dateutil import tz

load_dotenv()

logger = logging.getLogger(__name__)

HABITS_FILE = os.getenv("HABITS_FILE", "habits.json")
AUDIT_LOG_PATH = os.getenv("HABIT_AUDIT_LOG", "data/audit.log")
TRACE_LOG_PATH = os.getenv("HABIT_TRACE_LOG") or None
LOG_LEVEL = os.getenv("HABIT_LOG_LEVEL", "WARNING").upper()


def resolve_timezone(name):
    if not name:
        return tz.tzlocal()
    zone = tz.gettz(name)
    if zone is None:
        logger.warning("Unknown HABIT_TIMEZONE %r, using the system time zone", name)
        return tz.tzlocal()
    return zone


# Zone used to decide what "today" means for completions and summaries
LOCAL_TZ = resolve_timezone(os.getenv("HABIT_TIMEZONE"))

DECAY_REQUIRES_STREAK = os.getenv("HABIT_DECAY_REQUIRES_STREAK", "false").lower() in ("1", "true", "yes")
