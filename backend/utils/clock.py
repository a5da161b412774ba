import os
from datetime import datetime

import pytz
from dotenv import load_dotenv

load_dotenv()

# All audit timestamps are stored timezone-aware in the configured zone.
APP_TIMEZONE = pytz.timezone(os.getenv("APP_TIMEZONE", "UTC"))


def now() -> datetime:
    return datetime.now(APP_TIMEZONE)
