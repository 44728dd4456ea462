"""Timestamp used in artifact file names."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


def get_formatted_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
