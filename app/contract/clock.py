"""
Time source for the contract: wall-clock milliseconds and day indexes
"""
import time

from config import DAY_MS


def day_index(now_ms: int) -> int:
    """Whole days elapsed since the Unix epoch"""
    return now_ms // DAY_MS


class SystemClock:
    """Reads the host wall clock"""

    def now_ms(self) -> int:
        return int(time.time() * 1000)
