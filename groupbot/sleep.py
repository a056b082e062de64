"""Good-night and good-morning bookkeeping for groups."""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timedelta

_SCHEMA = """
CREATE TABLE IF NOT EXISTS sleep_manage (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    group_id INTEGER NOT NULL,
    user_id INTEGER NOT NULL,
    sleep_time TEXT NOT NULL
);
"""


def _stamp(moment: datetime) -> str:
    return moment.isoformat(sep=" ", timespec="microseconds")


def _back_to_hour(now: datetime, hour: int) -> datetime:
    return now - timedelta(hours=now.hour - hour, minutes=now.minute, seconds=now.second)


class SleepDB:
    """The last sleep or wake time of each user per group, stored in SQLite."""

    def __init__(self, path):
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "SleepDB":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _update(self, gid: int, uid: int, now: datetime, since: datetime) -> tuple[int, timedelta]:
        with self._lock, self._conn:
            row = self._conn.execute(
                "SELECT sleep_time FROM sleep_manage WHERE group_id = ? AND user_id = ? "
                "ORDER BY id LIMIT 1",
                (gid, uid),
            ).fetchone()
            elapsed = timedelta(0)
            if row is None:
                self._conn.execute(
                    "INSERT INTO sleep_manage (group_id, user_id, sleep_time) VALUES (?, ?, ?)",
                    (gid, uid, _stamp(now)),
                )
            else:
                elapsed = now - datetime.fromisoformat(row[0])
                self._conn.execute(
                    "UPDATE sleep_manage SET sleep_time = ? WHERE group_id = ? AND user_id = ?",
                    (_stamp(now), gid, uid),
                )
            (position,) = self._conn.execute(
                "SELECT COUNT(*) FROM sleep_manage WHERE group_id = ? "
                "AND sleep_time <= ? AND sleep_time >= ?",
                (gid, _stamp(now), _stamp(since)),
            ).fetchone()
        return int(position), elapsed

    def sleep(self, gid: int, uid: int, now: datetime) -> tuple[int, timedelta]:
        """Record going to bed; returns the place tonight and the time spent awake."""
        if now.hour >= 21:
            since = _back_to_hour(now, 21)
        elif now.hour <= 3:
            since = _back_to_hour(now, -3)
        else:
            since = datetime.min
        return self._update(gid, uid, now, since)

    def get_up(self, gid: int, uid: int, now: datetime) -> tuple[int, timedelta]:
        """Record getting up; returns the place this morning and the time slept."""
        return self._update(gid, uid, now, _back_to_hour(now, 6))


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def split_duration(duration: timedelta) -> tuple[int, int, int]:
    """Hours, minutes and seconds of a duration, each truncated toward zero."""
    total = duration // timedelta(microseconds=1)
    hour_us = 3600 * 10**6
    minute_us = 60 * 10**6
    hours = _trunc_div(total, hour_us)
    minutes = _trunc_div(total - hours * hour_us, minute_us)
    seconds = _trunc_div(total - hours * hour_us - minutes * minute_us, 10**6)
    return hours, minutes, seconds


def is_morning(hour: int) -> bool:
    """Good mornings count from 6 to 12 o'clock."""
    return 6 <= hour <= 12


def is_evening(hour: int) -> bool:
    """Good nights count from 21 o'clock to 3 in the morning."""
    return hour >= 21 or hour <= 3


def _unmeasured(hours: int, minutes: int, seconds: int) -> bool:
    return (hours, minutes, seconds) == (0, 0, 0) or hours >= 24


def good_morning_text(position: int, duration: timedelta) -> str:
    hours, minutes, seconds = split_duration(duration)
    if _unmeasured(hours, minutes, seconds):
        return f"早安成功！你是今天第{position}个起床的"
    return (
        f"早安成功！你的睡眠时长为{hours}时{minutes}分{seconds}秒,"
        f"你是今天第{position}个起床的"
    )


def good_night_text(position: int, duration: timedelta) -> str:
    hours, minutes, seconds = split_duration(duration)
    if _unmeasured(hours, minutes, seconds):
        return f"晚安成功！你是今天第{position}个睡觉的"
    return (
        f"晚安成功！你的清醒时长为{hours}时{minutes}分{seconds}秒,"
        f"你是今天第{position}个睡觉的"
    )