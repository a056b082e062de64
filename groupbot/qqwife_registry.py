"""Marriage registry for the daily group-wife game: records, settings, favour and cooldowns."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

DATE_FORMAT = "%Y/%m/%d"
TIME_FORMAT = "%H:%M:%S"
FAVOR_MIN = 0
FAVOR_MAX = 100
DEFAULT_CD_HOURS = 12.0

_SCHEMA = """
CREATE TABLE IF NOT EXISTS settings (
    gid INTEGER PRIMARY KEY,
    updatetime TEXT NOT NULL DEFAULT '',
    can_match INTEGER NOT NULL DEFAULT 1,
    can_ntr INTEGER NOT NULL DEFAULT 1,
    cd_hours REAL NOT NULL DEFAULT 12
);
CREATE TABLE IF NOT EXISTS marriages (
    gid INTEGER NOT NULL,
    user INTEGER NOT NULL,
    target INTEGER NOT NULL,
    username TEXT NOT NULL,
    targetname TEXT NOT NULL,
    updatetime TEXT NOT NULL,
    PRIMARY KEY (gid, user)
);
CREATE TABLE IF NOT EXISTS cdsheet (
    gid INTEGER NOT NULL,
    uid INTEGER NOT NULL,
    mode TEXT NOT NULL,
    time INTEGER NOT NULL,
    PRIMARY KEY (gid, uid, mode)
);
CREATE TABLE IF NOT EXISTS favorability (
    userinfo TEXT PRIMARY KEY,
    favor INTEGER NOT NULL DEFAULT 0
);
"""


@dataclass
class GroupSettings:
    """Per-group switches and cooldown length."""

    gid: int
    updatetime: str = ""
    can_match: bool = True
    can_ntr: bool = True
    cd_hours: float = DEFAULT_CD_HOURS


@dataclass(frozen=True)
class MarriageRecord:
    """One marriage certificate; target 0 (or user 0) marks a proud single."""

    user: int = 0
    target: int = 0
    username: str = ""
    targetname: str = ""
    updatetime: str = ""

    def is_empty(self) -> bool:
        """True when no record exists at all."""
        return self == MarriageRecord()

    @property
    def is_single_noble(self) -> bool:
        return not self.is_empty() and (self.target == 0 or self.user == 0)


class Registry:
    """The marriage office, stored in SQLite."""

    def __init__(self, path, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or datetime.now
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "Registry":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # settings -----------------------------------------------------------

    def settings(self, gid: int) -> GroupSettings:
        """The group's settings, or the defaults when none were saved."""
        with self._lock:
            row = self._conn.execute(
                "SELECT gid, updatetime, can_match, can_ntr, cd_hours FROM settings WHERE gid = ?",
                (gid,),
            ).fetchone()
        if row is None:
            return GroupSettings(gid=gid)
        return GroupSettings(row[0], row[1], bool(row[2]), bool(row[3]), float(row[4]))

    def save_settings(self, settings: GroupSettings) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO settings (gid, updatetime, can_match, can_ntr, cd_hours) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    settings.gid,
                    settings.updatetime,
                    int(settings.can_match),
                    int(settings.can_ntr),
                    float(settings.cd_hours),
                ),
            )

    def open_for_day(self, gid: int) -> None:
        """Clear the group's marriages once the date has changed."""
        with self._lock:
            current = self.settings(gid)
            today = self._clock().strftime(DATE_FORMAT)
            if current.updatetime == today:
                return
            with self._conn:
                self._conn.execute("DELETE FROM marriages WHERE gid = ?", (gid,))
            current.gid = gid
            current.updatetime = today
            self.save_settings(current)

    # marriages ----------------------------------------------------------

    def lookup(self, gid: int, uid: int) -> MarriageRecord:
        """The record where uid is the user, else where uid is the target."""
        query = (
            "SELECT user, target, username, targetname, updatetime FROM marriages "
            "WHERE gid = ? AND {} = ? LIMIT 1"
        )
        with self._lock:
            row = self._conn.execute(query.format("user"), (gid, uid)).fetchone()
            if row is None:
                row = self._conn.execute(query.format("target"), (gid, uid)).fetchone()
        return MarriageRecord(*row) if row else MarriageRecord()

    def register(self, gid: int, uid: int, target: int, username: str, targetname: str) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO marriages (gid, user, target, username, targetname, updatetime) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (gid, uid, target, username, targetname, self._clock().strftime(TIME_FORMAT)),
            )

    def roster(self, gid: int) -> list[tuple[str, str, str, str]]:
        """Married couples as (username, user id, targetname, target id)."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT username, user, targetname, target FROM marriages "
                "WHERE gid = ? AND target != 0 ORDER BY rowid",
                (gid,),
            ).fetchall()
        return [(name, str(user), tname, str(target)) for name, user, tname, target in rows]

    def reset(self, gid: Optional[int] = None) -> None:
        """Clear one group's marriages and cooldowns, or all data but favour."""
        with self._lock, self._conn:
            if gid is None:
                for table in ("marriages", "settings", "cdsheet"):
                    self._conn.execute(f"DELETE FROM {table}")
            else:
                self._conn.execute("DELETE FROM marriages WHERE gid = ?", (gid,))
                self._conn.execute("DELETE FROM cdsheet WHERE gid = ?", (gid,))

    def divorce_wife(self, gid: int, wife: int) -> None:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM marriages WHERE gid = ? AND target = ?", (gid, wife))

    def divorce_husband(self, gid: int, husband: int) -> None:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM marriages WHERE gid = ? AND user = ?", (gid, husband))

    # favour -------------------------------------------------------------

    def _favor_row(self, uid: int, target: int):
        return self._conn.execute(
            "SELECT userinfo, favor FROM favorability WHERE userinfo GLOB ? LIMIT 1",
            (f"*{uid}+{target}*",),
        ).fetchone()

    def favor(self, uid: int, target: int) -> int:
        """Favour between two users; the pair's order does not matter."""
        with self._lock:
            row = self._favor_row(uid, target)
        return row[1] if row else 0

    def favor_list(self, uid: int) -> list[tuple[str, int]]:
        """Everyone uid has favour with, as (other id, favour), highest first."""
        uid_str = str(uid)
        with self._lock:
            rows = self._conn.execute(
                "SELECT userinfo, favor FROM favorability WHERE userinfo GLOB ? ORDER BY rowid",
                (f"*{uid_str}*",),
            ).fetchall()
        entries = []
        for userinfo, favor in rows:
            parts = userinfo.split("+")
            if len(parts) < 2:
                raise ValueError("corrupt favorability record: " + userinfo)
            other = parts[1] if parts[0] == uid_str else parts[0]
            entries.append((other, favor))
        entries.sort(key=lambda entry: entry[1], reverse=True)
        return entries

    def update_favor(self, uid: int, target: int, score: int) -> int:
        """Add score (may be negative) to the pair's favour, clamped to 0..100."""
        key = f"{uid}+{target}+{uid}"
        with self._lock, self._conn:
            row = self._favor_row(uid, target)
            favor = (row[1] if row else 0) + score
            favor = max(FAVOR_MIN, min(FAVOR_MAX, favor))
            if row is not None and row[0] != key:
                self._conn.execute("DELETE FROM favorability WHERE userinfo = ?", (row[0],))
            self._conn.execute(
                "INSERT OR REPLACE INTO favorability (userinfo, favor) VALUES (?, ?)", (key, favor)
            )
        return favor

    # cooldowns ----------------------------------------------------------

    def check_cd(self, gid: int, uid: int, mode: str, cd_hours: float) -> bool:
        """True when the skill may be used; an expired cooldown is removed."""
        with self._lock:
            row = self._conn.execute(
                "SELECT time FROM cdsheet WHERE gid = ? AND uid = ? AND mode = ?",
                (gid, uid, mode),
            ).fetchone()
            if row is None:
                return True
            elapsed = (self._clock() - datetime.fromtimestamp(row[0])).total_seconds() / 3600
            if elapsed > cd_hours:
                with self._conn:
                    self._conn.execute(
                        "DELETE FROM cdsheet WHERE gid = ? AND uid = ? AND mode = ?",
                        (gid, uid, mode),
                    )
                return True
            return False

    def record_cd(self, gid: int, uid: int, mode: str) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO cdsheet (gid, uid, mode, time) VALUES (?, ?, ?, ?)",
                (gid, uid, mode, int(self._clock().timestamp())),
            )


def truncate_name(name: str, measure: Callable[[str], float], limit: int = 350) -> str:
    """Shorten name with '......' when its drawn width would exceed limit."""
    width = 0
    last = 0
    for index, char in enumerate(name):
        width += int(measure(char))
        if width > limit:
            break
        last = index
    if width > limit:
        return name[: max(0, last - 1)] + "......"
    return name