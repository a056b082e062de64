"""Daily sign-in with levels and coin rewards."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import MutableMapping, Optional, Protocol

SCOREMAX = 1200
SIGNIN_MAX = 1
RANK_THRESHOLDS = (0, 10, 20, 50, 100, 200, 350, 550, 750, 1000, 1200)

_DAY_FORMAT = "%Y%m%d"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS score (
    uid INTEGER PRIMARY KEY,
    score INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS sign_in (
    uid INTEGER PRIMARY KEY,
    count INTEGER NOT NULL DEFAULT 0,
    updated_at TEXT
);
"""


class _Rng(Protocol):
    def randrange(self, stop: int) -> int: ...


class ScoreDB:
    """Levels and sign-in counters, stored in SQLite."""

    def __init__(self, path):
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "ScoreDB":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def score_of(self, uid: int) -> int:
        """The user's level points, creating a zero entry when missing."""
        with self._lock, self._conn:
            self._conn.execute("INSERT OR IGNORE INTO score (uid, score) VALUES (?, 0)", (uid,))
            row = self._conn.execute("SELECT score FROM score WHERE uid = ?", (uid,)).fetchone()
        return int(row[0])

    def set_score(self, uid: int, score: int) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO score (uid, score) VALUES (?, ?) "
                "ON CONFLICT(uid) DO UPDATE SET score = excluded.score",
                (uid, score),
            )

    def sign_in_of(self, uid: int) -> tuple[int, Optional[datetime]]:
        """The user's sign-in count and the time it was last updated."""
        with self._lock:
            row = self._conn.execute(
                "SELECT count, updated_at FROM sign_in WHERE uid = ?", (uid,)
            ).fetchone()
        if row is None:
            return 0, None
        updated = datetime.fromisoformat(row[1]) if row[1] else None
        return int(row[0]), updated

    def set_sign_in_count(self, uid: int, count: int, now: datetime) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO sign_in (uid, count, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(uid) DO UPDATE SET count = excluded.count, "
                "updated_at = excluded.updated_at",
                (uid, count, now.isoformat()),
            )

    def top_scores(self, n: int) -> list[tuple[int, int]]:
        """The n highest (uid, score) pairs, highest first."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT uid, score FROM score ORDER BY score DESC LIMIT ?", (n,)
            ).fetchall()
        return [(int(uid), int(score)) for uid, score in rows]


@dataclass
class SignInResult:
    """What a sign-in did."""

    already_signed: bool
    level: int = 0
    rank: int = 0
    added: int = 0
    balance: int = 0
    next_rank_score: int = 0
    reached_max: bool = False
    greeting: str = ""
    date_word: str = ""


def get_rank(count: int) -> int:
    """The rank for a level count; -1 above the last threshold."""
    for rank, threshold in enumerate(RANK_THRESHOLDS):
        if count == threshold:
            return rank
        if count < threshold:
            return rank - 1
    return -1


def next_rank_score(rank: int) -> int:
    """Points needed for the rank after rank."""
    if rank < len(RANK_THRESHOLDS) - 1:
        return RANK_THRESHOLDS[rank + 1]
    return SCOREMAX


def hour_greeting(moment: datetime) -> str:
    hour = moment.hour
    if 6 <= hour < 12:
        return "早上好"
    if 12 <= hour < 14:
        return "中午好"
    if 14 <= hour < 19:
        return "下午好"
    if 19 <= hour < 24:
        return "晚上好"
    if 0 <= hour < 6:
        return "凌晨好"
    return ""


def sign_in(
    db: ScoreDB,
    uid: int,
    now: datetime,
    wallet: MutableMapping[int, int],
    rng: _Rng,
) -> SignInResult:
    """Sign uid in for the day, raising the level and paying coins into wallet."""
    today = now.strftime(_DAY_FORMAT)
    count, updated = db.sign_in_of(uid)
    updated_day = updated.strftime(_DAY_FORMAT) if updated else ""
    if count >= SIGNIN_MAX and updated_day == today:
        return SignInResult(already_signed=True)
    if updated_day != today:
        db.set_sign_in_count(uid, 0, now)
    db.set_sign_in_count(uid, count + 1, now)

    level = db.score_of(uid) + 1
    reached_max = level > SCOREMAX
    if reached_max:
        level = SCOREMAX
    db.set_score(uid, level)

    rank = get_rank(level)
    added = 1 + rng.randrange(10) + rank * 5
    balance = wallet.get(uid, 0) + added
    wallet[uid] = balance
    return SignInResult(
        already_signed=False,
        level=level,
        rank=rank,
        added=added,
        balance=balance,
        next_rank_score=next_rank_score(rank),
        reached_max=reached_max,
        greeting=hour_greeting(now),
        date_word=now.strftime("%m/%d"),
    )