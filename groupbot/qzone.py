"""Storage for the confession wall: login cookies and submitted posts."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from enum import IntEnum
from typing import Iterable, Optional

LOVE_TAG = "表白"
PAGE_SIZE = 5

_SCHEMA = """
CREATE TABLE IF NOT EXISTS qzone_config (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    qq INTEGER NOT NULL UNIQUE,
    cookie TEXT NOT NULL DEFAULT ''
);
CREATE TABLE IF NOT EXISTS emotion (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL,
    anonymous INTEGER NOT NULL DEFAULT 0,
    qq INTEGER NOT NULL,
    msg TEXT NOT NULL DEFAULT '',
    status INTEGER NOT NULL DEFAULT 0,
    tag TEXT NOT NULL DEFAULT ''
);
"""

_COLUMNS = "qq, msg, status, tag, anonymous, id, created_at"


class EmotionStatus(IntEnum):
    """Review state of a post."""

    WAIT = 1
    AGREE = 2
    DISAGREE = 3


_STATUS_WORDS = {
    EmotionStatus.WAIT: "审核中",
    EmotionStatus.AGREE: "同意",
    EmotionStatus.DISAGREE: "拒绝",
}


@dataclass(frozen=True)
class Emotion:
    """A post submitted to the wall."""

    qq: int
    msg: str
    status: int = EmotionStatus.WAIT
    tag: str = LOVE_TAG
    anonymous: bool = False
    id: int = 0
    created_at: Optional[datetime] = None

    def brief(self) -> str:
        """Summary shown to reviewers."""
        created = self.created_at.strftime("%Y-%m-%d %H:%M:%S") if self.created_at else ""
        text = f"序号: {self.id}\nQQ: {self.qq}\n创建时间: {created}\n"
        try:
            text += f"状态: {_STATUS_WORDS[EmotionStatus(self.status)]}\n"
        except ValueError:
            pass
        text += "匿名: 是" if self.anonymous else "匿名: 否"
        return text


def _emotion(row) -> Emotion:
    qq, msg, status, tag, anonymous, ident, created = row
    return Emotion(
        qq=qq,
        msg=msg,
        status=status,
        tag=tag,
        anonymous=bool(anonymous),
        id=ident,
        created_at=datetime.fromisoformat(created),
    )


class QzoneDB:
    """Cookies of logged-in accounts and the wall's posts, stored in SQLite."""

    def __init__(self, path):
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "QzoneDB":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def insert_or_update(self, qq: int, cookie: str) -> None:
        """Store the account's cookie; an empty cookie leaves an existing one alone."""
        with self._lock, self._conn:
            exists = self._conn.execute("SELECT 1 FROM qzone_config WHERE qq = ?", (qq,)).fetchone()
            if exists is None:
                self._conn.execute(
                    "INSERT INTO qzone_config (qq, cookie) VALUES (?, ?)", (qq, cookie)
                )
            elif cookie:
                self._conn.execute("UPDATE qzone_config SET cookie = ? WHERE qq = ?", (cookie, qq))

    def get_by_uin(self, qq: int) -> str:
        """The stored cookie of an account; KeyError when it never logged in."""
        with self._lock:
            row = self._conn.execute("SELECT cookie FROM qzone_config WHERE qq = ?", (qq,)).fetchone()
        if row is None:
            raise KeyError(qq)
        return row[0]

    def save_emotion(self, emotion: Emotion) -> int:
        """Store a new post and return its id."""
        created = emotion.created_at or datetime.now()
        with self._lock, self._conn:
            cursor = self._conn.execute(
                "INSERT INTO emotion (created_at, anonymous, qq, msg, status, tag) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    created.isoformat(timespec="microseconds"),
                    int(emotion.anonymous),
                    emotion.qq,
                    emotion.msg,
                    int(emotion.status),
                    emotion.tag,
                ),
            )
        return int(cursor.lastrowid)

    def emotions_by_ids(self, ids: Iterable[int]) -> list[Emotion]:
        ids = list(ids)
        if not ids:
            return []
        marks = ", ".join("?" for _ in ids)
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {_COLUMNS} FROM emotion WHERE id IN ({marks}) ORDER BY id", ids
            ).fetchall()
        return [_emotion(row) for row in rows]

    def love_emotions_by_status(self, status: int, page: int) -> list[Emotion]:
        """One page of wall posts, newest first; status 0 means any status."""
        query = f"SELECT {_COLUMNS} FROM emotion WHERE tag LIKE ?"
        params: list = [f"%{LOVE_TAG}%"]
        if status != 0:
            query += " AND status = ?"
            params.append(int(status))
        query += " ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?"
        params += [PAGE_SIZE, page * PAGE_SIZE]
        with self._lock:
            rows = self._conn.execute(query, params).fetchall()
        return [_emotion(row) for row in rows]

    def update_status(self, ids: Iterable[int], status: int) -> None:
        ids = list(ids)
        if not ids:
            return
        marks = ", ".join("?" for _ in ids)
        with self._lock, self._conn:
            self._conn.execute(
                f"UPDATE emotion SET status = ? WHERE id IN ({marks})", [int(status), *ids]
            )


def anonymized(emotion: Emotion) -> Emotion:
    """The post with its author hidden when it was sent anonymously."""
    return replace(emotion, qq=0) if emotion.anonymous else emotion