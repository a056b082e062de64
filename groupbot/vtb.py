"""Library of vtuber voice quotes: three levels of categories stored in SQLite."""

from __future__ import annotations

import json
import sqlite3
import threading
from dataclasses import dataclass
from string import hexdigits
from typing import Any, Callable, Optional, Protocol
from urllib.parse import quote_plus

import requests

API_BASE = "https://vtbkeyboard.moe/api"
VTB_LIST_URL = API_BASE + "/get_vtb_list"
VTB_PAGE_URL = API_BASE + "/get_vtb_page?uid="

FIRST_MENU_HEADER = "请选择一个vtb并发送序号:\n"
SECOND_MENU_HEADER = "请选择一个语录类别并发送序号:\n"
THIRD_MENU_HEADER = "请选择一个语录并发送序号:\n"

_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Gecko/20100101 Firefox/110.0"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS first_category (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    first_category_index INTEGER NOT NULL,
    first_category_name TEXT NOT NULL DEFAULT '',
    first_category_uid TEXT NOT NULL DEFAULT '',
    first_category_description TEXT NOT NULL DEFAULT '',
    first_category_icon_path TEXT NOT NULL DEFAULT ''
);
CREATE TABLE IF NOT EXISTS second_category (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    second_category_index INTEGER NOT NULL,
    first_category_uid TEXT NOT NULL DEFAULT '',
    second_category_name TEXT NOT NULL DEFAULT '',
    second_category_author TEXT NOT NULL DEFAULT '',
    second_category_description TEXT NOT NULL DEFAULT ''
);
CREATE TABLE IF NOT EXISTS third_category (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    third_category_index INTEGER NOT NULL,
    second_category_index INTEGER NOT NULL,
    first_category_uid TEXT NOT NULL DEFAULT '',
    third_category_name TEXT NOT NULL DEFAULT '',
    third_category_path TEXT NOT NULL DEFAULT '',
    third_category_author TEXT NOT NULL DEFAULT '',
    third_category_description TEXT NOT NULL DEFAULT ''
);
"""

Fetch = Callable[[str], str]


class _Rng(Protocol):
    def randrange(self, stop: int) -> int: ...


@dataclass(frozen=True)
class FirstCategory:
    """A vtuber."""

    index: int
    name: str
    uid: str
    description: str = ""
    icon_path: str = ""


@dataclass(frozen=True)
class SecondCategory:
    """A group of quotes of one vtuber."""

    index: int
    first_uid: str
    name: str
    author: str = ""
    description: str = ""


@dataclass(frozen=True)
class ThirdCategory:
    """A single recorded quote."""

    index: int
    second_index: int
    first_uid: str
    name: str
    path: str
    author: str = ""
    description: str = ""


_FIRST_COLUMNS = (
    "first_category_index, first_category_name, first_category_uid, "
    "first_category_description, first_category_icon_path"
)
_THIRD_COLUMNS = (
    "third_category_index, second_category_index, first_category_uid, third_category_name, "
    "third_category_path, third_category_author, third_category_description"
)


def _http_get(url: str) -> str:
    response = requests.get(url, headers={"User-Agent": _USER_AGENT}, timeout=30)
    return response.content.decode("utf-8", errors="replace")


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value, ensure_ascii=False)


def _dig(obj: Any, *keys: str) -> Any:
    for key in keys:
        obj = obj.get(key) if isinstance(obj, dict) else None
    return obj


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _is_hex4(code: str) -> bool:
    return len(code) == 4 and all(char in hexdigits for char in code)


def decode_escaped_unicode(text: str) -> str:
    """Turn literal backslash-u escapes in text into the characters they name."""
    out = []
    pos = 0
    while True:
        start = text.find("\\u", pos)
        if start < 0:
            out.append(text[pos:])
            break
        out.append(text[pos:start])
        code = text[start + 2 : start + 6]
        if not _is_hex4(code):
            raise ValueError(f"invalid unicode escape at offset {start}")
        value = int(code, 16)
        pos = start + 6
        if 0xD800 <= value < 0xDC00 and text.startswith("\\u", pos):
            low_code = text[pos + 2 : pos + 6]
            if _is_hex4(low_code) and 0xDC00 <= int(low_code, 16) < 0xE000:
                value = 0x10000 + ((value - 0xD800) << 10) + (int(low_code, 16) - 0xDC00)
                pos += 6
        if 0xD800 <= value < 0xE000:
            value = 0xFFFD
        out.append(chr(value))
    return "".join(out)


def escape_record_url(url: str) -> str:
    """Percent-escape the last path segment of url, spaces as %20."""
    if "/" not in url:
        return url
    segment = url.rsplit("/", 1)[1]
    if segment:
        url = url.replace(segment, quote_plus(segment, safe=""))
    return url.replace("+", "%20")


def record_filename(first: int, second: int, third: int, url: str) -> str:
    """Cache file name of a quote: the three indices and the url's extension."""
    last = url.rsplit("/", 1)[-1]
    dot = last.rfind(".")
    ext = last[dot:] if dot >= 0 else ""
    return f"{first}-{second}-{third}{ext}"


class VtbDB:
    """The quote catalogue."""

    def __init__(self, path):
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "VtbDB":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # reading ------------------------------------------------------------

    def _first_uid(self, first_index: int) -> str:
        row = self._conn.execute(
            "SELECT first_category_uid FROM first_category WHERE first_category_index = ? "
            "ORDER BY id LIMIT 1",
            (first_index,),
        ).fetchone()
        return row[0] if row else ""

    def first_category_menu(self) -> str:
        """The numbered list of all vtubers."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT first_category_index, first_category_name FROM first_category ORDER BY id"
            ).fetchall()
        return FIRST_MENU_HEADER + "".join(f"{index}. {name}\n" for index, name in rows)

    def second_category_menu(self, first_index: int) -> str:
        """The numbered quote groups of one vtuber, or "" when there are none."""
        with self._lock:
            uid = self._first_uid(first_index)
            rows = self._conn.execute(
                "SELECT second_category_index, second_category_name FROM second_category "
                "WHERE first_category_uid = ? ORDER BY id",
                (uid,),
            ).fetchall()
        if not rows:
            return ""
        return SECOND_MENU_HEADER + "".join(f"{index}. {name}\n" for index, name in rows)

    def third_category_menu(self, first_index: int, second_index: int) -> str:
        """The numbered quotes of one group, or "" when there are none."""
        with self._lock:
            uid = self._first_uid(first_index)
            rows = self._conn.execute(
                "SELECT third_category_index, third_category_name FROM third_category "
                "WHERE first_category_uid = ? AND second_category_index = ? ORDER BY id",
                (uid, second_index),
            ).fetchall()
        if not rows:
            return ""
        return THIRD_MENU_HEADER + "".join(f"{index}. {name}\n" for index, name in rows)

    def third_category(
        self, first_index: int, second_index: int, third_index: int
    ) -> Optional[ThirdCategory]:
        """The quote at the three indices, or None."""
        with self._lock:
            uid = self._first_uid(first_index)
            row = self._conn.execute(
                f"SELECT {_THIRD_COLUMNS} FROM third_category WHERE first_category_uid = ? "
                "AND second_category_index = ? AND third_category_index = ? ORDER BY id LIMIT 1",
                (uid, second_index, third_index),
            ).fetchone()
        return ThirdCategory(*row) if row else None

    def random_vtb(self, rng: _Rng) -> Optional[ThirdCategory]:
        """A random quote, or None when the catalogue is empty."""
        with self._lock:
            (count,) = self._conn.execute("SELECT COUNT(*) FROM third_category").fetchone()
            if count == 0:
                return None
            row = self._conn.execute(
                f"SELECT {_THIRD_COLUMNS} FROM third_category ORDER BY id LIMIT 1 OFFSET ?",
                (rng.randrange(count),),
            ).fetchone()
        return ThirdCategory(*row) if row else None

    def first_category_by_uid(self, uid: str) -> Optional[FirstCategory]:
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_FIRST_COLUMNS} FROM first_category WHERE first_category_uid = ? "
                "ORDER BY id LIMIT 1",
                (uid,),
            ).fetchone()
        return FirstCategory(*row) if row else None

    # updating -----------------------------------------------------------

    def update_vtb_list(self, fetch: Optional[Fetch] = None) -> list[str]:
        """Refresh the vtuber list; returns their uids in list order."""
        fetch = fetch or _http_get
        items = _as_list(json.loads(decode_escaped_unicode(fetch(VTB_LIST_URL))))
        uids = []
        with self._lock, self._conn:
            for index, item in enumerate(items):
                uid = _text(_dig(item, "uid"))
                values = (
                    index,
                    _text(_dig(item, "name")),
                    _text(_dig(item, "description")),
                    _text(_dig(item, "icon_path")),
                )
                exists = self._conn.execute(
                    "SELECT 1 FROM first_category WHERE first_category_uid = ?", (uid,)
                ).fetchone()
                if exists:
                    self._conn.execute(
                        "UPDATE first_category SET first_category_index = ?, "
                        "first_category_name = ?, first_category_description = ?, "
                        "first_category_icon_path = ? WHERE first_category_uid = ?",
                        (*values, uid),
                    )
                else:
                    self._conn.execute(
                        "INSERT INTO first_category (first_category_index, first_category_name, "
                        "first_category_description, first_category_icon_path, "
                        "first_category_uid) VALUES (?, ?, ?, ?, ?)",
                        (*values, uid),
                    )
                uids.append(uid)
        return uids

    def store_vtb(self, uid: str, fetch: Optional[Fetch] = None) -> None:
        """Refresh the quote groups and quotes of one vtuber."""
        fetch = fetch or _http_get
        page = json.loads(decode_escaped_unicode(fetch(VTB_PAGE_URL + uid)))
        with self._lock, self._conn:
            for second_index, group in enumerate(_as_list(_dig(page, "data", "voices"))):
                self._store_group(uid, second_index, group)

    def _store_group(self, uid: str, second_index: int, group: Any) -> None:
        values = (
            _text(_dig(group, "categoryName")),
            _text(_dig(group, "author")),
            _text(_dig(group, "categoryDescription", "zh-CN")),
        )
        key = (uid, second_index)
        exists = self._conn.execute(
            "SELECT 1 FROM second_category WHERE first_category_uid = ? "
            "AND second_category_index = ?",
            key,
        ).fetchone()
        if exists:
            self._conn.execute(
                "UPDATE second_category SET second_category_name = ?, second_category_author = ?, "
                "second_category_description = ? WHERE first_category_uid = ? "
                "AND second_category_index = ?",
                (*values, *key),
            )
        else:
            self._conn.execute(
                "INSERT INTO second_category (second_category_name, second_category_author, "
                "second_category_description, first_category_uid, second_category_index) "
                "VALUES (?, ?, ?, ?, ?)",
                (*values, *key),
            )
        for third_index, voice in enumerate(_as_list(_dig(group, "voiceList"))):
            voice_values = (
                _text(_dig(voice, "name")),
                _text(_dig(voice, "description", "zh-CN")),
                _text(_dig(voice, "path")),
                _text(_dig(voice, "author")),
            )
            voice_key = (uid, second_index, third_index)
            exists = self._conn.execute(
                "SELECT 1 FROM third_category WHERE first_category_uid = ? "
                "AND second_category_index = ? AND third_category_index = ?",
                voice_key,
            ).fetchone()
            if exists:
                self._conn.execute(
                    "UPDATE third_category SET third_category_name = ?, "
                    "third_category_description = ?, third_category_path = ?, "
                    "third_category_author = ? WHERE first_category_uid = ? "
                    "AND second_category_index = ? AND third_category_index = ?",
                    (*voice_values, *voice_key),
                )
            else:
                self._conn.execute(
                    "INSERT INTO third_category (third_category_name, third_category_description, "
                    "third_category_path, third_category_author, first_category_uid, "
                    "second_category_index, third_category_index) VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (*voice_values, *voice_key),
                )