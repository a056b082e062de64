"""Japanese grammar points looked up by tag or keyword."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import dataclass
from typing import Optional

_SCHEMA = """
CREATE TABLE IF NOT EXISTS grammar (
    id INTEGER PRIMARY KEY,
    tag TEXT NOT NULL DEFAULT '',
    name TEXT NOT NULL DEFAULT '',
    pronunciation TEXT NOT NULL DEFAULT '',
    usage TEXT NOT NULL DEFAULT '',
    meaning TEXT NOT NULL DEFAULT '',
    explanation TEXT NOT NULL DEFAULT '',
    example TEXT NOT NULL DEFAULT '',
    grammar_url TEXT NOT NULL DEFAULT ''
);
"""

_COLUMNS = "id, tag, name, pronunciation, usage, meaning, explanation, example, grammar_url"


@dataclass(frozen=True)
class Grammar:
    """One grammar point."""

    id: int
    tag: str = ""
    name: str = ""
    pronunciation: str = ""
    usage: str = ""
    meaning: str = ""
    explanation: str = ""
    example: str = ""
    grammar_url: str = ""

    def describe(self) -> str:
        """The card text shown to users."""
        return (
            f"ID:\n{self.id}\n\n标签:\n{self.tag}\n\n语法名:\n{self.name}\n\n"
            f"发音:\n{self.pronunciation}\n\n用法:\n{self.usage}\n\n意思:\n{self.meaning}\n\n"
            f"解说:\n{self.explanation}\n\n示例:\n{self.example}"
        )


class GrammarDB:
    """The grammar table of an SQLite file."""

    def __init__(self, path):
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "GrammarDB":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _random(self, where: str, params: tuple) -> Optional[Grammar]:
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_COLUMNS} FROM grammar WHERE {where} ORDER BY RANDOM() LIMIT 1", params
            ).fetchone()
        return Grammar(*row) if row else None

    def random_by_tag(self, tag: str) -> Optional[Grammar]:
        """A random grammar point whose tag contains tag, or None."""
        return self._random("tag LIKE ?", (f"%{tag}%",))

    def random_by_keyword(self, keyword: str) -> Optional[Grammar]:
        """A random grammar point whose name or reading contains keyword, or None."""
        pattern = f"%{keyword}%"
        return self._random("(name LIKE ? OR pronunciation LIKE ?)", (pattern, pattern))