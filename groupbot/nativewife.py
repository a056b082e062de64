"""Group galleries of local wives, with one draw per person per day."""

from __future__ import annotations

import hashlib
import random
from dataclasses import dataclass
from datetime import date
from pathlib import Path

NO_NAME = "没有找到wife的名字！"
EMPTY = "一个wife也没有哦~"
_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    sign = "-" if number < 0 else ""
    number = abs(number)
    digits = []
    while number:
        number, rest = divmod(number, 36)
        digits.append(_DIGITS[rest])
    return sign + "".join(reversed(digits))


def parse_wife_name(text: str, prefix: str) -> str:
    """The name after the last prefix, without spaces or path separators."""
    compact = text.replace(" ", "")
    position = compact.rfind(prefix)
    if position < 0:
        return ""
    name = compact[position + len(prefix) :]
    return name.replace("/", "").replace("\\", "")


def daily_index(name: str, today: date, count: int) -> int:
    """A pick in range(count) that stays the same for name all day."""
    if count <= 0:
        raise ValueError("count must be positive")
    digest = hashlib.md5(f"{name}{today.year}{today.month}{today.day}".encode()).digest()
    seed = int.from_bytes(digest[:8], "little")
    return random.Random(seed).randrange(count)


@dataclass(frozen=True)
class WifePick:
    """The drawn wife, her picture and the reply text."""

    name: str
    path: Path
    message: str


class WifeGallery:
    """Pictures kept in one folder per group under base."""

    def __init__(self, base):
        self.base = Path(base)

    def _folder(self, gid: int) -> Path:
        return self.base / _base36(gid)

    def names(self, gid: int) -> list[str]:
        folder = self._folder(gid)
        if not folder.is_dir():
            return []
        return sorted(entry.name for entry in folder.iterdir())

    def pick(self, gid: int, nickname: str, today: date) -> WifePick:
        """Draw nickname's wife for today; LookupError when the gallery is empty."""
        names = self.names(gid)
        if not names:
            raise LookupError(EMPTY)
        if len(names) == 1:
            name = names[0]
            message = f"大家的wife都是{name}"
        else:
            name = names[daily_index(nickname, today, len(names))]
            message = f"{nickname}的wife是{name}"
        return WifePick(name, self._folder(gid) / name, message)

    @staticmethod
    def _check(name: str) -> None:
        if not name or "/" in name or "\\" in name:
            raise ValueError(NO_NAME)

    def add(self, gid: int, name: str, data: bytes) -> Path:
        """Store a picture under name and return its path."""
        self._check(name)
        folder = self._folder(gid)
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / name
        path.write_bytes(data)
        return path

    def remove(self, gid: int, name: str) -> None:
        """Delete a picture; FileNotFoundError when it does not exist."""
        self._check(name)
        (self._folder(gid) / name).unlink()