"""Dictionary-matched replies with per-group dictionary and probability settings."""

from __future__ import annotations

import json
from enum import IntEnum
from typing import Mapping, Optional, Protocol, Sequence, TypeVar, Union

import yaml

T = TypeVar("T")

_KIND_MASK = 3
_PROBABILITY_SHIFT = 59


class Rng(Protocol):
    def choice(self, seq: Sequence[T]) -> T: ...


class DictionaryKind(IntEnum):
    """Which dictionary a group replies from."""

    KIMO = 0
    DERE = 1
    KAWA = 2


def set_dictionary_kind(data: int, kind: int) -> int:
    """The settings word with its dictionary bits set to kind."""
    return (data & ~_KIND_MASK) | int(kind)


def set_probability(data: int, digit: Union[int, str]) -> int:
    """The settings word with the trigger probability set to 0.digit (1 to 8)."""
    value = int(digit)
    if value <= 0 or value >= 9:
        raise ValueError("概率越界")
    return (data & _KIND_MASK) | ((value - 1) << _PROBABILITY_SHIFT)


def can_match(data: int, kind: int, roll: int) -> bool:
    """Whether the dictionary kind answers, given a roll between 0 and 9."""
    return data & _KIND_MASK == int(kind) and roll <= data >> _PROBABILITY_SHIFT


def _as_book(raw: Optional[Mapping]) -> dict[str, list[str]]:
    if not raw:
        return {}
    return {str(key): [str(item) for item in values or ()] for key, values in raw.items()}


class ReplyBook:
    """The three reply dictionaries, keyed by trigger phrase."""

    def __init__(self, books: Mapping[DictionaryKind, Mapping[str, list[str]]]):
        self._books = {DictionaryKind(kind): dict(book) for kind, book in books.items()}

    @classmethod
    def from_sources(
        cls, kimo_json: Union[str, bytes], simai_yaml: Union[str, bytes]
    ) -> "ReplyBook":
        simai = yaml.safe_load(simai_yaml) or {}
        return cls(
            {
                DictionaryKind.KIMO: _as_book(json.loads(kimo_json)),
                DictionaryKind.DERE: _as_book(simai.get("傲娇")),
                DictionaryKind.KAWA: _as_book(simai.get("可爱")),
            }
        )

    def keys(self, kind: int) -> list[str]:
        return list(self._books.get(DictionaryKind(kind), {}))

    def reply(self, kind: int, key: str, name: str, nick: str, rng: Rng) -> list[str]:
        """The reply to key, split into the messages to send one after another."""
        text = rng.choice(self._books[DictionaryKind(kind)][key])
        text = text.replace("{name}", name).replace("{me}", nick)
        return text.split("{segment}")