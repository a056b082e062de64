"""Tarot cards: single draws, multi-card draws and spreads."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, Sequence, TypeVar, Union

T = TypeVar("T")

BED = "https://gitcode.net/shudorcl/zbp-tarot/-/raw/master/"
REVERSE_DIR = "Reverse/"
POSITIONS = ("『正位』", "『逆位』")
REASONS = ("您抽到的是~\n", "锵锵锵，塔罗牌的预言是~\n", "诶，让我看看您抽到了~\n")
MAX_DRAW = 20
MAJOR_COUNT = 22
MINOR_COUNT = 55
ALL_COUNT = 77
MINOR_LIST_TEXT = "[圣杯|星币|宝剑|权杖] [0-10|侍从|骑士|王后|国王]"


class Rng(Protocol):
    def randrange(self, stop: int) -> int: ...

    def choice(self, seq: Sequence[T]) -> T: ...


@dataclass(frozen=True)
class Card:
    """One tarot card with its upright and reversed meanings."""

    name: str
    description: str = ""
    reverse_description: str = ""
    img_url: str = ""

    @property
    def image_url(self) -> str:
        return BED + self.img_url

    @property
    def meaning(self) -> str:
        return (
            f"{self.name}的含义是~\n『正位』:{self.description}"
            f"\n『逆位』:{self.reverse_description}"
        )


@dataclass(frozen=True)
class Formation:
    """A spread: how many cards it lays and what each position stands for."""

    cards_num: int
    is_cut: bool = False
    represent: tuple[tuple[str, ...], ...] = ()

    def label(self, position: int) -> str:
        if self.represent and position < len(self.represent[0]):
            return self.represent[0][position]
        return ""


@dataclass(frozen=True)
class DrawnCard:
    """A card as it was drawn: upright or reversed, with its announcement."""

    card: Card
    reversed: bool
    reason: str = ""
    represent: str = ""

    @property
    def position(self) -> str:
        return POSITIONS[1 if self.reversed else 0]

    @property
    def description(self) -> str:
        return self.card.reverse_description if self.reversed else self.card.description

    @property
    def image_url(self) -> str:
        return BED + (REVERSE_DIR if self.reversed else "") + self.card.img_url

    @property
    def image_name(self) -> str:
        return ("Reverse" if self.reversed else "") + self.card.name

    @property
    def text(self) -> str:
        return f"{self.reason}{self.position}的『{self.card.name}』\n其释义为: {self.description}"

    @property
    def spread_text(self) -> str:
        return (
            f"{self.represent}:{self.position}的『{self.card.name}』\n"
            f"其释义为: \n{self.description}\n"
        )


def parse_draw_count(text: str) -> int:
    """The number in a count such as "3张"; an empty count means one card."""
    if not text:
        return 1
    digits = text[:-1] if text.endswith("张") else text
    if not digits.isdigit():
        raise ValueError(f"invalid card count: {text!r}")
    return int(digits)


def _card_range(card_type: str, allow_mixed: bool) -> tuple[int, int]:
    if "小" in card_type:
        return MAJOR_COUNT, MINOR_COUNT
    if allow_mixed and card_type == "混合":
        return 0, ALL_COUNT
    return 0, MAJOR_COUNT


def _distinct_indices(rng: Rng, length: int, count: int):
    seen: set[int] = set()
    for _ in range(count):
        index = rng.randrange(length)
        while index in seen:
            index = rng.randrange(length)
        seen.add(index)
        yield index


class Deck:
    """The full deck and the known spreads."""

    def __init__(self, cards: Mapping[str, Card], formations: Mapping[str, Formation]):
        self.cards = dict(cards)
        self.formations = dict(formations)
        self._by_name = {card.name: card for card in self.cards.values()}

    @classmethod
    def from_json(
        cls, cards_json: Union[str, bytes], formations_json: Union[str, bytes]
    ) -> "Deck":
        cards = {}
        for key, item in json.loads(cards_json).items():
            info = item.get("info") or {}
            cards[key] = Card(
                name=item.get("name", ""),
                description=info.get("description", ""),
                reverse_description=info.get("reverseDescription", ""),
                img_url=info.get("imgUrl", ""),
            )
        formations = {
            name: Formation(
                cards_num=int(value.get("cards_num", 0)),
                is_cut=bool(value.get("is_cut", False)),
                represent=tuple(tuple(row) for row in value.get("represent") or ()),
            )
            for name, value in json.loads(formations_json).items()
        }
        return cls(cards, formations)

    def _card(self, index: int) -> Card:
        return self.cards.get(str(index), Card(""))

    def lookup(self, name: str) -> Optional[Card]:
        """The card called name, or None."""
        return self._by_name.get(name)

    def draw(self, n: int, card_type: str, rng: Rng) -> list[DrawnCard]:
        """Draw n distinct cards of the major or minor arcana."""
        if n <= 0:
            raise ValueError("张数必须为正")
        if n > MAX_DRAW:
            raise ValueError("抽取张数过多")
        start, length = _card_range(card_type, allow_mixed=False)
        drawn = []
        for index in _distinct_indices(rng, length, n):
            is_reversed = rng.randrange(2) == 1
            drawn.append(DrawnCard(self._card(index + start), is_reversed, rng.choice(REASONS)))
        return drawn

    def spread(self, card_type: str, name: str, rng: Rng) -> list[DrawnCard]:
        """Lay out the spread called name; LookupError lists the known spreads."""
        formation = self.formations.get(name)
        if formation is None:
            raise LookupError(
                f"没有找到{name}噢~\n现有牌阵列表: \n" + "\n".join(self.formations)
            )
        start, length = _card_range(card_type, allow_mixed=True)
        if formation.cards_num > length:
            raise ValueError("牌阵所需张数超过可用牌数")
        drawn = []
        for position, index in enumerate(_distinct_indices(rng, length, formation.cards_num)):
            is_reversed = rng.randrange(2) == 1
            drawn.append(
                DrawnCard(self._card(index + start), is_reversed, represent=formation.label(position))
            )
        return drawn

    def card_list_text(self) -> str:
        """The list of card names shown when a lookup finds nothing."""
        major = [self._card(index).name for index in range(MAJOR_COUNT)]
        return (
            "塔罗牌列表\n大阿尔卡纳:\n"
            + " ".join(major[:7])
            + "\n"
            + " ".join(major[7:14])
            + "\n"
            + " ".join(major[14:22])
            + "\n小阿尔卡纳:\n"
            + MINOR_LIST_TEXT
        )