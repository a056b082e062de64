"""Reincarnation simulator: a random birthplace and sex, weighted by real rates."""

from __future__ import annotations

import json
import random
from typing import Optional, Sequence, Union

GENDERS = (("男孩子", 50707), ("女孩子", 48292), ("雌雄同体", 1001))
FAILURE = "投胎失败！\n您没能活到出生，祝您下次好运！"


def load_rates(data: Union[str, bytes]) -> list[tuple[str, float]]:
    """Parse a JSON list of {"name", "weight"} objects."""
    return [(item["name"], float(item["weight"])) for item in json.loads(data)]


class _Chooser:
    def __init__(self, choices: Sequence[tuple[str, int]]):
        pairs = [(item, weight) for item, weight in choices if weight > 0]
        if not pairs:
            raise ValueError("no choice has a positive weight")
        self.items = [item for item, _ in pairs]
        self.weights = [weight for _, weight in pairs]

    def pick(self, rng: random.Random) -> str:
        return rng.choices(self.items, weights=self.weights)[0]


class Reborner:
    """Draws birthplaces from areas, given as (name, rate) pairs."""

    def __init__(self, areas: Sequence[tuple[str, float]], rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._areas = _Chooser([(name, int(weight * 1e9)) for name, weight in areas])
        self._genders = _Chooser(GENDERS)

    def country(self) -> str:
        return self._areas.pick(self._rng)

    def gender(self) -> str:
        return self._genders.pick(self._rng)

    def reborn(self) -> str:
        """The reply text; about one try in sixteen dies before birth."""
        if self._rng.getrandbits(31) > 1 << 27:
            return f"投胎成功！\n您出生在 {self.country()}, 是 {self.gender()}。"
        return FAILURE