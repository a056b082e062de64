import random

import pytest

from groupbot.reborn import FAILURE, GENDERS, Reborner, load_rates


class _FixedBits(random.Random):
    def __init__(self, bits):
        super().__init__(1)
        self._bits = bits

    def getrandbits(self, k):
        return self._bits


def test_load_rates():
    data = '[{"name": "甲国", "weight": 0.25}, {"name": "乙国", "weight": 0.75}]'
    assert load_rates(data) == [("甲国", 0.25), ("乙国", 0.75)]


def test_single_area_always_chosen():
    reborner = Reborner([("Only", 1.0)], random.Random(3))
    assert {reborner.country() for _ in range(20)} == {"Only"}


def test_zero_weight_area_never_chosen():
    reborner = Reborner([("Never", 0.0), ("Always", 0.5)], random.Random(4))
    assert {reborner.country() for _ in range(50)} == {"Always"}


def test_no_positive_weights_rejected():
    with pytest.raises(ValueError):
        Reborner([("Never", 0.0)])


def test_gender_from_fixed_set():
    reborner = Reborner([("A", 1.0)], random.Random(5))
    names = {name for name, _ in GENDERS}
    assert {reborner.gender() for _ in range(100)} <= names


def test_failure_on_low_roll():
    assert Reborner([("A", 1.0)], _FixedBits(0)).reborn() == FAILURE


def test_success_on_high_roll():
    text = Reborner([("Atlantis", 1.0)], _FixedBits(1 << 30)).reborn()
    assert text.startswith("投胎成功！\n您出生在 Atlantis, 是 ")
    assert any(name in text for name, _ in GENDERS)