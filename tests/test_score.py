import random
from datetime import datetime, timedelta

import pytest

from groupbot.score import (
    RANK_THRESHOLDS,
    SCOREMAX,
    ScoreDB,
    get_rank,
    hour_greeting,
    next_rank_score,
    sign_in,
)


@pytest.fixture
def db(tmp_path):
    database = ScoreDB(tmp_path / "score.db")
    yield database
    database.close()


def test_rank_at_thresholds():
    for rank, threshold in enumerate(RANK_THRESHOLDS):
        assert get_rank(threshold) == rank


def test_rank_between_thresholds():
    for rank, threshold in enumerate(RANK_THRESHOLDS[:-1]):
        assert get_rank(threshold + 1) == rank


def test_rank_above_max():
    assert get_rank(SCOREMAX + 1) == -1


def test_next_rank_score():
    for rank in range(len(RANK_THRESHOLDS) - 1):
        assert next_rank_score(rank) == RANK_THRESHOLDS[rank + 1]
    assert next_rank_score(len(RANK_THRESHOLDS) - 1) == SCOREMAX


@pytest.mark.parametrize(
    "hour,word",
    [(8, "早上好"), (12, "中午好"), (15, "下午好"), (20, "晚上好"), (3, "凌晨好")],
)
def test_hour_greeting(hour, word):
    assert hour_greeting(datetime(2023, 1, 1, hour)) == word


def test_score_defaults_and_round_trip(db):
    assert db.score_of(5) == 0
    db.set_score(5, 42)
    assert db.score_of(5) == 42


def test_top_scores_order_and_limit(db):
    for uid, score in [(1, 5), (2, 50), (3, 20)]:
        db.set_score(uid, score)
    top = db.top_scores(2)
    assert top == [(2, 50), (3, 20)]


def test_sign_in_record_round_trip(db):
    assert db.sign_in_of(9) == (0, None)
    moment = datetime(2023, 5, 6, 7, 8, 9)
    db.set_sign_in_count(9, 3, moment)
    assert db.sign_in_of(9) == (3, moment)


def test_first_sign_in(db):
    wallet = {}
    now = datetime(2023, 1, 2, 9)
    result = sign_in(db, 1, now, wallet, random.Random(1))
    assert not result.already_signed
    assert result.level == 1
    assert 1 <= result.added <= 10
    assert wallet[1] == result.added == result.balance
    assert result.greeting == "早上好"
    assert result.date_word == "01/02"


def test_second_sign_in_same_day_refused(db):
    wallet = {}
    now = datetime(2023, 1, 2, 9)
    sign_in(db, 1, now, wallet, random.Random(1))
    before = dict(wallet)
    again = sign_in(db, 1, now + timedelta(hours=2), wallet, random.Random(2))
    assert again.already_signed
    assert wallet == before
    assert db.score_of(1) == 1


def test_sign_in_next_day(db):
    wallet = {}
    now = datetime(2023, 1, 2, 9)
    sign_in(db, 1, now, wallet, random.Random(1))
    result = sign_in(db, 1, now + timedelta(days=1), wallet, random.Random(2))
    assert not result.already_signed
    assert result.level == 2
    assert db.score_of(1) == result.level


def test_sign_in_caps_level(db):
    db.set_score(1, SCOREMAX)
    wallet = {1: 100}
    result = sign_in(db, 1, datetime(2023, 1, 2, 9), wallet, random.Random(3))
    assert result.reached_max
    assert result.level == SCOREMAX
    assert result.rank == len(RANK_THRESHOLDS) - 1
    assert wallet[1] == 100 + result.added