from datetime import datetime, timedelta

import pytest

from groupbot.qzone import LOVE_TAG, PAGE_SIZE, Emotion, EmotionStatus, QzoneDB, anonymized

BASE = datetime(2023, 1, 2, 3, 4, 5)


@pytest.fixture
def db(tmp_path):
    with QzoneDB(tmp_path / "qzone.db") as database:
        yield database


def test_cookie_insert_and_update(db):
    db.insert_or_update(10001, "token")
    assert db.get_by_uin(10001) == "token"
    db.insert_or_update(10001, "secret")
    assert db.get_by_uin(10001) == "secret"


def test_empty_cookie_keeps_existing(db):
    db.insert_or_update(10001, "token")
    db.insert_or_update(10001, "")
    assert db.get_by_uin(10001) == "token"


def test_missing_account_raises(db):
    with pytest.raises(KeyError):
        db.get_by_uin(424242)


def test_save_and_load_round_trip(db):
    post = Emotion(qq=555, msg="hello", anonymous=True, created_at=BASE)
    ident = db.save_emotion(post)
    (loaded,) = db.emotions_by_ids([ident])
    assert loaded.msg == "hello"
    assert loaded.anonymous is True
    assert loaded.status == EmotionStatus.WAIT
    assert loaded.tag == LOVE_TAG
    assert loaded.created_at == BASE
    assert loaded.id == ident


def test_ids_are_distinct(db):
    first = db.save_emotion(Emotion(qq=1, msg="a"))
    second = db.save_emotion(Emotion(qq=2, msg="b"))
    assert first != second
    assert [e.qq for e in db.emotions_by_ids([second, first])] == [1, 2]


def test_brief_format():
    post = Emotion(qq=555, msg="m", status=EmotionStatus.AGREE, id=7, created_at=BASE)
    assert post.brief() == "序号: 7\nQQ: 555\n创建时间: 2023-01-02 03:04:05\n状态: 同意\n匿名: 否"


def test_brief_anonymous_waiting():
    post = Emotion(qq=1, msg="m", anonymous=True, id=1, created_at=BASE)
    assert post.brief().endswith("状态: 审核中\n匿名: 是")


def test_paging_newest_first(db):
    for offset in range(7):
        db.save_emotion(Emotion(qq=offset, msg=str(offset), created_at=BASE + timedelta(minutes=offset)))
    first_page = db.love_emotions_by_status(0, 0)
    second_page = db.love_emotions_by_status(0, 1)
    assert len(first_page) == PAGE_SIZE
    assert [e.qq for e in first_page] == [6, 5, 4, 3, 2]
    assert [e.qq for e in second_page] == [1, 0]


def test_filter_by_status_and_update(db):
    ids = [db.save_emotion(Emotion(qq=n, msg="x", created_at=BASE + timedelta(seconds=n))) for n in range(3)]
    db.update_status(ids[:2], EmotionStatus.AGREE)
    agreed = db.love_emotions_by_status(EmotionStatus.AGREE, 0)
    waiting = db.love_emotions_by_status(EmotionStatus.WAIT, 0)
    assert sorted(e.id for e in agreed) == sorted(ids[:2])
    assert [e.id for e in waiting] == [ids[2]]


def test_other_tags_are_not_on_wall(db):
    db.save_emotion(Emotion(qq=1, msg="x", tag="other"))
    assert db.love_emotions_by_status(0, 0) == []


def test_anonymized_hides_author():
    post = Emotion(qq=99, msg="x", anonymous=True)
    assert anonymized(post).qq == 0
    assert anonymized(Emotion(qq=99, msg="x")).qq == 99