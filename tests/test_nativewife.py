from datetime import date

import pytest

from groupbot.nativewife import EMPTY, NO_NAME, WifeGallery, daily_index, parse_wife_name


def test_parse_name_strips_spaces_and_separators():
    assert parse_wife_name("添加wife 小 /明\\", "添加wife") == "小明"


def test_parse_name_uses_last_prefix():
    assert parse_wife_name("删除wife删除wifeabc", "删除wife") == "abc"


def test_parse_name_missing_prefix():
    assert parse_wife_name("hello", "添加wife") == ""


def test_daily_index_stable_and_in_range():
    day = date(2023, 1, 5)
    first = daily_index("alice", day, 7)
    assert 0 <= first < 7
    assert daily_index("alice", day, 7) == first


def test_daily_index_rejects_zero():
    with pytest.raises(ValueError):
        daily_index("alice", date(2023, 1, 5), 0)


def test_empty_gallery(tmp_path):
    gallery = WifeGallery(tmp_path)
    assert gallery.names(1) == []
    with pytest.raises(LookupError, match=EMPTY):
        gallery.pick(1, "bob", date(2023, 1, 1))


def test_single_wife_is_everyones(tmp_path):
    gallery = WifeGallery(tmp_path)
    path = gallery.add(36, "amy", b"img")
    assert path.read_bytes() == b"img"
    assert path.parent.name == "10"
    pick = gallery.pick(36, "bob", date(2023, 1, 1))
    assert pick.name == "amy"
    assert pick.message == "大家的wife都是amy"


def test_pick_among_many(tmp_path):
    gallery = WifeGallery(tmp_path)
    for name in ("a", "b", "c"):
        gallery.add(5, name, b"x")
    assert gallery.names(5) == ["a", "b", "c"]
    pick = gallery.pick(5, "bob", date(2023, 2, 3))
    assert pick.name in {"a", "b", "c"}
    assert pick.message == f"bob的wife是{pick.name}"
    assert pick == gallery.pick(5, "bob", date(2023, 2, 3))


def test_remove(tmp_path):
    gallery = WifeGallery(tmp_path)
    gallery.add(5, "a", b"x")
    gallery.remove(5, "a")
    assert gallery.names(5) == []
    with pytest.raises(FileNotFoundError):
        gallery.remove(5, "a")


def test_add_rejects_empty_name(tmp_path):
    with pytest.raises(ValueError, match=NO_NAME):
        WifeGallery(tmp_path).add(5, "", b"x")