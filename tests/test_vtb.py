import json
import random

import pytest

from groupbot.vtb import (
    FIRST_MENU_HEADER,
    SECOND_MENU_HEADER,
    THIRD_MENU_HEADER,
    VTB_LIST_URL,
    VTB_PAGE_URL,
    VtbDB,
    decode_escaped_unicode,
    escape_record_url,
    record_filename,
)

VOICE_PATH = "https://example.com/voices/hi there.mp3"


def _fetcher(pages):
    def fetch(url):
        return pages[url]

    return fetch


def _list_page(*entries):
    return json.dumps([{"name": name, "uid": uid, "description": "d"} for name, uid in entries])


def _vtb_page():
    return json.dumps(
        {
            "data": {
                "voices": [
                    {
                        "categoryName": "Greet",
                        "author": "a",
                        "categoryDescription": {"zh-CN": "greetings"},
                        "voiceList": [
                            {
                                "name": "hi",
                                "path": VOICE_PATH,
                                "author": "x",
                                "description": {"zh-CN": "y"},
                            }
                        ],
                    }
                ]
            }
        }
    )


@pytest.fixture
def db(tmp_path):
    with VtbDB(tmp_path / "vtb.db") as database:
        yield database


@pytest.fixture
def filled(db):
    pages = {VTB_LIST_URL: _list_page(("Alpha", "u1"), ("Beta", "u2")), VTB_PAGE_URL + "u1": _vtb_page()}
    db.update_vtb_list(_fetcher(pages))
    db.store_vtb("u1", _fetcher(pages))
    return db


def test_update_list_returns_uids_and_menu(db):
    uids = db.update_vtb_list(_fetcher({VTB_LIST_URL: _list_page(("Alpha", "u1"), ("Beta", "u2"))}))
    assert uids == ["u1", "u2"]
    assert db.first_category_menu() == FIRST_MENU_HEADER + "0. Alpha\n1. Beta\n"


def test_update_list_again_updates_indices_without_duplicates(db):
    db.update_vtb_list(_fetcher({VTB_LIST_URL: _list_page(("Alpha", "u1"), ("Beta", "u2"))}))
    db.update_vtb_list(_fetcher({VTB_LIST_URL: _list_page(("Beta", "u2"), ("Alpha", "u1"))}))
    assert db.first_category_menu() == FIRST_MENU_HEADER + "1. Alpha\n0. Beta\n"


def test_empty_menu_has_only_header(db):
    assert db.first_category_menu() == FIRST_MENU_HEADER


def test_second_and_third_menus(filled):
    assert filled.second_category_menu(0) == SECOND_MENU_HEADER + "0. Greet\n"
    assert filled.third_category_menu(0, 0) == THIRD_MENU_HEADER + "0. hi\n"


def test_menus_empty_when_missing(filled):
    assert filled.second_category_menu(1) == ""
    assert filled.second_category_menu(7) == ""
    assert filled.third_category_menu(0, 3) == ""


def test_third_category_lookup(filled):
    quote = filled.third_category(0, 0, 0)
    assert quote.path == VOICE_PATH
    assert quote.name == "hi"
    assert quote.first_uid == "u1"
    assert filled.third_category(0, 0, 5) is None


def test_store_twice_keeps_one_quote(filled):
    filled.store_vtb("u1", _fetcher({VTB_PAGE_URL + "u1": _vtb_page()}))
    assert filled.third_category_menu(0, 0) == THIRD_MENU_HEADER + "0. hi\n"


def test_random_vtb(filled, db):
    quote = filled.random_vtb(random.Random(1))
    assert quote == filled.third_category(0, 0, 0)


def test_random_vtb_empty(tmp_path):
    with VtbDB(tmp_path / "empty.db") as empty:
        assert empty.random_vtb(random.Random(1)) is None


def test_first_category_by_uid(filled):
    first = filled.first_category_by_uid("u2")
    assert first.name == "Beta"
    assert first.index == 1
    assert filled.first_category_by_uid("missing") is None


def test_decode_escaped_unicode():
    assert decode_escaped_unicode("\\u4f60\\u597d!") == "\u4f60\u597d!"
    assert decode_escaped_unicode("plain") == "plain"


def test_decode_surrogate_pair():
    assert decode_escaped_unicode("\\ud83d\\ude00") == json.loads('"\\ud83d\\ude00"')


def test_decode_invalid_escape_raises():
    with pytest.raises(ValueError):
        decode_escaped_unicode("bad \\uZZ")


def test_escaped_list_is_decoded(db):
    page = '[{"name": "\\u4f60", "uid": "u9"}]'
    db.update_vtb_list(_fetcher({VTB_LIST_URL: page}))
    assert db.first_category_by_uid("u9").name == "\u4f60"


def test_escape_record_url():
    assert escape_record_url("https://example.com/a/b c+d.mp3") == "https://example.com/a/b%20c%2Bd.mp3"
    assert escape_record_url("noslash") == "noslash"


def test_escape_keeps_plain_url():
    url = "https://example.com/a/plain.mp3"
    assert escape_record_url(url) == url


def test_record_filename():
    assert record_filename(1, 2, 3, "https://example.com/x/y.mp3") == "1-2-3.mp3"
    assert record_filename(1, 2, 3, "https://example.com/x.y/z") == "1-2-3"