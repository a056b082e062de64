import sqlite3

import pytest

from groupbot.grammar import Grammar, GrammarDB


@pytest.fixture
def db(tmp_path):
    path = tmp_path / "nihongo.db"
    grammar_db = GrammarDB(path)
    with sqlite3.connect(path) as conn:
        conn.executemany(
            "INSERT INTO grammar (id, tag, name, pronunciation, usage, meaning, explanation, "
            "example, grammar_url) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            [
                (1, "N3", "ばかり", "ばかり", "u1", "m1", "e1", "x1", ""),
                (2, "N2 N3", "わけ", "わけ", "u2", "m2", "e2", "x2", ""),
                (3, "N1", "ものの", "ものの", "u3", "m3", "e3", "x3", ""),
            ],
        )
    yield grammar_db
    grammar_db.close()


def test_describe_format():
    card = Grammar(7, "N5", "です", "desu", "u", "m", "e", "x").describe()
    assert card.startswith("ID:\n7\n\n标签:\nN5\n\n语法名:\nです")
    assert card.endswith("解说:\ne\n\n示例:\nx")


def test_random_by_tag_matches_substring(db):
    found = {db.random_by_tag("N3").id for _ in range(30)}
    assert found <= {1, 2}
    assert db.random_by_tag("N1").name == "ものの"


def test_random_by_tag_missing(db):
    assert db.random_by_tag("N5") is None


def test_random_by_keyword(db):
    result = db.random_by_keyword("わけ")
    assert result.id == 2
    assert result.meaning == "m2"
    assert db.random_by_keyword("ない") is None


def test_empty_database(tmp_path):
    with GrammarDB(tmp_path / "empty.db") as empty:
        assert empty.random_by_tag("") is None