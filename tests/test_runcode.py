from groupbot.runcode import ELLIPSIS, cut_too_long


def test_short_text_unchanged():
    assert cut_too_long("hello\nworld") == "hello\nworld"


def test_thirty_lines_unchanged():
    text = "x\n" * 30
    assert cut_too_long(text) == text


def test_crlf_counts_once():
    text = "y\r\n" * 30 + "end"
    assert cut_too_long(text) == text


def test_too_many_lines_cut():
    text = "x\n" * 40
    result = cut_too_long(text)
    assert result.endswith(ELLIPSIS)
    kept = result[: -len(ELLIPSIS)]
    assert text.startswith(kept)
    assert kept.count("\n") <= 30


def test_too_many_chars_cut():
    result = cut_too_long("x" * 2000)
    assert result == "x" * 1000 + ELLIPSIS


def test_exactly_limit_chars_unchanged():
    text = "z" * 1001
    assert cut_too_long(text) == text