from groupbot.nsfw import Classification, auto_judge, judge


def test_neutral_picture_is_ordinary():
    assert judge(Classification(neutral=0.9, porn=0.9)) == "普通哦"


def test_drawing_with_hentai():
    result = judge(Classification(drawings=0.8, hentai=0.6, neutral=0.1))
    assert result.startswith("二次元")
    assert result.endswith(" hentai")
    assert "porn" not in result


def test_low_neutral_counts_as_drawing():
    result = judge(Classification(drawings=0.0, neutral=0.1, porn=0.7))
    assert result.startswith("二次元")
    assert "porn" in result


def test_exact_threshold_neutral_is_photo():
    result = judge(Classification(drawings=0.1, neutral=0.3, sexy=0.6))
    assert result.startswith("三次元")
    assert result.endswith("hso")


def test_judge_without_labels_gives_kind_only():
    assert judge(Classification(drawings=0.5, neutral=0.2)) == "二次元"


def test_auto_judge_skips_neutral():
    assert auto_judge(Classification(neutral=0.5, porn=0.9)) is None


def test_auto_judge_skips_when_no_label():
    assert auto_judge(Classification(drawings=0.9, neutral=0.1)) is None


def test_auto_judge_reports_photo_labels_in_order():
    result = auto_judge(Classification(drawings=0.1, neutral=0.1, hentai=0.5, porn=0.5, sexy=0.5))
    assert result is not None
    assert result.startswith("三次元")
    assert result.index("hentai") < result.index("porn") < result.index("hso")