"""Rating of picture classification scores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

THRESHOLD = 0.3
HSO_IMAGE = "https://gchat.qpic.cn/gchatpic_new//--4234EDEC5F147A4C319A41149D7E0EA9/0"


@dataclass(frozen=True)
class Classification:
    """Scores of one picture per category, each between 0 and 1."""

    drawings: float = 0.0
    hentai: float = 0.0
    neutral: float = 0.0
    porn: float = 0.0
    sexy: float = 0.0


def _labels(picture: Classification) -> list[str]:
    labels = []
    if picture.hentai > THRESHOLD:
        labels.append("hentai")
    if picture.porn > THRESHOLD:
        labels.append("porn")
    if picture.sexy > THRESHOLD:
        labels.append("hso")
    return labels


def judge(picture: Classification) -> str:
    """The rating sent when a user asks for one."""
    if picture.neutral > THRESHOLD:
        return "普通哦"
    if picture.drawings > THRESHOLD or picture.neutral < THRESHOLD:
        kind = "二次元"
    else:
        kind = "三次元"
    return "".join([kind, *(" " + label for label in _labels(picture))])


def auto_judge(picture: Classification) -> Optional[str]:
    """The unprompted rating, or None when the picture is not worth remarking on."""
    if picture.neutral > THRESHOLD:
        return None
    kind = "二次元" if picture.drawings > THRESHOLD else "三次元"
    labels = _labels(picture)
    if not labels:
        return None
    return "".join([kind, *(" " + label for label in labels)])