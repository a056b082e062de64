"""Skills of the daily group-wife game: drawing, marrying, stealing, matchmaking, divorce, gifts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, MutableMapping, Protocol, Sequence, TypeVar

from .qqwife_registry import GroupSettings, Registry

T = TypeVar("T")

CONFESS_SUCCESS = (
    "是个勇敢的孩子(*/ω＼*) 今天的运气都降临在你的身边~\n\n",
    "(´･ω･`)对方答应了你 并表示愿意当今天的CP\n\n",
)
CONFESS_FAIL = (
    "今天的运气有一点背哦~明天再试试叭",
    "_(:з」∠)_下次还有机会 咱抱抱你w",
    "今天失败了惹. 摸摸头~咱明天还有机会",
)
NTR_SUCCESS = ("因为你的个人魅力~~今天他就是你的了w\n\n",)
DIVORCE_FAIL = (
    "打是情,骂是爱,不打不亲不相爱。答应我不要分手。",
    "床头打架床尾和，夫妻没有隔夜仇。安啦安啦，不要闹变扭。",
)
DIVORCE_SUCCESS = (
    "离婚成功力\n话说你不考虑当个1？",
    "离婚成功力\n天涯何处无芳草，何必单恋一枝花？不如再摘一支（bushi",
)

MODE_MARRY = "嫁娶"
MODE_NTR = "NTR"
MODE_MATCHMAKE = "做媒"
MODE_DIVORCE = "离婚"
MODE_GIFT = "买礼物"

RECENT_MEMBERS = 30


class Rng(Protocol):
    def randrange(self, stop: int) -> int: ...

    def choice(self, seq: Sequence[T]) -> T: ...


class SkillRefused(Exception):
    """The skill cannot be used right now; the message says why."""


@dataclass
class Outcome:
    """What a skill did: whether it succeeded, the reply text and the partner involved."""

    success: bool
    message: str
    partner: int = 0
    favor: int = 0


def _require_cd(registry: Registry, gid: int, uid: int, mode: str, settings: GroupSettings) -> None:
    if not registry.check_cd(gid, uid, mode, settings.cd_hours):
        raise SkillRefused("你的技能还在CD中...")


def _introduce(name: str, uid: int) -> str:
    return f"[{name}]({uid})哒"


# ---------------------------------------------------------------- checks


def check_single(registry: Registry, gid: int, uid: int, fiancee: int) -> None:
    """Raise SkillRefused unless uid may propose to fiancee."""
    registry.open_for_day(gid)
    settings = registry.settings(gid)
    if not settings.can_match:
        raise SkillRefused("你群包分配,别在娶妻上面下功夫，好好水群")
    _require_cd(registry, gid, uid, MODE_MARRY, settings)
    mine = registry.lookup(gid, uid)
    if mine.is_single_noble:
        raise SkillRefused("今天的你是单身贵族噢")
    if mine.target == fiancee or mine.user == fiancee:
        raise SkillRefused("笨蛋！你们已经在一起了！")
    if mine.user == uid:
        raise SkillRefused("笨蛋~你家里还有个吃白饭的w")
    if mine.target == uid:
        raise SkillRefused("该是0就是0,当0有什么不好")
    theirs = registry.lookup(gid, fiancee)
    if theirs.is_single_noble:
        raise SkillRefused("今天的ta是单身贵族噢")
    if theirs.user == fiancee:
        raise SkillRefused("他有别的女人了，你该放下了")
    if theirs.target == fiancee:
        raise SkillRefused("ta被别人娶了,你来晚力")


def check_mistress(registry: Registry, gid: int, uid: int, fiancee: int) -> None:
    """Raise SkillRefused unless uid may try to steal fiancee."""
    registry.open_for_day(gid)
    settings = registry.settings(gid)
    if not settings.can_ntr:
        raise SkillRefused("你群发布了牛头人禁止令，放弃吧")
    _require_cd(registry, gid, uid, MODE_MARRY, settings)
    theirs = registry.lookup(gid, fiancee)
    if theirs.is_empty():
        raise SkillRefused("ta现在还是单身哦,快向ta表白吧!")
    if theirs.target == 0 or theirs.user == 0:
        raise SkillRefused("今天的ta是单身贵族噢")
    if theirs.target == uid or theirs.user == uid:
        raise SkillRefused("笨蛋！你们已经在一起了！")
    mine = registry.lookup(gid, uid)
    if mine.is_single_noble:
        raise SkillRefused("今天的你是单身贵族噢")
    if mine.user == uid:
        raise SkillRefused("打灭，不给纳小妾！")
    if mine.target == uid:
        raise SkillRefused("该是0就是0,当0有什么不好")


def check_divorce(registry: Registry, gid: int, uid: int) -> None:
    """Raise SkillRefused unless uid may file for divorce."""
    registry.open_for_day(gid)
    if registry.lookup(gid, uid).is_empty():
        raise SkillRefused("今天你还没结婚哦")
    settings = registry.settings(gid)
    _require_cd(registry, gid, uid, MODE_DIVORCE, settings)


def check_matchmaker(registry: Registry, gid: int, uid: int, one: int, zero: int) -> None:
    """Raise SkillRefused unless uid may pair one with zero."""
    if one == uid or zero == uid:
        raise SkillRefused("禁止自己给自己做媒!")
    if one == zero:
        raise SkillRefused("你这个媒人XP很怪咧,不能这样噢")
    registry.open_for_day(gid)
    settings = registry.settings(gid)
    _require_cd(registry, gid, uid, MODE_MATCHMAKE, settings)
    first = registry.lookup(gid, one)
    if first.is_single_noble:
        raise SkillRefused("今天的攻方是单身贵族噢")
    if first.target == zero or first.user == zero:
        raise SkillRefused("笨蛋!ta们已经在一起了!")
    if not first.is_empty():
        raise SkillRefused("攻方不是单身,不允许给这种人做媒!")
    if not registry.lookup(gid, zero).is_empty():
        raise SkillRefused("受方不是单身,不允许给这种人做媒!")


# ---------------------------------------------------------------- skills


def draw_wife(
    registry: Registry,
    gid: int,
    uid: int,
    members: Iterable[tuple[int, int]],
    name_of: Callable[[int], str],
    rng: Rng,
) -> Outcome:
    """Draw a random single among the most recently active members.

    members are (user id, last sent time) pairs.
    """
    registry.open_for_day(gid)
    mine = registry.lookup(gid, uid)
    if mine.is_single_noble:
        raise SkillRefused("今天你是单身贵族噢")
    if mine.user == uid:
        return Outcome(
            False,
            f"今天你在{mine.updatetime}娶了群友\n{_introduce(mine.targetname, mine.target)}",
            partner=mine.target,
        )
    if mine.target == uid:
        return Outcome(
            False,
            f"今天你在{mine.updatetime}被群友\n[{mine.username}]({mine.user})娶了",
            partner=mine.user,
        )
    recent = sorted(members, key=lambda member: member[1])[-RECENT_MEMBERS:]
    singles = [member for member, _ in recent if registry.lookup(gid, member).is_empty()]
    if len(singles) <= 1:
        raise SkillRefused("~群里没有ta人是单身了哦 明天再试试叭")
    fiancee = rng.choice(singles)
    if fiancee == uid:
        if rng.randrange(10) == 1:
            registry.register(gid, uid, 0, "", "")
            return Outcome(True, "今日获得成就：单身贵族")
        return Outcome(False, "呜...没娶到，你可以再尝试一次")
    registry.register(gid, uid, fiancee, name_of(uid), name_of(fiancee))
    favor = registry.update_favor(uid, fiancee, 1 + rng.randrange(5))
    return Outcome(
        True,
        f"今天你的群老婆是\n{_introduce(name_of(fiancee), fiancee)}\n当前你们好感度为{favor}",
        partner=fiancee,
        favor=favor,
    )


def marry(
    registry: Registry,
    gid: int,
    uid: int,
    fiancee: int,
    choice: str,
    name_of: Callable[[int], str],
    rng: Rng,
) -> Outcome:
    """Propose to fiancee; choice "娶" takes a wife, anything else ("嫁") a husband."""
    registry.record_cd(gid, uid, MODE_MARRY)
    if uid == fiancee:
        if rng.randrange(3) == 1:
            registry.register(gid, uid, 0, "", "")
            return Outcome(True, "今日获得成就：单身贵族")
        return Outcome(False, "今日获得成就：自恋狂")
    favor = max(30, registry.favor(uid, fiancee))
    if rng.randrange(101) >= favor:
        return Outcome(False, rng.choice(CONFESS_FAIL), partner=fiancee)
    if choice == "娶":
        registry.register(gid, uid, fiancee, name_of(uid), name_of(fiancee))
        title = "今天你的群老婆是"
    else:
        registry.register(gid, fiancee, uid, name_of(fiancee), name_of(uid))
        title = "今天你的群老公是"
    return Outcome(
        True,
        f"{rng.choice(CONFESS_SUCCESS)}{title}\n{_introduce(name_of(fiancee), fiancee)}",
        partner=fiancee,
    )


def be_mistress(
    registry: Registry,
    gid: int,
    uid: int,
    fiancee: int,
    name_of: Callable[[int], str],
    rng: Rng,
) -> Outcome:
    """Try to steal fiancee from their partner."""
    registry.record_cd(gid, uid, MODE_NTR)
    if fiancee == uid:
        return Outcome(False, "今日获得成就：自我攻略")
    favor = max(30, registry.favor(uid, fiancee))
    if rng.randrange(101) >= favor // 3:
        return Outcome(False, "失败了！可惜", partner=fiancee)
    theirs = registry.lookup(gid, fiancee)
    if not theirs.is_empty() and theirs.user == fiancee:
        registry.divorce_wife(gid, theirs.target)
        husband, wife, cheated, title = fiancee, uid, theirs.target, "老公"
    elif not theirs.is_empty() and theirs.target == fiancee:
        registry.divorce_husband(gid, theirs.user)
        husband, wife, cheated, title = uid, fiancee, theirs.user, "老婆"
    else:
        raise SkillRefused("数据库发生问题力")
    registry.register(gid, husband, wife, name_of(husband), name_of(wife))
    favor = registry.update_favor(uid, fiancee, -5)
    registry.update_favor(uid, cheated, 5)
    return Outcome(
        True,
        f"{rng.choice(NTR_SUCCESS)}今天你的群{title}是\n"
        f"{_introduce(name_of(fiancee), fiancee)}\n当前你们好感度为{favor}",
        partner=fiancee,
        favor=favor,
    )


def matchmake(
    registry: Registry,
    gid: int,
    uid: int,
    one: int,
    zero: int,
    name_of: Callable[[int], str],
    rng: Rng,
) -> Outcome:
    """Try to pair one (husband) with zero (wife)."""
    registry.record_cd(gid, uid, MODE_MATCHMAKE)
    favor = max(30, registry.favor(one, zero))
    if rng.randrange(101) >= favor:
        registry.update_favor(uid, one, -1)
        registry.update_favor(uid, zero, -1)
        return Outcome(False, rng.choice(CONFESS_FAIL))
    registry.register(gid, one, zero, name_of(one), name_of(zero))
    registry.update_favor(uid, one, 1)
    registry.update_favor(uid, zero, 1)
    couple = registry.update_favor(one, zero, 1)
    return Outcome(
        True,
        f"恭喜你成功撮合了一对CP\n\n今天你的群老婆是\n{_introduce(name_of(zero), zero)}",
        partner=zero,
        favor=couple,
    )


def divorce(registry: Registry, gid: int, uid: int, rng: Rng) -> Outcome:
    """Try to end uid's marriage; high favour makes it harder."""
    registry.record_cd(gid, uid, MODE_DIVORCE)
    mine = registry.lookup(gid, uid)
    side = -1
    fiancee = 0
    if not mine.is_empty() and mine.user == uid:
        side, fiancee = 1, mine.target
    elif not mine.is_empty() and mine.target == uid:
        side, fiancee = 0, mine.user
    favor = registry.favor(uid, fiancee)
    if favor < 20:
        favor = 10
    if rng.randrange(101) > 110 - favor:
        return Outcome(False, rng.choice(DIVORCE_FAIL), partner=fiancee)
    if side == 1:
        registry.divorce_wife(gid, fiancee)
    elif side == 0:
        registry.divorce_husband(gid, fiancee)
    else:
        raise SkillRefused("用户数据查找发生错误")
    return Outcome(True, DIVORCE_SUCCESS[side], partner=fiancee)


def buy_gift(
    registry: Registry,
    gid: int,
    uid: int,
    target: int,
    wallet: MutableMapping[int, int],
    rng: Rng,
) -> Outcome:
    """Spend coins from wallet on a gift; the target's mood decides the favour change."""
    if target == uid:
        raise SkillRefused("你想给自己买什么礼物呢?")
    settings = registry.settings(gid)
    if not registry.check_cd(gid, uid, MODE_GIFT, settings.cd_hours):
        raise SkillRefused("舔狗，今天你已经送过礼物了。")
    favor = registry.favor(uid, target)
    money = wallet.get(uid, 0)
    if money < 1:
        raise SkillRefused("你钱包没钱啦！")
    spent = rng.randrange(min(money, 100))
    if favor > 50:
        change = spent % 10
    else:
        change = 1 + (rng.randrange(spent) if spent > 0 else 0)
    liked = rng.randrange(2) != 0
    if not liked:
        change = -change
    wallet[uid] = money - spent
    last = registry.update_favor(uid, target, change)
    registry.record_cd(gid, uid, MODE_GIFT)
    if liked:
        text = f"你花了{spent}ATRI币买了一件女装送给了ta,ta很喜欢,你们的好感度升至{last}"
    else:
        text = f"你花了{spent}ATRI币买了一件女装送给了ta,ta很不喜欢,你们的好感度降低至{last}"
    return Outcome(liked, text, partner=target, favor=last)


def set_cd_hours(registry: Registry, gid: int, text: str) -> GroupSettings:
    """Set the group's cooldown length in hours from text."""
    try:
        hours = float(text)
    except ValueError as exc:
        raise SkillRefused(f"[qqwife]请设置纯数字\n{exc}") from exc
    settings = registry.settings(gid)
    settings.cd_hours = hours
    registry.save_settings(settings)
    return settings


def configure_switch(registry: Registry, gid: int, status: str, mode: str) -> GroupSettings:
    """Turn free love ("自由恋爱") or stealing ("牛头人") on ("允许") or off ("禁止")."""
    if status not in ("允许", "禁止"):
        raise SkillRefused("未知的设置: " + status)
    allowed = status == "允许"
    settings = registry.settings(gid)
    if mode == "自由恋爱":
        settings.can_match = allowed
    elif mode == "牛头人":
        settings.can_ntr = allowed
    else:
        raise SkillRefused("未知的设置: " + mode)
    registry.save_settings(settings)
    return settings