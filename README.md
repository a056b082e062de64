# groupbot

The rules and storage behind a set of group-chat bot features. Each feature
is a plain Python module that you drive from your own bot: you pass in user
and group ids, the current time, a random generator and, where money is
involved, a wallet mapping, and you get back values or reply text. State is
kept in SQLite files through the standard library's `sqlite3`.

Requires Python 3.10 or later. Install with the tests:

```
pip install .[test]
pytest
```

## Modules

| Module | What it holds |
| --- | --- |
| `groupbot.qqwife_registry` | The daily marriage registry: `Registry` (per-group `GroupSettings`, `MarriageRecord`s, favour between pairs of users, skill cooldowns) and `truncate_name` |
| `groupbot.qqwife_skills` | The marriage game's rules: `check_single`, `check_mistress`, `check_divorce`, `check_matchmaker`, and the actions `draw_wife`, `marry`, `be_mistress`, `matchmake`, `divorce`, `buy_gift`, `set_cd_hours`, `configure_switch`; refusals raise `SkillRefused`, actions return an `Outcome` |
| `groupbot.score` | Daily sign-in with levels and coins: `ScoreDB`, `sign_in` (returns a `SignInResult`), `get_rank`, `next_rank_score`, `hour_greeting` |
| `groupbot.sleep` | Good-night and good-morning ranking: `SleepDB`, `split_duration`, `is_morning`, `is_evening`, `good_morning_text`, `good_night_text` |
| `groupbot.vtb` | A three-level catalogue of voice quotes: `VtbDB` with `FirstCategory`, `SecondCategory`, `ThirdCategory`, plus `decode_escaped_unicode`, `escape_record_url`, `record_filename` |
| `groupbot.qzone` | Stored login cookies and confession-wall posts under review: `QzoneDB`, `Emotion`, `EmotionStatus`, `anonymized` |
| `groupbot.nsfw` | Turns classifier scores into a verdict: `Classification`, `judge`, `auto_judge` |
| `groupbot.runcode` | Trims long program output for chat: `cut_too_long` |
| `groupbot.nativewife` | Per-group picture galleries with a pick that stays the same for a user all day: `WifeGallery`, `WifePick`, `parse_wife_name`, `daily_index` |
| `groupbot.reborn` | A weighted "where would you be reborn" draw: `load_rates`, `Reborner` |
| `groupbot.grammar` | Random lookup of Japanese grammar points: `GrammarDB`, `Grammar` |
| `groupbot.tarot` | Tarot cards, draws and spreads: `Deck`, `Card`, `Formation`, `DrawnCard`, `parse_draw_count` |
| `groupbot.thesaurus` | Keyword reply books and the per-group settings word: `ReplyBook`, `DictionaryKind`, `set_dictionary_kind`, `set_probability`, `can_match` |

## Examples

Sign-in levels follow fixed thresholds:

```python
from groupbot.score import get_rank

get_rank(0)     # 0
get_rank(10)    # 1
get_rank(15)    # 1
```

A full sign-in pays coins into any mutable mapping of user id to balance:

```python
import random
from datetime import datetime
from groupbot.score import ScoreDB, sign_in

wallet = {}
with ScoreDB("score.db") as db:
    result = sign_in(db, 10001, datetime.now(), wallet, random.Random())
    if result.already_signed:
        print("今天你已经签到过了！")
    else:
        print(result.greeting, result.level, result.added, wallet[10001])
```

The marriage registry takes a database path and, optionally, a clock
returning the current `datetime`. The rule functions raise `SkillRefused`
with the text to show when an action is not allowed:

```python
import random
from groupbot.qqwife_registry import Registry
from groupbot.qqwife_skills import SkillRefused, check_single, marry

registry = Registry("marriage.db")
try:
    check_single(registry, gid, uid, fiancee)
    outcome = marry(registry, gid, uid, fiancee, "娶", name_of, random.Random())
    reply(outcome.message)
except SkillRefused as refusal:
    reply(str(refusal))
```

Long program output is cut after more than 30 line breaks or about 1000
characters:

```python
from groupbot.runcode import cut_too_long

shown = cut_too_long(output)
```

Tarot decks load from JSON text:

```python
import random
from groupbot.tarot import Deck, parse_draw_count

deck = Deck.from_json(cards_json, formations_json)
for card in deck.draw(parse_draw_count("3张"), "塔罗牌", random.Random()):
    print(card.text)
```

`VtbDB.update_vtb_list` and `VtbDB.store_vtb` download the catalogue over
HTTP with `requests` unless you pass your own `fetch` callable that takes a
URL and returns the response text.

The database classes (`Registry`, `ScoreDB`, `SleepDB`, `VtbDB`, `QzoneDB`,
`GrammarDB`) can be used as context managers and have a `close()` method.

## What the package does not do

- It has no command and does not connect to any chat service; receiving
  messages, matching commands and sending replies are up to your bot.
- It draws no pictures: roster images, sign-in cards, ranking charts and
  rendered text are not produced. `truncate_name` only takes a width
  function from you.
- It does not classify pictures, run code, log in to or publish on a social
  space, or download images; `Classification` scores, program output, cookies
  and picture bytes come from you.
- The reply books do not segment sentences into words; finding which key a
  message matches is left to the caller.
- Coins are not stored by the package; sign-in and gifts update the wallet
  mapping you hand in.