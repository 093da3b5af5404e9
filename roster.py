# -*- coding: utf-8 -*-
# roster.py
# Roster side of a schedule request:
# - today's attendance picked out of the registered players
# - per-player settings fall back to level 4 / gender M
# - fixed/forbidden pairs trimmed to people who are actually here

import json

from doubles_scheduler import (
    DEFAULT_GENDER,
    DEFAULT_LEVEL,
    InvalidInput,
    Player,
    generate_schedule,
    pair_key,
)

DEFAULT_COURTS = 2
DEFAULT_ROUNDS = 3
DEFAULT_PRIORITY = "none"

# sample roster: (name, level, gender)
players_master = [
    ("A", 4, "M"), ("B", 4, "M"), ("C", 5, "F"), ("D", 3, "F"),
    ("E", 6, "M"), ("F", 2, "F"), ("G", 4, "M"), ("H", 5, "F"),
]


def _as_int(value, what):
    # "4" from a form is fine; 4.9 or true is not
    if isinstance(value, bool):
        raise InvalidInput(f"{what} must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{what} must be an integer, got {value!r}") from None
    if isinstance(value, float) and number != value:
        raise InvalidInput(f"{what} must be an integer, got {value!r}")
    return number


def _as_list(value, what):
    if not isinstance(value, (list, tuple)):
        raise InvalidInput(f"{what} must be a list, got {value!r}")
    return value


def make_players(names, settings=None):
    """Attendance list -> Player list, first occurrence of a name wins."""
    settings = settings or {}
    roster = []
    seen = set()
    for n in names:
        n = str(n).strip()
        if not n or n in seen:
            continue
        seen.add(n)
        s = settings.get(n, {})
        level = _as_int(s.get("level", DEFAULT_LEVEL), f"{n}: level")
        gender = str(s.get("gender", DEFAULT_GENDER)).strip().upper()
        roster.append(Player(n, level, gender))
    return roster


def effective_pairs(pairs, names):
    # drop pairs with an absent member, self-pairs and duplicates
    present = set(names)
    out = []
    for pair in _as_list(pairs, "pairs"):
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise InvalidInput(f"a pair needs exactly two names, got {pair!r}")
        a, b = (str(x).strip() for x in pair)
        if a == b or a not in present or b not in present:
            continue
        key = pair_key(a, b)
        if key not in out:
            out.append(key)
    return out


def _settings_from_entries(entries):
    # entries: {"name", "level", "gender"} dicts, (name, level, gender) tuples or bare names
    names, settings = [], {}
    for e in _as_list(entries, "players"):
        if isinstance(e, dict):
            if "name" not in e:
                raise InvalidInput(f"player entry without a name: {e!r}")
            n = str(e["name"]).strip()
            if n not in settings:
                settings[n] = {k: e[k] for k in ("level", "gender") if k in e}
        elif isinstance(e, (list, tuple)):
            if not e:
                raise InvalidInput("empty player entry")
            n = str(e[0]).strip()
            if n not in settings:
                settings[n] = {k: v for k, v in zip(("level", "gender"), e[1:3]) if v not in (None, "")}
        else:
            n = str(e).strip()
            settings.setdefault(n, {})
        names.append(n)
    return names, settings


class RosterRequest:
    __slots__ = ("players", "court_count", "round_count", "fixed_pairs",
                 "forbidden_pairs", "priority_mode", "seed")

    def __init__(self, players, court_count=DEFAULT_COURTS, round_count=DEFAULT_ROUNDS,
                 fixed_pairs=(), forbidden_pairs=(), priority_mode=DEFAULT_PRIORITY, seed=None):
        self.players = players
        self.court_count = court_count
        self.round_count = round_count
        self.fixed_pairs = list(fixed_pairs)
        self.forbidden_pairs = list(forbidden_pairs)
        self.priority_mode = priority_mode
        self.seed = seed

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise InvalidInput("request body must be a JSON object")
        names, settings = _settings_from_entries(data.get("players") or [])
        present = data.get("present")
        if present:
            wanted = {str(n).strip() for n in _as_list(present, "present")}
            names = [n for n in names if n in wanted]
        players = make_players(names, settings)
        attending = [p.name for p in players]
        seed = data.get("seed")
        return cls(
            players,
            court_count=_as_int(data.get("courts", DEFAULT_COURTS), "courts"),
            round_count=_as_int(data.get("rounds", DEFAULT_ROUNDS), "rounds"),
            fixed_pairs=effective_pairs(data.get("fixed_pairs") or [], attending),
            forbidden_pairs=effective_pairs(data.get("forbidden_pairs") or [], attending),
            priority_mode=str(data.get("priority_mode", DEFAULT_PRIORITY)).strip().lower(),
            seed=None if seed is None else _as_int(seed, "seed"),
        )

    def generate(self, **options):
        return generate_schedule(
            self.players, self.court_count, self.round_count,
            self.fixed_pairs, self.forbidden_pairs, self.priority_mode, **options
        )


def load_roster(path):
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidInput(f"{path}: not valid JSON ({e})") from None
    return RosterRequest.from_dict(data)


# ===== text form input (one entry per line) =====
def parse_player_lines(text):
    # "name" or "name,level" or "name,level,gender"
    entries = []
    for line in (text or "").splitlines():
        parts = [x.strip() for x in line.split(",")]
        if not parts[0]:
            continue
        entries.append(tuple(parts[:3]))
    return entries


def parse_pair_lines(text):
    pairs = []
    for line in (text or "").splitlines():
        if not line.strip():
            continue
        parts = [x.strip() for x in line.split(",")]
        if len(parts) != 2 or not all(parts):
            raise InvalidInput(f"pair lines look like 'A,B', got {line.strip()!r}")
        pairs.append(tuple(parts))
    return pairs


def master_as_text(master=players_master):
    return "\n".join(f"{n},{lv},{g}" for n, lv, g in master)
