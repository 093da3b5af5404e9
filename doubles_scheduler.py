# -*- coding: utf-8 -*-
# doubles_scheduler.py
# Guarantees:
# - hard constraints: no forbidden pair, no pair repeated from the previous round
# - a player is used at most once per round (on a court or resting)
# - least-played, longest-resting players choose partners first
# - best of ATTEMPTS candidates per round, lowest score wins, 0 stops early
# - no partial schedule: a round without a candidate aborts the whole run

import random

from rotation_log import setup_logger

logger = setup_logger(__name__)

ATTEMPTS = 60           # candidates tried per round
DEFAULT_LEVEL = 4
DEFAULT_GENDER = "M"
MIN_LEVEL, MAX_LEVEL = 1, 8
GENDERS = ("M", "F")
PRIORITY_MODES = ("none", "level", "gender")
REPEAT_POLICIES = ("penalize", "forbid")
NEVER = -1              # last_played_round before a player's first game

# Score weights. Lower total is better, 0 is ideal.
CONSECUTIVE_PENALTY = 3         # per player who also played the previous round
FIXED_PAIR_BONUS = 5            # fixed pair on the same team
FIXED_PAIR_SPLIT_PENALTY = 20   # fixed pair playing against each other
HARD_BASE = 1_000_000           # repeated four-player matchup
NEAR_WINDOW = 5                 # repeat within this many rounds costs HARD_BASE
FAR_WINDOW = 10                 # up to here HARD_BASE // FAR_DIVISOR
FAR_DIVISOR = 5
DISTANT_DIVISOR = 20            # beyond FAR_WINDOW
LEVEL_THRESHOLD = 2             # team level sum difference allowed for free
LEVEL_WEIGHT = 10               # per squared unit over the threshold
FAIRNESS_WEIGHT = 4             # per unit of (max - min) games played
BLOCK_QUOTA_WEIGHT = 5000       # per missing game at the end of a block


class SchedulingError(Exception):
    """Base class for schedule generation failures."""


class InvalidInput(SchedulingError):
    """A precondition failed. Raised before any search starts."""


class InfeasibleRound(SchedulingError):
    """No candidate survived the attempt budget for one round."""

    def __init__(self, round_index, attempts):
        self.round_index = round_index
        self.attempts = attempts
        super().__init__(
            f"no feasible pairing for round {round_index + 1} within {attempts} attempts; "
            "relax fixed/forbidden pairs, the priority mode, courts or rounds"
        )


# ===== data model =====
class Player:
    __slots__ = ("name", "level", "gender")

    def __init__(self, name, level=DEFAULT_LEVEL, gender=DEFAULT_GENDER):
        self.name = name
        self.level = level
        self.gender = gender

    def __eq__(self, other):
        if not isinstance(other, Player):
            return NotImplemented
        return (self.name, self.level, self.gender) == (other.name, other.level, other.gender)

    def __hash__(self):
        return hash((self.name, self.level, self.gender))

    def __repr__(self):
        return f"Player({self.name!r}, level={self.level}, gender={self.gender!r})"


def pair_key(a, b):
    return (a, b) if a <= b else (b, a)


def matchup_key(team1, team2):
    # same four people, regardless of teams or court
    return tuple(sorted((*team1, *team2)))


class CourtMatch:
    __slots__ = ("court", "team1", "team2")

    def __init__(self, court, team1, team2=None):
        self.court = court
        self.team1 = tuple(team1)
        self.team2 = tuple(team2) if team2 is not None else None

    @property
    def teams(self):
        return (self.team1,) if self.team2 is None else (self.team1, self.team2)

    @property
    def names(self):
        return [name for team in self.teams for name in team]

    def matchup_key(self):
        return None if self.team2 is None else matchup_key(self.team1, self.team2)

    def to_dict(self):
        return {
            "court": self.court,
            "team1": list(self.team1),
            "team2": list(self.team2) if self.team2 is not None else None,
        }

    def __repr__(self):
        return f"CourtMatch({self.court}, {self.team1}, {self.team2})"


class Round:
    __slots__ = ("index", "courts", "resting", "score")

    def __init__(self, index, courts, resting, score=0):
        self.index = index
        self.courts = courts
        self.resting = resting
        self.score = score

    @property
    def playing(self):
        return [name for court in self.courts for name in court.names]

    def pair_keys(self):
        return {pair_key(*team) for court in self.courts for team in court.teams}

    def to_dict(self):
        return {
            "round": self.index,
            "courts": [c.to_dict() for c in self.courts],
            "resting": list(self.resting),
            "score": self.score,
        }

    def __repr__(self):
        return f"Round({self.index}, courts={self.courts}, resting={self.resting}, score={self.score})"


class RunningState:
    """Cross-round counters owned by one generation run.

    Never mutated in place by the planner: ``RoundPlanner.commit`` returns a
    new state built from the old one and the committed round.
    """

    __slots__ = (
        "games_played",
        "last_played_round",
        "matchup_count",
        "matchup_last_round",
        "previous_round_pairs",
    )

    def __init__(self, games_played, last_played_round, matchup_count=None,
                 matchup_last_round=None, previous_round_pairs=None):
        self.games_played = games_played
        self.last_played_round = last_played_round
        self.matchup_count = matchup_count or {}
        self.matchup_last_round = matchup_last_round or {}
        self.previous_round_pairs = previous_round_pairs or frozenset()

    @classmethod
    def initial(cls, players):
        return cls({p.name: 0 for p in players}, {p.name: NEVER for p in players})

    def copy(self):
        return RunningState(
            dict(self.games_played),
            dict(self.last_played_round),
            dict(self.matchup_count),
            dict(self.matchup_last_round),
            frozenset(self.previous_round_pairs),
        )


# ===== pairing search =====
def order_candidates(p1, candidates, priority_mode):
    # sorted() is stable, so ties keep the caller's fairness order
    if priority_mode == "level":
        return sorted(candidates, key=lambda p: abs(p.level - p1.level))
    if priority_mode == "gender":
        return sorted(candidates, key=lambda p: (p.gender == p1.gender, abs(p.level - p1.level)))
    return list(candidates)


def find_round_pairing(order, previous_pairs, forbidden_pairs, priority_mode="none"):
    """Partition ``order`` into teams of two by backtracking.

    The first unassigned player in ``order`` always picks next; the order is
    never reshuffled here. Returns ``(teams, resting)`` or ``None`` when no
    full pairing exists for this order.
    """
    order = list(order)
    previous_pairs = previous_pairs or frozenset()
    forbidden = {pair_key(a, b) for a, b in forbidden_pairs}
    used = set()
    teams = []

    def allowed(a, b):
        key = pair_key(a, b)
        return key not in forbidden and key not in previous_pairs

    def dead_end(remaining):
        # Players nobody left can partner. With an even count all of them must
        # play; with an odd count one may rest, but only if everyone behind it
        # can still be taken by someone ahead of it.
        names = [p.name for p in remaining]
        lonely = [i for i, a in enumerate(names)
                  if not any(allowed(a, b) for b in names if b != a)]
        if not lonely:
            return False
        if len(names) % 2 == 0 or len(lonely) > 1:
            return True
        ahead = lonely[0]
        return len(names) - 1 - ahead > ahead

    def backtrack():
        remaining = [p for p in order if p.name not in used]
        if len(remaining) <= 1:
            return True  # 0 or 1 left over: they rest
        if dead_end(remaining):
            return False
        p1 = remaining[0]
        for p2 in order_candidates(p1, remaining[1:], priority_mode):
            if not allowed(p1.name, p2.name):
                continue
            key = pair_key(p1.name, p2.name)
            used.update(key)
            teams.append((p1.name, p2.name))
            if backtrack():
                return True
            teams.pop()
            used.difference_update(key)
        return False

    if not backtrack():
        return None
    return teams, [p.name for p in order if p.name not in used]


# ===== court assignment =====
def assign_courts(teams, resting, court_count):
    queue = list(teams)
    resting = list(resting)
    if len(queue) == 1 and court_count >= 1:
        # nobody else to play against: the lone pair still gets a court
        return [CourtMatch(1, queue[0])], resting
    courts = []
    while len(courts) < court_count and len(queue) >= 2:
        courts.append(CourtMatch(len(courts) + 1, queue.pop(0), queue.pop(0)))
    for team in queue:
        resting.extend(team)  # surplus pairs rest together
    return courts, resting


def active_players_per_round(player_count, court_count):
    pairs = player_count // 2
    if pairs == 1:
        return 2
    return 4 * min(court_count, pairs // 2)


# ===== scoring =====
class ScoringWeights:
    __slots__ = (
        "consecutive", "fixed_bonus", "fixed_split",
        "hard_base", "near_window", "far_window", "far_divisor", "distant_divisor",
        "level_threshold", "level_weight", "fairness",
        "block_quota", "block_quota_enabled",
    )

    def __init__(self, consecutive=CONSECUTIVE_PENALTY, fixed_bonus=FIXED_PAIR_BONUS,
                 fixed_split=FIXED_PAIR_SPLIT_PENALTY, hard_base=HARD_BASE,
                 near_window=NEAR_WINDOW, far_window=FAR_WINDOW, far_divisor=FAR_DIVISOR,
                 distant_divisor=DISTANT_DIVISOR, level_threshold=LEVEL_THRESHOLD,
                 level_weight=LEVEL_WEIGHT, fairness=FAIRNESS_WEIGHT,
                 block_quota=BLOCK_QUOTA_WEIGHT, block_quota_enabled=True):
        self.consecutive = consecutive
        self.fixed_bonus = fixed_bonus
        self.fixed_split = fixed_split
        self.hard_base = hard_base
        self.near_window = near_window
        self.far_window = far_window
        self.far_divisor = far_divisor
        self.distant_divisor = distant_divisor
        self.level_threshold = level_threshold
        self.level_weight = level_weight
        self.fairness = fairness
        self.block_quota = block_quota
        self.block_quota_enabled = block_quota_enabled


class CandidateScorer:
    """Score one court-assigned candidate round against the running state.

    Every term is its own method so a policy can be inspected term by term.
    """

    def __init__(self, weights=None):
        self.weights = weights or ScoringWeights()

    def score(self, courts, round_index, state, level_map, fixed_pairs=(), active_per_round=0):
        playing = {name for court in courts for name in court.names}
        hypothetical = dict(state.games_played)
        for name in playing:
            hypothetical[name] = hypothetical.get(name, 0) + 1
        return (
            self.consecutive_penalty(playing, round_index, state.last_played_round)
            + self.fixed_pair_score(courts, fixed_pairs)
            + self.matchup_penalty(courts, round_index, state.matchup_last_round, state.matchup_count)
            + self.level_penalty(courts, level_map)
            + self.fairness_penalty(hypothetical)
            + self.block_quota_penalty(hypothetical, round_index, active_per_round)
        )

    def consecutive_penalty(self, playing, round_index, last_played_round):
        if round_index == 0:
            return 0  # NEVER would otherwise read as "played round -1"
        back_to_back = sum(1 for name in playing if last_played_round.get(name, NEVER) == round_index - 1)
        return back_to_back * self.weights.consecutive

    def fixed_pair_score(self, courts, fixed_pairs):
        team_of = {}
        for court in courts:
            for side, team in enumerate(court.teams, start=1):
                for name in team:
                    team_of[name] = (court.court, side)
        total = 0
        for a, b in fixed_pairs:
            if a not in team_of or b not in team_of:
                continue  # one of them rests: no opinion
            if team_of[a] == team_of[b]:
                total -= self.weights.fixed_bonus
            else:
                total += self.weights.fixed_split
        return total

    def repeat_penalty(self, gap, prior_count):
        w = self.weights
        if gap <= w.near_window:
            base = w.hard_base
        elif gap <= w.far_window:
            base = w.hard_base // w.far_divisor
        else:
            base = w.hard_base // w.distant_divisor
        return base * (prior_count + 1) ** 2

    def matchup_penalty(self, courts, round_index, matchup_last_round, matchup_count):
        total = 0
        for court in courts:
            key = court.matchup_key()
            if key is None or key not in matchup_last_round:
                continue
            gap = round_index - matchup_last_round[key]
            total += self.repeat_penalty(gap, matchup_count.get(key, 0))
        return total

    def level_penalty(self, courts, level_map):
        w = self.weights
        total = 0
        for court in courts:
            if court.team2 is None:
                continue
            sum1 = sum(level_map.get(name, DEFAULT_LEVEL) for name in court.team1)
            sum2 = sum(level_map.get(name, DEFAULT_LEVEL) for name in court.team2)
            over = abs(sum1 - sum2) - w.level_threshold
            if over > 0:
                total += over * over * w.level_weight
        return total

    def fairness_penalty(self, hypothetical_games):
        if not hypothetical_games:
            return 0
        spread = max(hypothetical_games.values()) - min(hypothetical_games.values())
        return spread * self.weights.fairness

    def block_quota_penalty(self, hypothetical_games, round_index, active_per_round):
        # A block is the run of rounds in which everyone can play once.
        w = self.weights
        total_players = len(hypothetical_games)
        if not w.block_quota_enabled or active_per_round <= 0 or total_players % active_per_round:
            return 0
        block_size = total_players // active_per_round
        if round_index % block_size != block_size - 1:
            return 0
        required = round_index // block_size + 1
        shortfall = sum(max(0, required - games) for games in hypothetical_games.values())
        return shortfall * w.block_quota


# ===== round planning =====
class RoundPlanner:
    def __init__(self, players, court_count, fixed_pairs=(), forbidden_pairs=(),
                 priority_mode="none", scorer=None, attempts=ATTEMPTS,
                 repeat_matchups="penalize", rng=None):
        self.players = list(players)
        self.court_count = court_count
        self.fixed_pairs = [pair_key(a, b) for a, b in fixed_pairs]
        self.forbidden_pairs = {pair_key(a, b) for a, b in forbidden_pairs}
        self.priority_mode = priority_mode
        self.scorer = scorer or CandidateScorer()
        self.attempts = attempts
        self.repeat_matchups = repeat_matchups
        self.rng = rng or random.Random()
        self.level_map = {p.name: p.level for p in self.players}
        self.active_per_round = active_players_per_round(len(self.players), court_count)

    def trial_order(self, state):
        # fewest games, then longest rest, then a coin toss
        draws = {p.name: self.rng.random() for p in self.players}
        return sorted(
            self.players,
            key=lambda p: (
                state.games_played.get(p.name, 0),
                state.last_played_round.get(p.name, NEVER),
                draws[p.name],
            ),
        )

    def repeats_matchup(self, courts, state):
        return any(c.matchup_key() in state.matchup_count for c in courts if c.team2 is not None)

    def plan_round(self, round_index, state):
        best = None
        tried = 0
        for attempt in range(self.attempts):
            tried = attempt + 1
            pairing = find_round_pairing(
                self.trial_order(state), state.previous_round_pairs,
                self.forbidden_pairs, self.priority_mode,
            )
            if pairing is None:
                logger.debug("round %d attempt %d: no pairing for this order", round_index, tried)
                continue
            courts, resting = assign_courts(*pairing, self.court_count)
            if self.repeat_matchups == "forbid" and self.repeats_matchup(courts, state):
                logger.debug("round %d attempt %d: repeated matchup dropped", round_index, tried)
                continue
            score = self.scorer.score(
                courts, round_index, state, self.level_map,
                self.fixed_pairs, self.active_per_round,
            )
            if best is None or score < best.score:
                best = Round(round_index, courts, resting, score)
                if score == 0:
                    break
        if best is None:
            logger.warning("round %d infeasible after %d attempts", round_index, self.attempts)
            raise InfeasibleRound(round_index, self.attempts)
        logger.info("round %d committed: score=%s after %d attempts", round_index, best.score, tried)
        return best

    def commit(self, state, round_):
        new = state.copy()
        for name in round_.playing:
            new.games_played[name] = new.games_played.get(name, 0) + 1
            new.last_played_round[name] = round_.index
        new.previous_round_pairs = frozenset(round_.pair_keys())
        for court in round_.courts:
            key = court.matchup_key()
            if key is None:
                continue
            new.matchup_last_round[key] = round_.index
            new.matchup_count[key] = new.matchup_count.get(key, 0) + 1
        return new


# ===== entry point =====
def validate_inputs(players, court_count, round_count, fixed_pairs, forbidden_pairs,
                    priority_mode, attempts, repeat_matchups):
    if len(players) < 2:
        raise InvalidInput("at least 2 players are required")
    names = [p.name for p in players]
    if len(set(names)) != len(names):
        dupes = sorted({n for n in names if names.count(n) > 1})
        raise InvalidInput(f"duplicate player names: {', '.join(dupes)}")
    for p in players:
        if isinstance(p.level, bool) or not isinstance(p.level, int) or not MIN_LEVEL <= p.level <= MAX_LEVEL:
            raise InvalidInput(f"{p.name}: level must be {MIN_LEVEL}-{MAX_LEVEL}, got {p.level!r}")
        if p.gender not in GENDERS:
            raise InvalidInput(f"{p.name}: gender must be M or F, got {p.gender!r}")
    for label, value in (("court count", court_count), ("round count", round_count), ("attempt budget", attempts)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInput(f"{label} must be an integer, got {value!r}")
    if court_count < 1:
        raise InvalidInput("court count must be at least 1")
    if round_count < 0:
        raise InvalidInput("round count cannot be negative")
    if priority_mode not in PRIORITY_MODES:
        raise InvalidInput(f"unknown priority mode {priority_mode!r}")
    if repeat_matchups not in REPEAT_POLICIES:
        raise InvalidInput(f"unknown repeat matchup policy {repeat_matchups!r}")
    if attempts < 1:
        raise InvalidInput("attempt budget must be at least 1")
    known = set(names)
    for label, pairs in (("fixed", fixed_pairs), ("forbidden", forbidden_pairs)):
        for a, b in pairs:
            if a == b:
                raise InvalidInput(f"{label} pair pairs {a} with themselves")
            unknown = [n for n in (a, b) if n not in known]
            if unknown:
                raise InvalidInput(f"{label} pair {a}/{b} names unknown player(s): {', '.join(unknown)}")


def generate_schedule(players, court_count, round_count, fixed_pairs=(), forbidden_pairs=(),
                      priority_mode="none", *, weights=None, attempts=ATTEMPTS,
                      repeat_matchups="penalize", rng=None, scorer=None):
    """Build ``round_count`` rounds of doubles for ``players``.

    Raises ``InvalidInput`` before any search when a precondition fails and
    ``InfeasibleRound`` when some round has no candidate; a partial schedule
    is never returned. Pass ``rng=random.Random(seed)`` for reproducible runs.
    ``weights`` configures the default scorer; give either it or ``scorer``.
    """
    if scorer is not None and weights is not None:
        raise InvalidInput("pass either weights or a scorer, not both")
    players = list(players)
    fixed_pairs = list(fixed_pairs)
    forbidden_pairs = list(forbidden_pairs)
    validate_inputs(players, court_count, round_count, fixed_pairs, forbidden_pairs,
                    priority_mode, attempts, repeat_matchups)

    planner = RoundPlanner(
        players, court_count, fixed_pairs, forbidden_pairs, priority_mode,
        scorer=scorer or CandidateScorer(weights), attempts=attempts,
        repeat_matchups=repeat_matchups, rng=rng,
    )
    logger.info(
        "generating %d rounds: %d players, %d courts, priority=%s, repeats=%s",
        round_count, len(players), court_count, priority_mode, repeat_matchups,
    )
    state = RunningState.initial(players)
    schedule = []
    for r in range(round_count):
        round_ = planner.plan_round(r, state)
        state = planner.commit(state, round_)
        schedule.append(round_)
    return schedule


def format_schedule(schedule):
    blocks = []
    for round_ in schedule:
        lines = [f"Round {round_.index + 1} (score {round_.score})"]
        for court in round_.courts:
            a = ", ".join(court.team1)
            b = ", ".join(court.team2) if court.team2 is not None else "(no opponent)"
            lines.append(f"  {court.court}) {a} vs {b}")
        rest = ", ".join(round_.resting) if round_.resting else "none"
        lines.append(f"  Resting({len(round_.resting)}): {rest}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
