import random

import pytest

from doubles_scheduler import (
    CandidateScorer,
    CourtMatch,
    InfeasibleRound,
    Round,
    RoundPlanner,
    RunningState,
    matchup_key,
    pair_key,
)

from conftest import make_players


class RecordingScorer(CandidateScorer):
    def __init__(self):
        super().__init__()
        self.seen = []

    def score(self, *args, **kwargs):
        value = super().score(*args, **kwargs)
        self.seen.append(value)
        return value


def test_trial_order_puts_least_played_first(four, rng):
    planner = RoundPlanner(four, 1, rng=rng)
    state = RunningState.initial(four)
    state.games_played.update({"A": 2, "B": 1})
    state.last_played_round.update({"A": 1, "B": 1, "C": 0})
    order = [p.name for p in planner.trial_order(state)]
    assert order == ["D", "C", "B", "A"]


def test_trial_order_is_reproducible_with_a_seed(eight):
    state = RunningState.initial(eight)
    a = RoundPlanner(eight, 2, rng=random.Random(7)).trial_order(state)
    b = RoundPlanner(eight, 2, rng=random.Random(7)).trial_order(state)
    assert a == b


def test_commit_returns_new_state():
    planner = RoundPlanner(make_players("ABCDE"), 1)
    state = RunningState.initial(make_players("ABCDE"))
    round_ = Round(0, [CourtMatch(1, ("A", "B"), ("C", "D"))], ["E"], 0)

    new = planner.commit(state, round_)

    assert state.games_played["A"] == 0
    assert new.games_played == {"A": 1, "B": 1, "C": 1, "D": 1, "E": 0}
    assert new.last_played_round["A"] == 0
    assert new.last_played_round["E"] == -1
    assert new.previous_round_pairs == {pair_key("A", "B"), pair_key("C", "D")}
    key = matchup_key(("A", "B"), ("C", "D"))
    assert new.matchup_count == {key: 1}
    assert new.matchup_last_round == {key: 0}


def test_commit_replaces_previous_pairs_and_counts_repeats(four):
    planner = RoundPlanner(four, 1)
    state = RunningState.initial(four)
    state = planner.commit(state, Round(0, [CourtMatch(1, ("A", "B"), ("C", "D"))], [], 0))
    state = planner.commit(state, Round(1, [CourtMatch(1, ("A", "C"), ("B", "D"))], [], 0))
    assert state.previous_round_pairs == {pair_key("A", "C"), pair_key("B", "D")}
    assert state.matchup_count[matchup_key(("A", "B"), ("C", "D"))] == 2
    assert state.matchup_last_round[matchup_key(("A", "B"), ("C", "D"))] == 1
    assert state.games_played == {"A": 2, "B": 2, "C": 2, "D": 2}


def test_plan_round_keeps_the_lowest_score(rng):
    players = make_players("ABCDEF")
    scorer = RecordingScorer()
    planner = RoundPlanner(players, 1, fixed_pairs=[("A", "B")], scorer=scorer, rng=rng)
    round_ = planner.plan_round(0, RunningState.initial(players))
    assert scorer.seen
    assert round_.score == min(scorer.seen)


def test_plan_round_stops_at_zero(four, rng):
    scorer = RecordingScorer()
    planner = RoundPlanner(four, 1, scorer=scorer, rng=rng)
    round_ = planner.plan_round(0, RunningState.initial(four))
    assert round_.score == 0
    assert len(scorer.seen) == 1


def seen_everything(players, round_index):
    state = RunningState.initial(players)
    key = matchup_key(("A", "B"), ("C", "D"))
    state.matchup_count[key] = 1
    state.matchup_last_round[key] = round_index - 1
    return state


def test_forbid_policy_drops_repeated_matchups(four, rng):
    planner = RoundPlanner(four, 1, repeat_matchups="forbid", attempts=10, rng=rng)
    with pytest.raises(InfeasibleRound) as info:
        planner.plan_round(3, seen_everything(four, 3))
    assert info.value.round_index == 3
    assert info.value.attempts == 10


def test_penalize_policy_accepts_a_forced_repeat(four, rng):
    planner = RoundPlanner(four, 1, attempts=10, rng=rng)
    round_ = planner.plan_round(3, seen_everything(four, 3))
    assert round_.score >= 4 * 1_000_000
    assert len(round_.courts) == 1


def test_no_pairing_raises(four, rng):
    planner = RoundPlanner(four, 1, forbidden_pairs=[("A", "B"), ("A", "C"), ("A", "D")], rng=rng)
    with pytest.raises(InfeasibleRound):
        planner.plan_round(0, RunningState.initial(four))
