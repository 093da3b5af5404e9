from doubles_scheduler import active_players_per_round, assign_courts


def test_fills_courts_two_pairs_at_a_time():
    teams = [("A", "B"), ("C", "D"), ("E", "F"), ("G", "H")]
    courts, resting = assign_courts(teams, [], 2)
    assert [(c.court, c.team1, c.team2) for c in courts] == [
        (1, ("A", "B"), ("C", "D")),
        (2, ("E", "F"), ("G", "H")),
    ]
    assert resting == []


def test_surplus_pairs_rest_together():
    teams = [("A", "B"), ("C", "D"), ("E", "F")]
    courts, resting = assign_courts(teams, ["G"], 1)
    assert len(courts) == 1
    assert resting == ["G", "E", "F"]


def test_unused_courts_stay_empty():
    courts, resting = assign_courts([("A", "B"), ("C", "D")], [], 3)
    assert len(courts) == 1
    assert resting == []


def test_lone_pair_gets_a_court_without_opponent():
    courts, resting = assign_courts([("A", "B")], ["C"], 2)
    assert len(courts) == 1
    assert courts[0].team2 is None
    assert courts[0].matchup_key() is None
    assert resting == ["C"]


def test_odd_pair_out_rests_when_others_play():
    courts, resting = assign_courts([("A", "B"), ("C", "D"), ("E", "F")], [], 2)
    assert len(courts) == 1
    assert resting == ["E", "F"]


def test_active_players_per_round():
    assert active_players_per_round(8, 2) == 8
    assert active_players_per_round(9, 2) == 8
    assert active_players_per_round(6, 2) == 4
    assert active_players_per_round(12, 2) == 8
    assert active_players_per_round(3, 1) == 2
