import random

import pytest

from doubles_scheduler import Player


def make_players(names, level=4, gender="M"):
    return [Player(n, level, gender) for n in names]


@pytest.fixture
def four():
    return make_players("ABCD")


@pytest.fixture
def eight():
    return make_players("ABCDEFGH")


@pytest.fixture
def rng():
    return random.Random(1234)
