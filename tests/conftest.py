import numpy as np
import pytest

from arena import Arena
from helpers import FakeClock, RecordingSink


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def arena(rng):
    return Arena({'arena_radius': 300, 'arena_margin': 50}, rng=rng)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def clock():
    return FakeClock()
