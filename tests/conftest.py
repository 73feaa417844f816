import os
import random

import pytest
import yaml

from barsim.entities import Order, Recipe

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

@pytest.fixture
def cfg():
    with open(os.path.join(ROOT, "config", "baseline.yaml"), "r") as f:
        return yaml.safe_load(f)

@pytest.fixture
def rng():
    return random.Random(7)

@pytest.fixture
def gin_tonic():
    return Recipe.of("gin_tonic", {"gin": 2, "tonic": 3}, price=5)

@pytest.fixture
def single_order(gin_tonic):
    """Order builder that always asks for one gin tonic."""
    return lambda: Order([gin_tonic])

class FakeClock:
    def __init__(self, is_open=True):
        self.is_open = is_open
        self.has_closed = False

    def tick(self, dt, now):
        pass

@pytest.fixture
def clock():
    return FakeClock()

