import random
from dataclasses import replace

import pytest

from agrisim.settings.loader import load_settings


class FixedRng:
    """Random source whose uniform() always returns the same value."""

    def __init__(self, value=0.0):
        self.value = value
        self.calls = 0

    def uniform(self, a, b):
        self.calls += 1
        return self.value

    def random(self):
        return 0.5

    def choice(self, seq):
        return seq[0]


class ExplodingRng:
    """Random source that fails on the nth draw."""

    def __init__(self, fail_on=1):
        self.fail_on = fail_on
        self.calls = 0

    def uniform(self, a, b):
        self.calls += 1
        if self.calls >= self.fail_on:
            raise RuntimeError("weather feed exploded")
        return 0.0


@pytest.fixture(autouse=True)
def _clear_data_service_env(monkeypatch):
    for var in ("AGRISIM_DATA_URL", "AGRISIM_DATA_KEY", "SUPABASE_URL", "SUPABASE_ANON_KEY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def settings():
    return load_settings()


@pytest.fixture
def effects_settings(settings):
    return replace(settings, decision_effects=replace(settings.decision_effects, enabled=True))


@pytest.fixture
def zero_noise():
    return FixedRng(0.0)


@pytest.fixture
def seeded_rng():
    return random.Random(1234)
