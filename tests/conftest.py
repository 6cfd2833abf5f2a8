import pytest

from app.services.ai.model_client import ModelClient
from app.services.ai.rate_governor import RateGovernor
from tests.fakes import FakeClock, FakeOpenAI, make_item


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def governor(fake_clock):
    return RateGovernor(max_calls=10, window_seconds=60, cooldown_seconds=60, clock=fake_clock)


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def model_client(governor, fake_openai):
    return ModelClient(governor=governor, client=fake_openai)


@pytest.fixture
def brain_items():
    return [make_item(i) for i in range(1, 4)]
