"""Shared test fixtures."""
import json

import pytest

from shoespec.core.taxonomy import get_taxonomy
from shoespec.core.types import Article
from shoespec.shared.llm import LLMGateway, LLMProvider


class FakeProvider(LLMProvider):
    """Scripted provider: returns (or raises) queued responses in order.

    The last entry repeats once the script runs out.
    """

    def __init__(self, *script):
        self.script = list(script) or [""]
        self.requests = []
        self.models = []

    @property
    def name(self) -> str:
        return "fake"

    def complete(self, request, model, timeout=90, max_tokens=4000, temperature=0.0):
        self.requests.append(request)
        self.models.append(model)
        index = min(len(self.requests) - 1, len(self.script) - 1)
        step = self.script[index]
        if isinstance(step, Exception):
            raise step
        if isinstance(step, (dict, list)):
            return json.dumps(step)
        return step

    @property
    def calls(self) -> int:
        return len(self.requests)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def taxonomy():
    return get_taxonomy()


@pytest.fixture
def make_gateway():
    """Build a gateway around a FakeProvider that never really sleeps."""
    def _make(*script, **kwargs):
        provider = FakeProvider(*script)
        sleeps = []
        kwargs.setdefault("sleep", sleeps.append)
        gateway = LLMGateway(provider, **kwargs)
        gateway.sleeps = sleeps
        return gateway, provider
    return _make


@pytest.fixture
def hoka_review():
    return Article(
        id="a1",
        title="Hoka Clifton 9 Review",
        content=(
            "The Hoka Clifton 9 is a daily trainer for road runs. "
            "It has a 32mm heel height and 8.9 ounces (252 grams) weight. "
            "It retails for $145."
        ),
        date="2024-05-01",
        source_link="https://example.com/hoka-clifton-9",
    )


@pytest.fixture
def beginners_roundup():
    return Article(
        id="a2",
        title="Best Running Shoes for Beginners",
        content=(
            "The Adidas Adizero Boston 12 is a tempo shoe for road running "
            "with a 36mm heel and 30mm forefoot.\n\n"
            "The Nike Pegasus 41 is a daily trainer with a 37mm heel and "
            "27mm forefoot for road miles.\n\n"
            "The Brooks Ghost 16 is a neutral shoe with a 35mm heel and "
            "23mm forefoot, great on the road."
        ),
    )


@pytest.fixture
def megablast_review():
    return Article(
        id="a3",
        title="Asics Megablast Performance Review",
        content=(
            "The Megablast feels bouncy and light underfoot. "
            "It is a fantastic option for fast days and long runs alike."
        ),
    )


@pytest.fixture
def megablast_response():
    return {
        "items": [
            {
                "brand_name": "ASICS",
                "model": "Megablast",
                "heel_height": 42,
                "forefoot_height": 37,
                "weight": "215 g",
                "price_usd": 260,
                "cushioning_type": "max",
                "surface_type": "road",
                "foot_width": "standard",
                "waterproof": False,
            },
            {
                "brand_name": "Nike",
                "model": "Vaporfly 3",
                "heel_height": 40,
                "forefoot_height": 32,
            },
        ]
    }


@pytest.fixture
def fake_clock():
    return FakeClock()
