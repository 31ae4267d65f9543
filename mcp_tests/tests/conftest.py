import pytest


class DummyMCP:
    """Minimal FastMCP stand-in to capture tool registration."""

    def __init__(self) -> None:
        self.tools = {}

    def tool(self, *, name: str):
        def _decorator(fn):
            self.tools[name] = fn
            return fn
        return _decorator


class FakeClock:
    """Manually advanced clock for expiry tests."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.t = start

    def now(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


@pytest.fixture
def dummy_mcp():
    return DummyMCP()


@pytest.fixture
def clock():
    return FakeClock()
