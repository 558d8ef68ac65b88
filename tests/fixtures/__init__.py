"""Test fixtures for GutSafe."""

from tests.fixtures.clock import FakeMonotonic, FakeWallClock

__all__ = [
    "FakeMonotonic",
    "FakeWallClock",
]
