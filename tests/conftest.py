"""Shared fixtures for DenueWorker tests."""

from __future__ import annotations

import pytest


class RecordingSleep:
    """Async sleep stand-in that records durations instead of waiting."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def positional_row(
    clee="",
    name="",
    activity="",
    lon=-101.67374,
    lat=21.12908,
    colony="",
    fields=None,
):
    """A DENUE Buscar row in its native 19-field positional shape."""
    row = [""] * 19
    row[0] = clee
    row[2] = name
    row[4] = activity
    row[10] = colony
    row[17] = lon
    row[18] = lat
    for index, value in (fields or {}).items():
        row[index] = value
    return row


@pytest.fixture
def sleeper():
    return RecordingSleep()
