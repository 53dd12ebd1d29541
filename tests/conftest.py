"""Shared fixtures: a scripted GitHub client and a sleep recorder."""

from __future__ import annotations

import pytest

from leaderboard.github import GitHubClient
from tests.fakes import FakeResponse, FakeSession


@pytest.fixture
def sleeps(monkeypatch) -> list[float]:
    recorded: list[float] = []
    monkeypatch.setattr("leaderboard.github.time.sleep", recorded.append)
    return recorded


@pytest.fixture
def make_client():
    def _make(responses: list[FakeResponse]) -> tuple[GitHubClient, FakeSession]:
        session = FakeSession(responses)
        return GitHubClient("test-token", session=session), session
    return _make
