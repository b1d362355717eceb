"""Shared fixtures."""
import pytest

from fakes import FakeChatClient


@pytest.fixture
def fake_llm():
    return FakeChatClient()
