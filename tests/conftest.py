"""Shared fixtures for the AgentFlow client test suite.

Every test starts from clean settings: ``AGENTFLOW_*`` variables from the
developer's shell are removed and the cached settings are reset, so no
test depends on the machine it runs on.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from agentflow_client.settings import get_settings
from tests.helpers.http import BASE_URL, RecordingTransport


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch):
    for name in list(os.environ):
        if name.upper().startswith("AGENTFLOW_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(os.path.dirname(__file__))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_client():
    """Factory building an AgentFlowClient over a recording mock transport.

    Usage:
        client, transport = make_client(handler, auth_token="t")
    """
    from agentflow_client.client import AgentFlowClient

    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any):
        transport = RecordingTransport(handler)
        kwargs.setdefault("base_url", BASE_URL)
        return AgentFlowClient(transport=transport, **kwargs), transport

    return _make
