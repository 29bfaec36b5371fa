"""Shared fixtures: silent logging, fresh settings, a page context."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from toolchat.foundation.config import clear_settings_cache
from toolchat.runtime.observability import configure_logging
from toolchat.tools import PageContext, SessionContext


@pytest.fixture(autouse=True)
def quiet_logging() -> Iterator[None]:
    configure_logging(format="none")
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def page() -> PageContext:
    return PageContext(title="Pricing", content="Basic plan: 10 EUR/month. Pro plan: 25 EUR/month.")


@pytest.fixture
def session_context(page: PageContext) -> SessionContext:
    return SessionContext(page=page)

