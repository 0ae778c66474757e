"""Shared test fixtures for SelfHeal test suite."""

from unittest.mock import AsyncMock

import pytest

from selfheal.llm.providers.mock import MockLlmClient
from selfheal.self_healing.models import ErrorInfo
from selfheal.shared.infrastructure.config_source import DictConfigSource
from selfheal.shared.infrastructure.logging import configure_logging

# Route structlog through stdlib logging on stderr so command output stays clean
configure_logging()


@pytest.fixture
def null_error():
    """The canonical null-dereference error."""
    return ErrorInfo(
        type="TypeError",
        message="Cannot read property 'x' of undefined",
        file="a.ts",
        line=10,
    )


@pytest.fixture
def unmatched_error():
    """An error no fault rule recognises."""
    return ErrorInfo(
        type="SyntaxError",
        message="Unexpected token '}'",
        file="src/parser.ts",
        line=42,
    )


@pytest.fixture
def empty_config_source():
    return DictConfigSource({})


@pytest.fixture
def mock_client():
    return MockLlmClient()


@pytest.fixture
def mock_client_factory(mock_client):
    """Client factory returning the shared mock client."""
    return AsyncMock(return_value=mock_client)
