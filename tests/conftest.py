"""Shared fixtures: fixed identities."""

import pytest

from nostr_dm.keys import PrivateKey


@pytest.fixture
def alice() -> PrivateKey:
    return PrivateKey("11" * 32)


@pytest.fixture
def bob() -> PrivateKey:
    return PrivateKey("22" * 32)


@pytest.fixture
def carol() -> PrivateKey:
    return PrivateKey("33" * 32)
