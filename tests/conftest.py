from __future__ import annotations

from typing import Iterator

import pytest

from lookalike import Registry, registry


@pytest.fixture(name="reg")
def registry_fixture() -> Registry:
    return Registry()


@pytest.fixture(autouse=True)
def _teardown_fixture() -> Iterator[None]:
    yield
    registry.reset()
