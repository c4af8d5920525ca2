"""Shared fixtures."""

import pytest

from project_central.storage import LocalProjectStore
from project_central.tools import OperationDispatcher, build_default_registry


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def store(tmp_path, anyio_backend):
    store = LocalProjectStore(tmp_path / "data.json", save_interval=3600)
    yield store
    await store.close()


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def dispatcher(registry, store):
    return OperationDispatcher(registry, store)
