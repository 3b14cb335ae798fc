from __future__ import annotations

import pytest

from piosync.domain.identity import IdentityRegistry
from piosync.domain.reconciliation import MultiEntityReconciler
from piosync.domain.valuesets import MEDICAL_DEVICE_VALUE_SET, ValueSet
from tests.helpers.backend import FakeBackend


@pytest.fixture
def registry() -> IdentityRegistry:
    return IdentityRegistry()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def reconciler(registry: IdentityRegistry, backend: FakeBackend) -> MultiEntityReconciler:
    return MultiEntityReconciler(registry=registry, backend=backend)


@pytest.fixture(scope="session")
def medical_devices() -> ValueSet:
    return ValueSet(MEDICAL_DEVICE_VALUE_SET)
