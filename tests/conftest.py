"""Shared fixtures: an in-memory registry standing in for the workspace."""

from types import SimpleNamespace
from typing import Any, Callable

import pytest

from provisioning.errors import ResourceAlreadyExists, ResourceNotFound


class FakeRegistry:
    """Name-keyed registry recording every remote call."""

    def __init__(self, kind: str = "compute", existing: dict[str, Any] | None = None):
        self.kind = kind
        self.resources: dict[str, Any] = dict(existing or {})
        self.get_calls: list[str] = []
        self.create_calls: list[Any] = []
        self.create_error: Exception | None = None

    def get(self, name: str) -> Any:
        self.get_calls.append(name)
        if name not in self.resources:
            raise ResourceNotFound(f"{name} not found", name=name)
        return self.resources[name]

    def create(self, spec: Any) -> Any:
        self.create_calls.append(spec)
        if self.create_error is not None:
            raise self.create_error
        if spec.name in self.resources:
            raise ResourceAlreadyExists(f"{spec.name} exists", name=spec.name)
        handle = SimpleNamespace(name=spec.name, id=f"{self.kind}/{spec.name}", version="1")
        self.resources[spec.name] = handle
        return handle

    def list_names(self) -> list[str]:
        return sorted(self.resources)


@pytest.fixture
def make_registry() -> Callable[..., FakeRegistry]:
    return FakeRegistry
