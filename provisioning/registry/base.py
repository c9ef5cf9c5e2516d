"""Registry protocol: the remote namespace that owns environments and compute targets."""

from typing import Any, Protocol


class ResourceRegistry(Protocol):
    """
    Name-keyed remote registry.

    ``get`` raises ResourceNotFound on a miss; ``create`` blocks until the
    remote operation completes and may raise ResourceAlreadyExists,
    SpecValidationError or QuotaExceeded.
    """

    kind: str

    def get(self, name: str) -> Any:
        ...

    def create(self, spec: Any) -> Any:
        ...

    def list_names(self) -> list[str]:
        ...
