"""
Get-or-create resolution of named workspace resources.

# DP-100: Workspace assets - Look up an environment or compute target by name and
reuse it; only create it from its declaration when the workspace has none.

Lookup and create are not atomic. Two callers racing on the same name are
reconciled optimistically: the loser sees "already exists" and reuses the
winner's resource. If the winner's resource is not yet readable, the lookup is
retried a few times; after that the loser gets ResourceAlreadyExists rather
than a not-found miss.
"""

import time
from typing import Any

from azure.ai.ml import MLClient
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from provisioning.errors import ResourceAlreadyExists, ResourceNotFound, SpecValidationError
from provisioning.registry.azure_ml import AzureComputeRegistry, AzureEnvironmentRegistry
from provisioning.registry.base import ResourceRegistry
from provisioning.schemas.compute import AttachedComputeSpec, ManagedClusterSpec
from provisioning.schemas.environment import EnvironmentSpec


class Resolution(BaseModel):
    """Outcome of a get-or-create: the handle and whether it was just created."""

    name: str = Field(..., min_length=1)
    kind: str
    created: bool
    handle: Any = Field(..., repr=False)

    model_config = {"arbitrary_types_allowed": True}


def validate_spec(name: str, spec: BaseModel) -> BaseModel:
    """
    Check a spec locally before any remote call.

    The spec is re-validated from its field values so instances built with
    ``model_construct`` cannot bypass the model's invariants.
    """
    if not name or not name.strip():
        raise SpecValidationError("resource name must be a non-empty string")
    try:
        checked = type(spec).model_validate(spec.model_dump())
    except ValidationError as e:
        raise SpecValidationError(f"invalid spec for {name!r}: {e}", name=name) from e
    if checked.name != name:
        raise SpecValidationError(
            f"spec name {checked.name!r} does not match requested name {name!r}", name=name
        )
    return checked


class GetOrCreateResolver:
    """
    Resolve a name against a registry, creating it from a spec on a miss.

    SpecValidationError and QuotaExceeded are terminal: they propagate to the
    caller and are never retried.
    """

    def __init__(self, registry: ResourceRegistry, refetch_attempts: int = 3, refetch_delay: float = 2.0):
        self.registry = registry
        self.refetch_attempts = max(1, refetch_attempts)
        self.refetch_delay = refetch_delay

    def resolve(self, name: str, spec: BaseModel) -> Resolution:
        kind = self.registry.kind
        checked = validate_spec(name, spec)

        try:
            handle = self.registry.get(name)
            logger.info("Reusing existing {} {}", kind, name)
            return Resolution(name=name, kind=kind, created=False, handle=handle)
        except ResourceNotFound:
            logger.info("No {} named {}; creating it", kind, name)

        try:
            handle = self.registry.create(checked)
        except ResourceAlreadyExists:
            logger.info("{} {} was created concurrently; reusing it", kind.capitalize(), name)
            handle = self._refetch(name)
            return Resolution(name=name, kind=kind, created=False, handle=handle)
        return Resolution(name=name, kind=kind, created=True, handle=handle)

    def _refetch(self, name: str) -> Any:
        """Read back a resource another caller just created."""
        for attempt in range(1, self.refetch_attempts + 1):
            try:
                return self.registry.get(name)
            except ResourceNotFound:
                logger.debug("{} {} not readable yet (attempt {})", self.registry.kind, name, attempt)
                if attempt < self.refetch_attempts:
                    time.sleep(self.refetch_delay)
        raise ResourceAlreadyExists(
            f"{self.registry.kind} {name!r} exists but could not be read after {self.refetch_attempts} attempts",
            name=name,
        )


def get_or_create_environment(ml_client: MLClient, spec: EnvironmentSpec) -> Resolution:
    """Resolve an environment by its spec's name in the client's workspace."""
    return GetOrCreateResolver(AzureEnvironmentRegistry(ml_client)).resolve(spec.name, spec)


def get_or_create_compute(ml_client: MLClient, spec: ManagedClusterSpec | AttachedComputeSpec) -> Resolution:
    """Resolve a compute target by its spec's name in the client's workspace."""
    return GetOrCreateResolver(AzureComputeRegistry(ml_client)).resolve(spec.name, spec)
