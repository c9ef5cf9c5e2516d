"""Remote registries for environments and compute targets."""

from provisioning.registry.azure_ml import (
    AzureComputeRegistry,
    AzureEnvironmentRegistry,
    build_compute_entity,
    build_environment_entity,
    describe_handle,
)
from provisioning.registry.base import ResourceRegistry

__all__ = [
    "AzureComputeRegistry",
    "AzureEnvironmentRegistry",
    "ResourceRegistry",
    "build_compute_entity",
    "build_environment_entity",
    "describe_handle",
]
