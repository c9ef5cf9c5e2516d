"""
Get-or-create provisioning of Azure ML environments and compute targets.
"""

from provisioning.errors import (
    ProvisioningError,
    QuotaExceeded,
    ResourceAlreadyExists,
    ResourceNotFound,
    SpecValidationError,
)
from provisioning.resolver import (
    GetOrCreateResolver,
    Resolution,
    get_or_create_compute,
    get_or_create_environment,
)
from provisioning.schemas import (
    AttachedComputeSpec,
    EnvironmentSpec,
    ManagedClusterSpec,
    parse_compute_spec,
)

__all__ = [
    "AttachedComputeSpec",
    "EnvironmentSpec",
    "GetOrCreateResolver",
    "ManagedClusterSpec",
    "ProvisioningError",
    "QuotaExceeded",
    "Resolution",
    "ResourceAlreadyExists",
    "ResourceNotFound",
    "SpecValidationError",
    "get_or_create_compute",
    "get_or_create_environment",
    "parse_compute_spec",
]
