"""
Provisioning schemas — Pydantic v2 models for environments and compute targets.
"""

from provisioning.schemas.compute import (
    AttachedComputeSpec,
    ComputeTargetSpec,
    ManagedClusterSpec,
    parse_compute_spec,
)
from provisioning.schemas.environment import EnvironmentSpec

__all__ = [
    "AttachedComputeSpec",
    "ComputeTargetSpec",
    "EnvironmentSpec",
    "ManagedClusterSpec",
    "parse_compute_spec",
]
