"""
Declarative resource file: environments and compute targets to provision.

Example (infra/resources.yml)::

    compute:
      - name: cpu-cluster
        size: STANDARD_DS11_V2
        max_nodes: 4
    environments:
      - name: training-env
        conda_file: conda.yml
        image: mcr.microsoft.com/azureml/openmpi4.1.0-ubuntu20.04:latest
"""

from pathlib import Path
from typing import Any

import yaml
from azure.ai.ml import MLClient
from loguru import logger
from pydantic import BaseModel, Field

from provisioning.registry.azure_ml import AzureComputeRegistry, AzureEnvironmentRegistry, describe_handle
from provisioning.resolver import GetOrCreateResolver
from provisioning.schemas.compute import (
    AttachedComputeSpec,
    ComputeTargetSpec,
    ManagedClusterSpec,
    parse_compute_spec,
)
from provisioning.schemas.environment import EnvironmentSpec


class ResourceConfig(BaseModel):
    """Validated contents of a resource file."""

    environments: list[EnvironmentSpec] = Field(default_factory=list)
    compute: list[ComputeTargetSpec] = Field(default_factory=list)

    model_config = {"extra": "forbid"}


class ProvisionReport(BaseModel):
    """Resources created vs. reused by a provisioning pass, keyed "<kind>/<name>"."""

    created: list[str] = Field(default_factory=list)
    reused: list[str] = Field(default_factory=list)
    references: dict[str, str] = Field(default_factory=dict)


# Fields a conda or requirements file supplies itself
_CONDA_FILE_FIELDS = ("packages", "pip_packages", "channels", "python_version", "package_manager")
_REQUIREMENTS_FILE_FIELDS = ("packages", "pip_packages", "channels", "package_manager")


def _environment_entry(item: dict[str, Any], base_dir: Path) -> EnvironmentSpec:
    """Inline environment entry, or one whose packages come from a conda or requirements file."""
    if not isinstance(item, dict):
        raise ValueError(f"environment entry must be a mapping, got {item!r}")
    item = dict(item)
    label = item.get("name")
    conda_file = item.pop("conda_file", None)
    requirements = item.pop("requirements_file", None)
    if conda_file and requirements:
        raise ValueError(f"environment entry {label!r}: conda_file and requirements_file are exclusive")

    if conda_file or requirements:
        source, fields = ("conda_file", _CONDA_FILE_FIELDS) if conda_file else ("requirements_file", _REQUIREMENTS_FILE_FIELDS)
        clashing = [field for field in fields if field in item]
        if clashing:
            raise ValueError(f"environment entry {label!r}: {clashing} cannot be combined with {source}")
    if requirements and not label:
        raise ValueError(f"environment entry with requirements_file {requirements!r} needs a name")

    if conda_file:
        return EnvironmentSpec.from_conda_file(base_dir / conda_file, **item)
    if requirements:
        name = item.pop("name")
        return EnvironmentSpec.from_requirements_file(base_dir / requirements, name=name, **item)
    return EnvironmentSpec(**item)


def load_resource_config(path: Path | str) -> ResourceConfig:
    """
    Load and validate a resource YAML file.

    ``conda_file`` / ``requirements_file`` entries are resolved relative to the
    YAML file. Compute entries default to ``kind: managed``.
    """
    p = Path(path)
    with open(p, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{p} must contain a mapping with 'environments' and/or 'compute'")

    unknown = set(raw) - {"environments", "compute"}
    if unknown:
        raise ValueError(f"{p}: unknown top-level keys {sorted(unknown)}")

    environments = [_environment_entry(item, p.parent) for item in raw.get("environments") or []]
    compute = [parse_compute_spec(item) for item in raw.get("compute") or []]
    config = ResourceConfig(environments=environments, compute=compute)
    logger.info(
        "Loaded {}: {} environments, {} compute targets",
        p,
        len(config.environments),
        len(config.compute),
    )
    return config


def provision(ml_client: MLClient, config: ResourceConfig) -> ProvisionReport:
    """
    Get-or-create every resource in ``config``; compute targets first.

    Stops at the first terminal failure (validation or quota).
    """
    report = ProvisionReport()
    compute_resolver = GetOrCreateResolver(AzureComputeRegistry(ml_client))
    env_resolver = GetOrCreateResolver(AzureEnvironmentRegistry(ml_client))

    pending: list[tuple[GetOrCreateResolver, ManagedClusterSpec | AttachedComputeSpec | EnvironmentSpec]] = [
        (compute_resolver, spec) for spec in config.compute
    ]
    pending += [(env_resolver, spec) for spec in config.environments]

    for resolver, spec in pending:
        result = resolver.resolve(spec.name, spec)
        key = f"{result.kind}/{spec.name}"
        (report.created if result.created else report.reused).append(key)
        report.references[key] = describe_handle(result.handle)

    logger.info("Provisioned {} new, reused {} existing", len(report.created), len(report.reused))
    return report
