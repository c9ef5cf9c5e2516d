"""Azure ML workspace registries for environments and compute targets.

# DP-100: Workspace assets - Environments and compute are registered by name in the
workspace and reused across sessions.
"""

from typing import Any

from azure.ai.ml import MLClient
from azure.ai.ml.entities import (
    AmlCompute,
    BuildContext,
    Compute,
    Environment,
    KubernetesCompute,
    VirtualMachineCompute,
    VirtualMachineSshSettings,
)
from azure.core.exceptions import AzureError
from loguru import logger

from provisioning.errors import ResourceNotFound, raise_translated
from provisioning.schemas.compute import AttachedComputeSpec, ManagedClusterSpec
from provisioning.schemas.environment import EnvironmentSpec

DEFAULT_BASE_IMAGE = "mcr.microsoft.com/azureml/openmpi4.1.0-ubuntu20.04:latest"
INTERPRETER_TAG = "interpreter_path"


def build_environment_entity(spec: EnvironmentSpec) -> Environment:
    """
    Translate an EnvironmentSpec into an SDK Environment entity.

    User-managed specs carry no conda file: the image provides the interpreter,
    whose path is recorded in the tags.
    """
    tags = dict(spec.tags)
    tags["package_manager"] = spec.package_manager
    if spec.user_managed:
        tags[INTERPRETER_TAG] = spec.interpreter_path or "python"

    if spec.dockerfile:
        # Build context supplies its own dependencies; conda file is optional
        return Environment(
            name=spec.name,
            description=spec.description,
            tags=tags,
            build=BuildContext(path=spec.dockerfile),
            conda_file=spec.to_conda_dict(),
        )

    return Environment(
        name=spec.name,
        description=spec.description,
        tags=tags,
        image=spec.image or DEFAULT_BASE_IMAGE,
        conda_file=spec.to_conda_dict(),
    )


def build_compute_entity(spec: ManagedClusterSpec | AttachedComputeSpec) -> Compute:
    """Translate a compute spec into an SDK Compute entity."""
    if isinstance(spec, ManagedClusterSpec):
        return AmlCompute(
            name=spec.name,
            description=spec.description,
            size=spec.size,
            min_instances=spec.min_nodes,
            max_instances=spec.max_nodes,
            tier=spec.priority,
            idle_time_before_scale_down=spec.idle_seconds_before_scaledown,
            location=spec.location,
            tags=dict(spec.tags) or None,
        )
    if spec.target == "kubernetes":
        return KubernetesCompute(
            name=spec.name,
            description=spec.description,
            resource_id=spec.resource_id,
            namespace=spec.namespace,
        )
    return VirtualMachineCompute(
        name=spec.name,
        description=spec.description,
        resource_id=spec.resource_id,
        ssh_settings=VirtualMachineSshSettings(
            admin_username=spec.username,
            admin_password=spec.password,
            ssh_port=spec.ssh_port,
            ssh_private_key_file=spec.private_key_file,
        ),
    )


class AzureEnvironmentRegistry:
    """
    Environments registered in an Azure ML workspace.

    # DP-100: Environments - Registering an environment creates a new version;
    lookups resolve the latest one.
    """

    kind = "environment"

    def __init__(self, ml_client: MLClient):
        self.ml_client = ml_client

    def get(self, name: str) -> Environment:
        try:
            env = self.ml_client.environments.get(name=name, label="latest")
        except AzureError as e:
            raise_translated(e, name)
        if env is None:
            raise ResourceNotFound(f"environment {name!r} not found", name=name)
        logger.debug("Found environment {} version {}", env.name, env.version)
        return env

    def create(self, spec: EnvironmentSpec) -> Environment:
        entity = build_environment_entity(spec)
        try:
            env = self.ml_client.environments.create_or_update(entity)
        except AzureError as e:
            raise_translated(e, spec.name)
        logger.info("Registered environment {} version {}", env.name, env.version)
        return env

    def list_names(self) -> list[str]:
        try:
            return sorted({env.name for env in self.ml_client.environments.list()})
        except AzureError as e:
            raise_translated(e)


class AzureComputeRegistry:
    """
    Compute targets in an Azure ML workspace.

    # DP-100: Compute targets - Creation is a long-running operation; create()
    waits on the poller before returning.
    """

    kind = "compute"

    def __init__(self, ml_client: MLClient):
        self.ml_client = ml_client

    def get(self, name: str) -> Compute:
        try:
            compute = self.ml_client.compute.get(name)
        except AzureError as e:
            raise_translated(e, name)
        if compute is None:
            raise ResourceNotFound(f"compute target {name!r} not found", name=name)
        logger.debug("Found compute target {} ({})", compute.name, compute.type)
        return compute

    def create(self, spec: ManagedClusterSpec | AttachedComputeSpec) -> Compute:
        entity = build_compute_entity(spec)
        verb = "Provisioning" if spec.kind == "managed" else "Attaching"
        logger.info("{} compute target {}...", verb, spec.name)
        try:
            poller = self.ml_client.compute.begin_create_or_update(entity)
            compute = poller.result()
        except AzureError as e:
            raise_translated(e, spec.name)
        logger.info("Compute target {} is ready (size: {})", compute.name, getattr(compute, "size", None))
        return compute

    def list_names(self) -> list[str]:
        try:
            return sorted(c.name for c in self.ml_client.compute.list())
        except AzureError as e:
            raise_translated(e)


def describe_handle(handle: Any) -> str:
    """Human-readable reference for a resolved handle (name:version for environments)."""
    version = getattr(handle, "version", None)
    name = getattr(handle, "name", str(handle))
    return f"{name}:{version}" if version else str(name)
