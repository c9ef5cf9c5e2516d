"""
Pydantic v2 models for compute targets: managed elastic clusters and attached
external compute.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, model_validator

ComputePriority = Literal["dedicated", "low_priority"]
AttachedTarget = Literal["virtual_machine", "kubernetes"]


# DP-100: Compute targets - Managed cluster scales between min and max nodes on demand
class ManagedClusterSpec(BaseModel):
    """Workspace-managed elastic cluster (AmlCompute)."""

    kind: Literal["managed"] = "managed"
    name: str = Field(..., min_length=1)
    size: str = Field(..., min_length=1, description="VM size, e.g. STANDARD_DS11_V2")
    min_nodes: int = Field(0, ge=0)
    max_nodes: int = Field(4, ge=1)
    priority: ComputePriority = Field("dedicated", description="low_priority nodes may be preempted")
    idle_seconds_before_scaledown: int = Field(1800, ge=0)
    location: str | None = None
    description: str | None = None
    tags: dict[str, str] = Field(default_factory=dict)

    model_config = {"str_strip_whitespace": True, "extra": "forbid"}

    @model_validator(mode="after")
    def _check_node_range(self) -> "ManagedClusterSpec":
        if self.min_nodes > self.max_nodes:
            raise ValueError(f"min_nodes ({self.min_nodes}) exceeds max_nodes ({self.max_nodes})")
        return self


# DP-100: Compute targets - Attached compute is managed outside the workspace
class AttachedComputeSpec(BaseModel):
    """External machine or cluster attached to the workspace by resource id."""

    kind: Literal["attached"] = "attached"
    name: str = Field(..., min_length=1)
    resource_id: str = Field(..., min_length=1, description="ARM resource id of the external compute")
    target: AttachedTarget = "virtual_machine"
    username: str | None = None
    password: str | None = Field(None, repr=False)
    private_key_file: str | None = None
    ssh_port: int = Field(22, ge=1, le=65535)
    namespace: str = "default"
    description: str | None = None

    model_config = {"str_strip_whitespace": True, "extra": "forbid"}

    @model_validator(mode="after")
    def _check_credentials(self) -> "AttachedComputeSpec":
        if self.target == "virtual_machine":
            if not self.username:
                raise ValueError("attaching a virtual machine requires a username")
            if not (self.password or self.private_key_file):
                raise ValueError("attaching a virtual machine requires a password or private_key_file")
        return self


ComputeTargetSpec = Annotated[
    Union[ManagedClusterSpec, AttachedComputeSpec],
    Field(discriminator="kind"),
]

_COMPUTE_ADAPTER: TypeAdapter = TypeAdapter(ComputeTargetSpec)


def parse_compute_spec(data: dict[str, Any]) -> ManagedClusterSpec | AttachedComputeSpec:
    """Validate a mapping as a compute spec; ``kind`` defaults to managed."""
    if not isinstance(data, dict):
        raise ValueError(f"compute entry must be a mapping, got {data!r}")
    payload = {"kind": "managed", **data}
    return _COMPUTE_ADAPTER.validate_python(payload)
