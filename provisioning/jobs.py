"""Command jobs that run a training script against resolved resources.

# DP-100: Jobs - A command job binds a script to an environment and a compute target.
"""

from pathlib import Path
from typing import Any

from azure.ai.ml import MLClient, command
from azure.ai.ml.entities import Job
from loguru import logger

from provisioning.resolver import Resolution


def environment_reference(environment: Resolution | Any | str) -> str:
    """``azureml:<name>:<version>`` for a handle, or ``azureml:<name>@latest`` if unversioned."""
    if isinstance(environment, str):
        return environment
    handle = environment.handle if isinstance(environment, Resolution) else environment
    version = getattr(handle, "version", None)
    if version:
        return f"azureml:{handle.name}:{version}"
    return f"azureml:{handle.name}@latest"


def compute_reference(compute: Resolution | Any | str) -> str:
    if isinstance(compute, str):
        return compute
    # Resolution and SDK entities both expose .name
    return compute.name


def build_command_job(
    code: Path | str,
    command_line: str,
    environment: Resolution | Any | str,
    compute: Resolution | Any | str,
    experiment_name: str | None = None,
    display_name: str | None = None,
    inputs: dict[str, Any] | None = None,
    environment_variables: dict[str, str] | None = None,
) -> Job:
    """
    Build a command job for ``command_line`` run from the ``code`` folder.

    Args:
        code: Local folder uploaded as the job's working directory.
        command_line: Shell command, e.g. ``python train.py --epochs 5``.
        environment: Resolved environment, SDK entity, or ``azureml:`` reference.
        compute: Resolved compute target, SDK entity, or target name.
    """
    if not str(command_line).strip():
        raise ValueError("command_line must not be empty")
    return command(
        code=str(code),
        command=command_line,
        environment=environment_reference(environment),
        compute=compute_reference(compute),
        experiment_name=experiment_name,
        display_name=display_name,
        inputs=inputs or {},
        environment_variables=environment_variables or {},
    )


def submit_job(ml_client: MLClient, job: Job, wait: bool = False) -> Job:
    """Submit ``job``; with ``wait`` stream its logs until it finishes."""
    returned = ml_client.jobs.create_or_update(job)
    logger.info("Submitted job {} ({})", returned.name, getattr(returned, "studio_url", ""))
    if wait:
        ml_client.jobs.stream(returned.name)
        returned = ml_client.jobs.get(returned.name)
        logger.info("Job {} finished with status {}", returned.name, returned.status)
    return returned
