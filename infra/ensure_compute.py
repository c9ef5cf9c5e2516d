"""
Get or create an Azure ML compute cluster.
Loads workspace config from .env via connect_workspace (python-dotenv).
Run from repo root: python -m infra.ensure_compute --name cpu-cluster
"""

import argparse
import sys

from loguru import logger
from pydantic import ValidationError

from provisioning.errors import ProvisioningError
from provisioning.resolver import get_or_create_compute
from provisioning.schemas.compute import ManagedClusterSpec

# Uses dotenv via get_ml_client
from infra.connect_workspace import get_ml_client


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Get or create an Azure ML compute cluster.")
    parser.add_argument("--name", default="cpu-cluster", help="Compute target name.")
    parser.add_argument("--size", default="STANDARD_DS11_V2", help="VM size.")
    parser.add_argument("--min-nodes", type=int, default=0)
    parser.add_argument("--max-nodes", type=int, default=4)
    parser.add_argument(
        "--priority",
        choices=["dedicated", "low_priority"],
        default="dedicated",
        help="low_priority is cheaper but nodes can be preempted.",
    )
    parser.add_argument(
        "--idle-seconds",
        type=int,
        default=1800,
        help="Seconds a node stays up after the last job before scaling down.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        # DP-100: Cluster - Min/max nodes and VM size; validated before contacting the workspace
        spec = ManagedClusterSpec(
            name=args.name,
            size=args.size,
            min_nodes=args.min_nodes,
            max_nodes=args.max_nodes,
            priority=args.priority,
            idle_seconds_before_scaledown=args.idle_seconds,
        )
        result = get_or_create_compute(get_ml_client(), spec)
    except (ValidationError, ProvisioningError, ValueError) as e:
        logger.error("Could not ensure compute {}: {}", args.name, e)
        sys.exit(1)

    verb = "created" if result.created else "already exists, reusing it"
    logger.success("Compute target {} {}", result.name, verb)


if __name__ == "__main__":
    main()
