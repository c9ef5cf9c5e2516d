"""CLI to provision every environment and compute target declared in a resource file.

# DP-100: Workspace assets - Declarative, repeatable setup of the resources a
training run depends on.
"""

import argparse
import sys
from pathlib import Path

# Project root
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from loguru import logger
from pydantic import ValidationError

from infra.connect_workspace import get_ml_client
from provisioning.config import load_resource_config, provision
from provisioning.errors import ProvisioningError
from provisioning.registry.azure_ml import AzureComputeRegistry, AzureEnvironmentRegistry

DEFAULT_CONFIG = Path(__file__).resolve().parents[1] / "infra" / "resources.yml"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Get or create the environments and compute targets in a resource file."
    )
    parser.add_argument(
        "--config",
        type=str,
        default=str(DEFAULT_CONFIG),
        help="Resource YAML (default: infra/resources.yml).",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List environments and compute targets already in the workspace, then exit.",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Validate the resource file without contacting the workspace.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    if not args.list:
        try:
            config = load_resource_config(args.config)
        except (OSError, ValidationError, ValueError) as e:
            logger.error("Invalid resource file {}: {}", args.config, e)
            sys.exit(1)
        if args.validate_only:
            logger.success("{} is valid", args.config)
            return

    try:
        ml_client = get_ml_client()
    except ValueError as e:
        logger.error("Workspace not configured: {}", e)
        sys.exit(1)

    if args.list:
        try:
            environments = AzureEnvironmentRegistry(ml_client).list_names()
            compute = AzureComputeRegistry(ml_client).list_names()
        except ProvisioningError as e:
            logger.error("Could not list workspace resources: {}", e)
            sys.exit(1)
        print("\nEnvironments:")
        for name in environments:
            print(f"  {name}")
        print("Compute targets:")
        for name in compute:
            print(f"  {name}")
        return

    try:
        report = provision(ml_client, config)
    except ProvisioningError as e:
        logger.error("Provisioning failed: {}", e)
        sys.exit(1)

    print("\nProvision Summary:")
    print(f"  Created: {len(report.created)}")
    print(f"  Reused:  {len(report.reused)}")
    for key, ref in report.references.items():
        print(f"    {key} -> {ref}")
    logger.success("All resources ready")


if __name__ == "__main__":
    main()
