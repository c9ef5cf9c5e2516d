"""
Get or create an Azure ML environment from a conda file, requirements file,
inline packages or a Docker build context.
Run from repo root: python -m infra.ensure_environment --name training-env --conda-file infra/conda.yml
"""

import argparse
import sys

from loguru import logger
from pydantic import ValidationError

from provisioning.errors import ProvisioningError
from provisioning.registry.azure_ml import describe_handle
from provisioning.resolver import get_or_create_environment
from provisioning.schemas.environment import EnvironmentSpec

from infra.connect_workspace import get_ml_client


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Get or create an Azure ML environment.")
    parser.add_argument("--name", required=True, help="Environment name.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--conda-file", help="conda specification YAML.")
    source.add_argument("--requirements", help="pip requirements.txt.")
    source.add_argument("--packages", nargs="+", help="Inline conda packages.")
    parser.add_argument("--pip-packages", nargs="+", default=[], help="Extra pip packages (conda only).")
    parser.add_argument("--python-version", help="Pinned Python version, e.g. 3.10.")
    parser.add_argument("--image", help="Base container image.")
    parser.add_argument("--dockerfile", help="Build context directory containing a Dockerfile.")
    parser.add_argument(
        "--user-managed",
        action="store_true",
        help="Dependencies are managed by the image; package lists are ignored.",
    )
    parser.add_argument("--interpreter-path", help="Interpreter path for user-managed environments.")
    parser.add_argument("--description")
    return parser.parse_args(argv)


def build_spec(args: argparse.Namespace) -> EnvironmentSpec:
    """EnvironmentSpec from parsed CLI arguments."""
    common = {
        "image": args.image,
        "dockerfile": args.dockerfile,
        "user_managed": args.user_managed,
        "interpreter_path": args.interpreter_path,
        "description": args.description,
    }
    if args.conda_file:
        return EnvironmentSpec.from_conda_file(args.conda_file, name=args.name, **common)
    if args.requirements:
        return EnvironmentSpec.from_requirements_file(args.requirements, name=args.name, **common)
    return EnvironmentSpec(
        name=args.name,
        packages=args.packages or [],
        pip_packages=args.pip_packages,
        python_version=args.python_version,
        **common,
    )


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        spec = build_spec(args)
        result = get_or_create_environment(get_ml_client(), spec)
    except (ValidationError, ProvisioningError, ValueError, OSError) as e:
        logger.error("Could not ensure environment {}: {}", args.name, e)
        sys.exit(1)

    verb = "registered" if result.created else "already registered, reusing it"
    logger.success("Environment {} {}", describe_handle(result.handle), verb)


if __name__ == "__main__":
    main()
