"""
Azure ML workspace connection using SDK v2.
Loads configuration from environment variables via python-dotenv.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (parent of infra/)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)

# DP-100: Workspace connection - MLClient is the SDK v2 entry point for workspace
from azure.ai.ml import MLClient
from azure.identity import DefaultAzureCredential
from loguru import logger

_REQUIRED_VARS = ("AZURE_SUBSCRIPTION_ID", "AZURE_RESOURCE_GROUP", "AZURE_ML_WORKSPACE_NAME")


def get_ml_client() -> MLClient:
    """
    Return an MLClient connected to the Azure ML workspace.
    Uses DefaultAzureCredential (CLI, managed identity, or env auth).

    If AZURE_ML_CONFIG_PATH points at a workspace config.json it is used instead
    of the individual variables.
    """
    # DP-100: Authentication - DefaultAzureCredential supports CLI, MI, service principal
    credential = DefaultAzureCredential()

    config_path = os.getenv("AZURE_ML_CONFIG_PATH")
    if config_path:
        logger.debug("Connecting to workspace from config file {}", config_path)
        return MLClient.from_config(credential=credential, path=config_path)

    missing = [var for var in _REQUIRED_VARS if not os.getenv(var)]
    if missing:
        raise ValueError(f"Set {', '.join(missing)} in .env (or AZURE_ML_CONFIG_PATH)")

    workspace_name = os.environ["AZURE_ML_WORKSPACE_NAME"]
    logger.debug("Connecting to workspace {}", workspace_name)
    # DP-100: ML Client - Connects to workspace for jobs, models, data, compute
    return MLClient(
        credential=credential,
        subscription_id=os.environ["AZURE_SUBSCRIPTION_ID"],
        resource_group_name=os.environ["AZURE_RESOURCE_GROUP"],
        workspace_name=workspace_name,
    )
