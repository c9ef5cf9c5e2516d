"""
Error taxonomy for workspace resource provisioning.

NotFound drives the create branch of get-or-create; validation and quota
failures are terminal and surfaced to the caller without retry.
"""

from typing import NoReturn

from azure.ai.ml.exceptions import ValidationErrorType, ValidationException
from azure.core.exceptions import HttpResponseError, ResourceExistsError, ResourceNotFoundError

QUOTA_ERROR_CODES = {"QuotaExceeded", "ClusterCoreQuotaReached", "InsufficientQuota"}


class ProvisioningError(Exception):
    """Base class for all provisioning failures."""

    def __init__(self, message: str, name: str | None = None):
        super().__init__(message)
        self.name = name


class ResourceNotFound(ProvisioningError):
    """No resource with the requested name is registered in the workspace."""


class ResourceAlreadyExists(ProvisioningError):
    """Create lost a race: another caller registered the same name first."""


class SpecValidationError(ProvisioningError, ValueError):
    """The specification is malformed and can never be created."""


class QuotaExceeded(ProvisioningError):
    """The subscription lacks capacity for the requested resource."""


def _error_code(exc: HttpResponseError) -> str:
    error = getattr(exc, "error", None)
    return (getattr(error, "code", None) or "").strip()


def is_quota_error(exc: HttpResponseError) -> bool:
    """True if an HTTP error from the service reports an exhausted quota."""
    if _error_code(exc) in QUOTA_ERROR_CODES:
        return True
    return "quota" in str(exc).lower()


def translate_azure_error(exc: Exception, name: str | None = None) -> Exception:
    """
    Map an Azure SDK exception onto the provisioning taxonomy.

    Returns the translated exception (callers raise it ``from exc``); anything
    not covered is returned unchanged so it propagates as-is.
    """
    if isinstance(exc, ProvisioningError):
        return exc
    # Order matters: both subclass HttpResponseError
    if isinstance(exc, ResourceNotFoundError):
        return ResourceNotFound(f"{name!r} not found: {exc}", name=name)
    if isinstance(exc, ResourceExistsError):
        return ResourceAlreadyExists(f"{name!r} already exists: {exc}", name=name)
    if isinstance(exc, ValidationException):
        # Latest-version lookups of an unknown asset report a miss this way
        if getattr(exc, "error_type", None) == ValidationErrorType.RESOURCE_NOT_FOUND:
            return ResourceNotFound(f"{name!r} not found: {exc}", name=name)
        return SpecValidationError(f"{name!r} rejected by the service: {exc}", name=name)
    if isinstance(exc, HttpResponseError):
        if is_quota_error(exc):
            return QuotaExceeded(f"Quota exceeded while creating {name!r}: {exc}", name=name)
        if exc.status_code == 404:
            return ResourceNotFound(f"{name!r} not found: {exc}", name=name)
        if exc.status_code == 409:
            return ResourceAlreadyExists(f"{name!r} already exists: {exc}", name=name)
    return exc


def raise_translated(exc: Exception, name: str | None = None) -> NoReturn:
    """Re-raise ``exc`` as its provisioning counterpart, chaining the original."""
    translated = translate_azure_error(exc, name)
    if translated is exc:
        raise exc
    raise translated from exc
