"""Tests for mapping Azure SDK exceptions onto the provisioning taxonomy."""

import pytest
from azure.ai.ml.exceptions import ValidationErrorType, ValidationException
from azure.core.exceptions import HttpResponseError, ResourceExistsError, ResourceNotFoundError

from provisioning.errors import (
    QuotaExceeded,
    ResourceAlreadyExists,
    ResourceNotFound,
    SpecValidationError,
    raise_translated,
    translate_azure_error,
)


def test_not_found_translated() -> None:
    err = translate_azure_error(ResourceNotFoundError("nope"), "cpu-cluster")
    assert isinstance(err, ResourceNotFound)
    assert err.name == "cpu-cluster"


def test_exists_translated() -> None:
    err = translate_azure_error(ResourceExistsError("taken"), "cpu-cluster")
    assert isinstance(err, ResourceAlreadyExists)


def test_quota_translated() -> None:
    exc = HttpResponseError(message="QuotaExceeded: not enough cores for STANDARD_NC6")
    assert isinstance(translate_azure_error(exc, "gpu-cluster"), QuotaExceeded)


def test_sdk_validation_translated() -> None:
    exc = ValidationException(message="bad size", no_personal_data_message="bad size")
    err = translate_azure_error(exc, "cpu-cluster")
    assert isinstance(err, SpecValidationError)
    assert isinstance(err, ValueError)


def test_other_errors_pass_through() -> None:
    exc = HttpResponseError(message="Internal server error")
    assert translate_azure_error(exc, "x") is exc
    boom = RuntimeError("boom")
    assert translate_azure_error(boom) is boom


def test_raise_translated_chains_original() -> None:
    original = ResourceNotFoundError("nope")
    with pytest.raises(ResourceNotFound) as info:
        raise_translated(original, "env")
    assert info.value.__cause__ is original


def test_raise_translated_reraises_untranslated() -> None:
    with pytest.raises(RuntimeError):
        raise_translated(RuntimeError("boom"))


def test_sdk_resource_not_found_validation_translated() -> None:
    """Latest-version lookups of an unknown asset are a miss, not a bad spec."""
    exc = ValidationException(
        message="Asset env does not exist in workspace ws.",
        no_personal_data_message="Asset does not exist in workspace.",
        error_type=ValidationErrorType.RESOURCE_NOT_FOUND,
    )
    assert isinstance(translate_azure_error(exc, "env"), ResourceNotFound)
