from __future__ import annotations

import pytest

from inventory_viewer.clients.errors import (
    AUTH_MESSAGE,
    AuthError,
    FailureKind,
    SheetApiError,
    TransportError,
    UploadValidationError,
    describe_failure,
    is_auth_failure,
)
from inventory_viewer.config.loader import ConfigError
from inventory_viewer.sheets.decoder import DecodeError


@pytest.mark.parametrize(
    "status,message",
    [
        (401, "whatever"),
        (403, "forbidden"),
        (None, "HTTP 401 returned"),
        (500, "Request had invalid authentication credentials."),
        (400, "OAuth token expired"),
    ],
)
def test_is_auth_failure_true(status, message):
    assert is_auth_failure(status, message) is True


def test_is_auth_failure_false():
    assert is_auth_failure(500, "Backend unavailable") is False
    assert is_auth_failure(None, "") is False


def test_auth_error_maps_to_session_expired():
    assert describe_failure(AuthError("token rejected", status=401)) == (FailureKind.AUTH, AUTH_MESSAGE)


def test_sheet_api_error_with_auth_marker_is_auth():
    kind, message = describe_failure(SheetApiError("Invalid Credentials", status=400))
    assert kind is FailureKind.AUTH
    assert message == AUTH_MESSAGE


def test_sheet_api_error_passthrough():
    assert describe_failure(SheetApiError("Backend unavailable", status=503)) == (
        FailureKind.TRANSPORT,
        "Backend unavailable",
    )


def test_transport_error_asks_for_retry():
    kind, message = describe_failure(TransportError("connection refused"))
    assert kind is FailureKind.TRANSPORT
    assert message == "Network error: connection refused. Please retry."


def test_config_and_validation_errors():
    assert describe_failure(ConfigError("Sheet ID not configured")) == (FailureKind.CONFIG, "Sheet ID not configured")
    assert describe_failure(UploadValidationError("Please select an image file")) == (
        FailureKind.VALIDATION,
        "Please select an image file",
    )


def test_decode_error():
    kind, message = describe_failure(DecodeError("bad csv"))
    assert kind is FailureKind.TRANSPORT
    assert "bad csv" in message


def test_unknown_error_uses_class_name_when_empty():
    assert describe_failure(RuntimeError()) == (FailureKind.UNKNOWN, "RuntimeError")
