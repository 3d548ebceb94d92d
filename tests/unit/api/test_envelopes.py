"""Unit tests for response envelope models."""

import pytest
from pydantic import ValidationError

from findreve_client.api import (
    ErrorEnvelope,
    LoginResult,
    ObjectEnvelope,
    TokenResponse,
)

# =============================================================================
# ObjectEnvelope Tests
# =============================================================================


# Test success envelope
def test_object_envelope_success():
    envelope = ObjectEnvelope.model_validate(
        {"code": 0, "data": {"title": "Keys"}}
    )
    assert envelope.ok
    assert envelope.data == {"title": "Keys"}
    assert envelope.msg is None


# Test failure envelope
def test_object_envelope_failure():
    envelope = ObjectEnvelope.model_validate({"code": 404, "msg": "gone"})
    assert not envelope.ok
    assert envelope.msg == "gone"


# Test unknown fields are ignored
def test_object_envelope_ignores_extra():
    envelope = ObjectEnvelope.model_validate({"code": 0, "trace": "x"})
    assert envelope.ok


# Test missing code is rejected
def test_object_envelope_requires_code():
    with pytest.raises(ValidationError):
        ObjectEnvelope.model_validate({"data": {}})


# =============================================================================
# ErrorEnvelope Tests
# =============================================================================


# Test msg is preferred over detail
def test_error_envelope_prefers_msg():
    envelope = ErrorEnvelope.model_validate({"msg": "a", "detail": "b"})
    assert envelope.message == "a"


# Test detail used when msg missing
def test_error_envelope_detail():
    envelope = ErrorEnvelope.model_validate({"detail": "Not Found"})
    assert envelope.message == "Not Found"


# Test non-string detail yields no message
def test_error_envelope_structured_detail():
    envelope = ErrorEnvelope.model_validate(
        {"detail": [{"loc": ["body"], "msg": "field required"}]}
    )
    assert envelope.message is None


# Test empty body yields no message
def test_error_envelope_empty():
    assert ErrorEnvelope.model_validate({}).message is None


# =============================================================================
# TokenResponse and LoginResult Tests
# =============================================================================


# Test token response keeps extra fields
def test_token_response_extra_fields():
    token = TokenResponse.model_validate(
        {"access_token": "abc", "token_type": "bearer", "expires_in": 3600}
    )
    assert token.access_token == "abc"
    assert token.model_dump()["expires_in"] == 3600


# Test token response rejects empty token
def test_token_response_rejects_empty():
    with pytest.raises(ValidationError):
        TokenResponse.model_validate({"access_token": ""})


# Test LoginResult constructors
def test_login_result_constructors():
    ok = LoginResult.succeeded({"access_token": "abc"})
    failed = LoginResult.failed("nope")

    assert ok.success and ok.data == {"access_token": "abc"}
    assert ok.error is None
    assert not failed.success and failed.error == "nope"
    assert failed.data is None
