"""Tests for ub_common.errors and ub_common.response."""

from src.ub_common.errors import (
    AppError,
    ConcurrentUpdateError,
    ConstraintViolationError,
    CurrencyUnavailableError,
    FieldError,
    IdempotencyKeyMismatchError,
    InsufficientFundsError,
    InvalidArgumentError,
    RateSourceUnavailableError,
    ServiceUnavailableError,
    StorageUnavailableError,
)
from src.ub_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500
        assert err.retryable is False

    def test_custom_http_status(self) -> None:
        err = AppError(code=2002, message="exists", http_status=409)
        assert err.http_status == 409

    def test_is_exception(self) -> None:
        err = AppError(code=1001, message="test")
        assert isinstance(err, Exception)


class TestClientErrors:
    def test_invalid_argument_lists_fields(self) -> None:
        err = InvalidArgumentError(
            [FieldError("owner_id", "must be a valid UUID"), FieldError("amount", "must not be zero")]
        )
        assert err.code == 1001
        assert err.http_status == 400
        assert len(err.errors) == 2
        assert "owner_id" in err.message
        assert "amount" in err.message

    def test_insufficient_funds(self) -> None:
        err = InsufficientFundsError(required=5000, available=1000)
        assert err.code == 2001
        assert err.http_status == 422
        assert "5000" in err.message
        assert "1000" in err.message
        assert err.retryable is False

    def test_idempotency_key_mismatch_is_final(self) -> None:
        err = IdempotencyKeyMismatchError("req-1")
        assert err.code == 2005
        assert err.http_status == 409
        assert err.retryable is False
        assert "req-1" in err.message

    def test_concurrent_update_is_retryable(self) -> None:
        err = ConcurrentUpdateError("owner")
        assert err.http_status == 409
        assert err.retryable is True


class TestServiceErrors:
    def test_currency_errors_are_service_unavailable(self) -> None:
        assert isinstance(CurrencyUnavailableError("XYZ"), ServiceUnavailableError)
        assert isinstance(RateSourceUnavailableError("boom"), ServiceUnavailableError)

    def test_currency_unavailable(self) -> None:
        err = CurrencyUnavailableError("XYZ")
        assert err.code == 3001
        assert err.http_status == 503
        assert err.currency == "XYZ"

    def test_storage_unavailable_is_retryable(self) -> None:
        err = StorageUnavailableError("deposit read")
        assert err.code == 9004
        assert err.http_status == 503
        assert err.retryable is True
        assert "deposit read" in err.message

    def test_constraint_violation_is_not_client_error(self) -> None:
        err = ConstraintViolationError("negative balance")
        assert err.http_status == 500


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"id": 1})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": 1}

    def test_error(self) -> None:
        resp = error_response(2001, "Insufficient funds")
        assert resp.code == 2001
        assert resp.message == "Insufficient funds"
        assert resp.data is None

    def test_error_with_details(self) -> None:
        resp = error_response(1001, "Invalid", {"errors": [{"field": "amount"}]})
        assert resp.data == {"errors": [{"field": "amount"}]}

    def test_serialization(self) -> None:
        resp = success_response({"balance": 1500})
        d = resp.model_dump()
        assert isinstance(resp, ApiResponse)
        assert "code" in d
        assert "message" in d
        assert "data" in d
        assert "timestamp" in d
        assert "request_id" in d

    def test_error_carries_retryable_and_request_id(self) -> None:
        resp = error_response(9004, "Storage unavailable", retryable=True, request_id="abc-1")
        assert resp.retryable is True
        assert resp.request_id == "abc-1"

    def test_success_defaults(self) -> None:
        resp = success_response({"id": 1})
        assert resp.retryable is False
        assert resp.request_id.startswith("req_")
