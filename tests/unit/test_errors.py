"""Tests for cs_common.errors and cs_common.response."""

from src.cs_common.errors import (
    AppError,
    ConflictError,
    FixtureAlreadyAppliedError,
    InsufficientFundsError,
    InvalidSideError,
    MarketCapFloorError,
    PersistenceFailureError,
    ValidationError,
    WindowClosedError,
)
from src.cs_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500
        assert err.kind == "INTERNAL"
        assert err.retryable is False

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1001, message="test"), Exception)


class TestSpecificErrors:
    def test_insufficient_funds(self) -> None:
        err = InsufficientFundsError(required=6500, available=3000)
        assert err.code == 2001
        assert err.http_status == 422
        assert err.kind == "INSUFFICIENT_FUNDS"
        assert "6500" in err.message
        assert "3000" in err.message

    def test_validation_errors_are_400(self) -> None:
        err = InvalidSideError("HOLD")
        assert isinstance(err, ValidationError)
        assert err.http_status == 400
        assert "HOLD" in err.message

    def test_floor(self) -> None:
        err = MarketCapFloorError(4, 900, 1000)
        assert err.code == 3002
        assert err.kind == "MARKET_CAP_FLOOR"

    def test_window_closed(self) -> None:
        assert WindowClosedError(1).kind == "WINDOW_CLOSED"

    def test_already_applied_is_conflict_status(self) -> None:
        assert FixtureAlreadyAppliedError(5).http_status == 409

    def test_conflict_is_retryable(self) -> None:
        err = ConflictError()
        assert err.retryable is True
        assert err.http_status == 409

    def test_persistence_failure_is_generic(self) -> None:
        err = PersistenceFailureError()
        assert err.http_status == 503
        assert err.retryable is False
        assert "temporarily unavailable" in err.message


class TestApiResponse:
    def test_success_response(self) -> None:
        resp = success_response({"id": 1})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": 1}
        assert resp.request_id.startswith("req_")

    def test_error_response_carries_kind(self) -> None:
        resp = error_response(9003, "retry", kind="CONFLICT", retryable=True)
        assert resp.code == 9003
        assert resp.data == {"kind": "CONFLICT", "retryable": True}

    def test_default_model(self) -> None:
        resp = ApiResponse()
        assert resp.code == 0
        assert resp.timestamp
