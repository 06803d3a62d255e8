# =============================================================================
# tests/unit/test_errors.py
# Unit Tests for Error Handling and ServiceResult
# =============================================================================


class TestHandleError:

    def test_known_error_message(self):
        from vetbook_core.errors import RemoteStoreError, handle_error

        assert handle_error(RemoteStoreError("Store unreachable", table="pets"), log_error=False) == "Store unreachable"

    def test_unrecoverable_error_points_to_support(self):
        from vetbook_core.errors import ConfigurationError, handle_error

        message = handle_error(ConfigurationError("Missing Supabase key"), log_error=False)

        assert message == "Missing Supabase key. Please contact support."

    def test_unknown_error_gets_generic_message(self):
        from vetbook_core.errors import handle_error
        from vetbook_core.errors.handlers import GENERIC_ERROR_MESSAGE

        assert handle_error(KeyError("boom"), log_error=False) == GENERIC_ERROR_MESSAGE

    def test_error_boundary_returns_default(self):
        from vetbook_core.errors import error_boundary

        @error_boundary(default_return=[])
        def load():
            raise RuntimeError("disk gone")

        assert load() == []

    def test_to_dict(self):
        from vetbook_core.errors import AuthTimeoutError

        payload = AuthTimeoutError("Login timed out", timeout=10.0, action="sign_in").to_dict()

        assert payload["error_type"] == "AuthTimeoutError"
        assert payload["code"] == "AUTH_TIMEOUT"
        assert payload["details"] == {"timeout_seconds": 10.0, "action": "sign_in"}


class TestServiceResult:

    def test_truthiness_follows_success(self):
        from vetbook_core.services import ServiceResult

        assert ServiceResult.ok([])
        assert not ServiceResult.fail("nope")

    def test_from_vetbook_error(self):
        from vetbook_core.errors import DataValidationError
        from vetbook_core.services import ServiceResult

        result = ServiceResult.from_exception(DataValidationError("Pet name is required", field="name"))

        assert result.error == "Pet name is required"
        assert result.error_code == "DATA_001"
        assert result.metadata == {"field": "name"}

    def test_safe_execute_hides_unexpected_errors(self):
        """Internal exception text never becomes the displayed message"""
        from vetbook_core.errors.handlers import GENERIC_ERROR_MESSAGE
        from vetbook_core.services import BaseService

        class ReportService(BaseService):
            pass

        def explode():
            raise ZeroDivisionError("division by zero")

        result = ReportService().safe_execute("Building report", explode)

        assert not result.success
        assert result.error == GENERIC_ERROR_MESSAGE
        assert result.error_code == "UNKNOWN"

    def test_unrecoverable_error_message(self):
        from vetbook_core.errors import ConfigurationError
        from vetbook_core.services import ServiceResult

        result = ServiceResult.from_exception(ConfigurationError("Missing Supabase key"), log_error=False)

        assert result.error == "Missing Supabase key. Please contact support."
        assert result.error_code == "CONFIG_001"
