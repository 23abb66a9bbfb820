"""
Tests for error classification and user notifications.
"""

import httpx

from business_logic.conflict_detector import CampaignLookupError
from business_logic.error_handler import ErrorCategory, ErrorHandler, ErrorSeverity
from business_logic.fee_calculator import FeeInversionError


class TestErrorHandler:
    """Classification of exceptions raised around the engine."""

    def setup_method(self):
        self.handler = ErrorHandler(history_limit=3)

    def test_fee_inversion_is_computation_error(self):
        info = self.handler.classify_error(FeeInversionError("no root"), "fees")

        assert info.category == ErrorCategory.COMPUTATION_ERROR
        assert info.blocking

    def test_lookup_error_with_transport_cause_is_network_error(self):
        try:
            try:
                raise httpx.ConnectTimeout("timed out")
            except httpx.TransportError as cause:
                raise CampaignLookupError("lookup failed") from cause
        except CampaignLookupError as error:
            info = self.handler.classify_error(error, "conflict lookup")

        assert info.category == ErrorCategory.NETWORK_ERROR
        assert info.severity == ErrorSeverity.WARNING
        assert "too long" in info.user_message

    def test_lookup_error_with_status_is_collaborator_error(self):
        info = self.handler.classify_error(CampaignLookupError("bad gateway", status_code=502), "lookup")

        assert info.category == ErrorCategory.COLLABORATOR_ERROR
        assert "502" in info.technical_details

    def test_sheet_errors_are_data_errors(self):
        info = self.handler.classify_error(ValueError("Campaign sheet is missing required column(s)"), "registry")
        assert info.category == ErrorCategory.DATA_ERROR

        info = self.handler.classify_error(FileNotFoundError("campaigns.xlsx"), "registry")
        assert info.category == ErrorCategory.DATA_ERROR

    def test_unknown_errors_are_system_errors(self):
        info = self.handler.classify_error(KeyError("x"), "somewhere")

        assert info.category == ErrorCategory.SYSTEM_ERROR
        assert info.severity == ErrorSeverity.ERROR

    def test_validation_notification_carries_field(self):
        info = self.handler.handle_validation_issue("Select a genre.", "genre")
        notification = self.handler.create_user_notification(info)

        assert notification['field'] == "genre"
        assert notification['type'] == "warning"
        assert notification['title'] == "Input Validation Error"

    def test_history_is_bounded(self):
        for i in range(5):
            self.handler.log_error(self.handler.classify_error(RuntimeError(str(i))), "test")

        stats = self.handler.get_error_statistics()

        assert len(self.handler.error_history) == 3
        assert stats['total_errors'] == 3
