"""
Centralized error handling and user feedback for the campaign engine.

Validation problems are reported as values by the validators; this module
covers the exceptional paths: fee computation failures, campaign-lookup
collaborator failures, and unexpected system errors. It classifies them,
logs them, and turns them into user-facing notifications.
"""

import logging
from typing import Dict, Any, Optional
from enum import Enum
from dataclasses import dataclass
from datetime import datetime, timedelta

import httpx

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for better classification."""
    VALIDATION_ERROR = "validation_error"
    COMPUTATION_ERROR = "computation_error"
    COLLABORATOR_ERROR = "collaborator_error"
    NETWORK_ERROR = "network_error"
    DATA_ERROR = "data_error"
    SYSTEM_ERROR = "system_error"


@dataclass
class ErrorInfo:
    """Structured error information."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    user_message: str
    field: Optional[str] = None
    technical_details: Optional[str] = None
    suggested_action: Optional[str] = None
    blocking: bool = False
    timestamp: datetime = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()


class ErrorHandler:
    """
    Centralized error handling and user feedback system.

    Converts exceptions raised around the engine into ErrorInfo records,
    keeps a bounded history for monitoring, and produces notifications
    the wizard can render inline.
    """

    def __init__(self, history_limit: int = 100):
        self.error_history = []
        self.history_limit = history_limit

    def handle_network_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Handle transport failures while talking to a collaborator.

        Args:
            error: The network exception
            context: Additional context about the operation

        Returns:
            ErrorInfo object with structured error information
        """
        if isinstance(error, httpx.TimeoutException) or "timeout" in str(error).lower():
            return ErrorInfo(
                category=ErrorCategory.NETWORK_ERROR,
                severity=ErrorSeverity.WARNING,
                message=f"Timeout in {context}: {str(error)}",
                user_message="The campaign lookup service took too long to answer. Conflict checks are skipped for now.",
                technical_details=str(error),
                suggested_action="You can continue; conflicts will be rechecked on your next change."
            )

        return ErrorInfo(
            category=ErrorCategory.NETWORK_ERROR,
            severity=ErrorSeverity.WARNING,
            message=f"Network error in {context}: {str(error)}",
            user_message="The campaign lookup service is unreachable. Conflict checks are skipped for now.",
            technical_details=str(error),
            suggested_action="Check your connection; conflicts will be rechecked on your next change."
        )

    def handle_collaborator_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Handle a collaborator that answered but failed (bad status, bad payload).

        Args:
            error: The collaborator exception
            context: Additional context about the operation

        Returns:
            ErrorInfo object with structured error information
        """
        status_code = getattr(error, 'status_code', None)
        details = f"status={status_code} {str(error)}" if status_code else str(error)

        return ErrorInfo(
            category=ErrorCategory.COLLABORATOR_ERROR,
            severity=ErrorSeverity.WARNING,
            message=f"Collaborator failure in {context}: {details}",
            user_message="Conflicts with other campaigns could not be checked right now.",
            technical_details=details,
            suggested_action="You can continue; conflict detection is advisory."
        )

    def handle_data_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Handle errors reading local campaign data (missing or malformed files).

        Args:
            error: The data exception
            context: Additional context about the operation

        Returns:
            ErrorInfo object with structured error information
        """
        error_str = str(error).lower()

        if isinstance(error, FileNotFoundError) or "not found" in error_str:
            return ErrorInfo(
                category=ErrorCategory.DATA_ERROR,
                severity=ErrorSeverity.WARNING,
                message=f"Campaign data file not found in {context}: {str(error)}",
                user_message="The campaign registry file is missing, so conflicts cannot be checked.",
                suggested_action="Export the current campaign list to the configured registry path."
            )

        return ErrorInfo(
            category=ErrorCategory.DATA_ERROR,
            severity=ErrorSeverity.WARNING,
            message=f"Campaign data error in {context}: {str(error)}",
            user_message="The campaign registry could not be read.",
            technical_details=str(error),
            suggested_action="Check the registry file format and try again."
        )

    def handle_computation_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Handle errors that valid input should never produce.

        Args:
            error: The computation exception
            context: Additional context about the operation

        Returns:
            ErrorInfo object with structured error information
        """
        return ErrorInfo(
            category=ErrorCategory.COMPUTATION_ERROR,
            severity=ErrorSeverity.ERROR,
            message=f"Computation failed in {context}: {str(error)}",
            user_message="The cost summary could not be calculated for this budget.",
            technical_details=str(error),
            suggested_action="Adjust the investment amount or switch fee mode, then try again.",
            blocking=True
        )

    def handle_validation_issue(self, message: str, field: Optional[str] = None,
                                context: str = "") -> ErrorInfo:
        """Wrap a validation message so it can be logged and notified like other errors."""
        return ErrorInfo(
            category=ErrorCategory.VALIDATION_ERROR,
            severity=ErrorSeverity.WARNING,
            message=f"Validation error in {context}: {message}",
            user_message=message,
            field=field,
            suggested_action="Please correct the highlighted field and try again.",
            blocking=True
        )

    def classify_error(self, error: Exception, context: str = "") -> ErrorInfo:
        """
        Classify an error and return appropriate ErrorInfo.

        Args:
            error: The exception to classify
            context: Additional context about the operation

        Returns:
            ErrorInfo object with structured error information
        """
        # Imported lazily: both modules import this one
        from business_logic.fee_calculator import FeeInversionError
        from business_logic.conflict_detector import CampaignLookupError

        if isinstance(error, FeeInversionError) or isinstance(error, (ZeroDivisionError, ArithmeticError)):
            return self.handle_computation_error(error, context)

        if isinstance(error, CampaignLookupError):
            if isinstance(error.__cause__, httpx.TransportError):
                return self.handle_network_error(error.__cause__, context)
            return self.handle_collaborator_error(error, context)

        if isinstance(error, (httpx.TransportError, ConnectionError, TimeoutError)):
            return self.handle_network_error(error, context)

        if isinstance(error, (FileNotFoundError, PermissionError, IOError)):
            return self.handle_data_error(error, context)

        if isinstance(error, ValueError) and any(
            keyword in str(error).lower() for keyword in ["sheet", "excel", "column"]
        ):
            return self.handle_data_error(error, context)

        return ErrorInfo(
            category=ErrorCategory.SYSTEM_ERROR,
            severity=ErrorSeverity.ERROR,
            message=f"Unexpected error in {context}: {str(error)}",
            user_message="An unexpected error occurred. Please try again or contact support.",
            technical_details=str(error),
            suggested_action="Try again. If the problem persists, contact support with the error details."
        )

    def create_user_notification(self, error_info: ErrorInfo) -> Dict[str, Any]:
        """
        Create a user-friendly notification from error information.

        Args:
            error_info: Structured error information

        Returns:
            Dictionary with notification data for UI display
        """
        notification_type_map = {
            ErrorSeverity.INFO: "info",
            ErrorSeverity.WARNING: "warning",
            ErrorSeverity.ERROR: "error",
            ErrorSeverity.CRITICAL: "error"
        }

        notification = {
            'type': notification_type_map[error_info.severity],
            'title': self._get_error_title(error_info),
            'message': error_info.user_message,
            'timestamp': error_info.timestamp.isoformat(),
            'dismissible': error_info.severity in [ErrorSeverity.INFO, ErrorSeverity.WARNING],
            'blocking': error_info.blocking
        }

        if error_info.field:
            notification['field'] = error_info.field

        if error_info.suggested_action:
            notification['action'] = error_info.suggested_action

        if error_info.technical_details and error_info.severity == ErrorSeverity.CRITICAL:
            notification['technical_details'] = error_info.technical_details

        return notification

    def _get_error_title(self, error_info: ErrorInfo) -> str:
        """Get appropriate title for error notification."""
        title_map = {
            ErrorCategory.VALIDATION_ERROR: "Input Validation Error",
            ErrorCategory.COMPUTATION_ERROR: "Cost Calculation Error",
            ErrorCategory.COLLABORATOR_ERROR: "Conflict Check Unavailable",
            ErrorCategory.NETWORK_ERROR: "Connection Error",
            ErrorCategory.DATA_ERROR: "Data Error",
            ErrorCategory.SYSTEM_ERROR: "System Error"
        }

        return title_map.get(error_info.category, "Error")

    def log_error(self, error_info: ErrorInfo, context: str = ""):
        """
        Log error information for monitoring and debugging.

        Args:
            error_info: Structured error information
            context: Additional context
        """
        self.error_history.append(error_info)

        if len(self.error_history) > self.history_limit:
            self.error_history = self.error_history[-self.history_limit:]

        log_message = f"{context}: {error_info.message}"

        if error_info.severity == ErrorSeverity.CRITICAL:
            logger.critical(log_message)
        elif error_info.severity == ErrorSeverity.ERROR:
            logger.error(log_message)
        elif error_info.severity == ErrorSeverity.WARNING:
            logger.warning(log_message)
        else:
            logger.info(log_message)

    def get_error_statistics(self) -> Dict[str, Any]:
        """
        Get error statistics for monitoring.

        Returns:
            Dictionary with error statistics
        """
        if not self.error_history:
            return {'total_errors': 0}

        category_counts = {}
        severity_counts = {}

        recent_errors = [
            err for err in self.error_history
            if err.timestamp > datetime.now() - timedelta(hours=24)
        ]

        for error in recent_errors:
            category_counts[error.category.value] = category_counts.get(error.category.value, 0) + 1
            severity_counts[error.severity.value] = severity_counts.get(error.severity.value, 0) + 1

        return {
            'total_errors': len(self.error_history),
            'recent_errors_24h': len(recent_errors),
            'category_breakdown': category_counts,
            'severity_breakdown': severity_counts
        }


# Global error handler instance
error_handler = ErrorHandler()
