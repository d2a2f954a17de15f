# Structured exception hierarchy for the contract appraisal engine

from typing import Dict, Any, Optional
from datetime import datetime, timezone


class AppraisalException(Exception):
    """Base exception for all appraisal specific errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 correlation_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.correlation_id = correlation_id
        self.timestamp = datetime.now(timezone.utc)


class TransientError(AppraisalException):
    """Base class for transient errors that may be retried with exponential backoff"""

    def __init__(self, message: str, retry_count: int = 0, max_retries: int = 5,
                 details: Optional[Dict[str, Any]] = None, correlation_id: Optional[str] = None):
        super().__init__(message, details, correlation_id)
        self.retry_count = retry_count
        self.max_retries = max_retries
        self.retryable = retry_count < max_retries


class PermanentError(AppraisalException):
    """Base class for permanent errors that must not be retried"""
    pass


# Market Data Errors
class MarketDataError(TransientError):
    """Market data provider errors"""

    def __init__(self, message: str, item_id: Optional[int] = None,
                 region_id: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.item_id = item_id
        self.region_id = region_id


class MarketDataConnectionError(MarketDataError):
    """Transport failures and timeouts talking to the provider"""
    pass


class MarketDataAPIError(MarketDataError):
    """Provider answered with a non-success status"""

    def __init__(self, message: str, status_code: int, response_text: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.response_text = response_text
        # Client errors will not go away on retry
        if 400 <= status_code < 500 and not isinstance(self, MarketDataRateLimitError):
            self.retryable = False


class MarketDataRateLimitError(MarketDataAPIError):
    """Provider error limit reached (HTTP 420/429)"""

    def __init__(self, message: str, status_code: int, retry_after: Optional[float] = None,
                 **kwargs):
        super().__init__(message, status_code, **kwargs)
        self.retry_after = retry_after


class MarketDataDecodingError(PermanentError):
    """Provider payload could not be decoded into market orders"""

    def __init__(self, message: str, item_id: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.item_id = item_id


# Configuration Errors
class ConfigurationError(PermanentError):
    """Configuration validation errors"""

    def __init__(self, message: str, config_field: str, config_value: Any,
                 **kwargs):
        super().__init__(message, **kwargs)
        self.config_field = config_field
        self.config_value = config_value


# Validation Errors
class ValidationError(PermanentError):
    """Request data validation errors"""

    def __init__(self, message: str, field: str, value: Any,
                 expected_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.expected_type = expected_type


class InvalidDiscountError(ValidationError):
    """Discount input is not a positive integer of at most five digits"""

    def __init__(self, message: str, value: Any, **kwargs):
        super().__init__(message, field="discount_percent", value=value,
                         expected_type="int", **kwargs)


class HubResolutionError(PermanentError):
    """Trade hub name could not be resolved"""

    def __init__(self, message: str, hub: Any, **kwargs):
        super().__init__(message, **kwargs)
        self.hub = hub


def is_retryable_error(error: Exception) -> bool:
    """
    Determine if an error should be retried

    Returns:
        True if error is transient and retryable, False otherwise
    """
    if isinstance(error, TransientError):
        return error.retryable
    return False


def get_retry_delay(error: TransientError, base_delay: float = 1.0) -> float:
    """
    Calculate exponential backoff delay for retrying transient errors

    Args:
        error: The transient error to retry
        base_delay: Base delay in seconds

    Returns:
        Delay in seconds before retry
    """
    if not isinstance(error, TransientError):
        return 0.0

    if isinstance(error, MarketDataRateLimitError) and error.retry_after is not None:
        return max(error.retry_after, 0.0)

    # Exponential backoff: base_delay * (2 ^ retry_count)
    return base_delay * (2 ** error.retry_count)


def create_error_context(error: Exception, operation: str,
                         additional_context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Create structured error context for logging

    Args:
        error: The exception that occurred
        operation: The operation that failed
        additional_context: Additional context information

    Returns:
        Structured error context dictionary
    """
    context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "operation": operation,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "retryable": is_retryable_error(error)
    }

    if isinstance(error, AppraisalException):
        if error.correlation_id:
            context["correlation_id"] = error.correlation_id
        if error.details:
            context["error_details"] = error.details

        if isinstance(error, TransientError):
            context["retry_count"] = error.retry_count
            context["max_retries"] = error.max_retries

        if isinstance(error, MarketDataError):
            if error.item_id is not None:
                context["item_id"] = error.item_id
            if error.region_id is not None:
                context["region_id"] = error.region_id

        if isinstance(error, MarketDataAPIError):
            context["status_code"] = error.status_code

    if additional_context:
        context.update(additional_context)

    return context
