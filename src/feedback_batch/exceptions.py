"""Basic exceptions for feedback batch processing"""  # noqa: D415


class FeedbackBatchError(Exception):
    """Base exception for feedback batch processing errors"""  # noqa: D415


class APIError(FeedbackBatchError):
    """Raised when the analysis endpoint answers with a non-2xx status"""  # noqa: D415

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(FeedbackBatchError):
    """Raised when network issues occur"""  # noqa: D415


class FileError(FeedbackBatchError):
    """Raised when file operations fail"""  # noqa: D415


class ConfigurationError(FeedbackBatchError):
    """Raised when configuration is missing or invalid"""  # noqa: D415
