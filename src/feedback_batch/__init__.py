"""Tolerant batch analysis of customer feedback through a remote text endpoint."""

import importlib.metadata
import logging

from feedback_batch.batch_processor import (
    BatchItem,
    BatchProcessor,
    BatchResult,
    analyze_file,
)
from feedback_batch.client import AnalysisClient
from feedback_batch.config import FrozenConfig, ResolvedConfig, resolve_config
from feedback_batch.exceptions import (
    APIError,
    ConfigurationError,
    FeedbackBatchError,
    FileError,
    NetworkError,
)
from feedback_batch.files import read_rows
from feedback_batch.normalize import (
    FieldProfile,
    NormalizationResult,
    NormalizedRecord,
    ResponseNormalizer,
    get_profile,
    normalize,
    register_profile,
    to_pipe_text,
)
from feedback_batch.report import generate_report, render_table_html, write_report
from feedback_batch.telemetry import TelemetryContext, TelemetryReporter

# Version handling
try:
    __version__ = importlib.metadata.version("feedback-batch")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
# This prevents 'No handler found' errors if the consuming app has no logging configured.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Normalization
    "ResponseNormalizer",
    "normalize",
    "to_pipe_text",
    "NormalizedRecord",
    "NormalizationResult",
    "FieldProfile",
    "get_profile",
    "register_profile",
    # Batch processing
    "BatchProcessor",
    "BatchItem",
    "BatchResult",
    "analyze_file",
    "AnalysisClient",
    "read_rows",
    # Rendering
    "render_table_html",
    "generate_report",
    "write_report",
    # Configuration
    "resolve_config",
    "ResolvedConfig",
    "FrozenConfig",
    # Telemetry (extension points)
    "TelemetryContext",
    "TelemetryReporter",
    # Exceptions
    "FeedbackBatchError",
    "APIError",
    "NetworkError",
    "FileError",
    "ConfigurationError",
]
