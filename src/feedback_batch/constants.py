"""
Project-wide constants for the feedback batch framework

Default strings and batch limits differ between deployments, so everything
here is a fallback that configuration can override.
"""

# Network
NETWORK_TIMEOUT = 30.0  # seconds
DEFAULT_PAYLOAD_KEY = "text"
SUPPORTED_PAYLOAD_KEYS = ("text", "data")

# Batching
DEFAULT_BATCH_SIZE = 50
DEFAULT_JSON_ROW_LIMIT = 50
MIN_FILE_ROWS = 2  # header + at least one data row

# Normalization
MAX_UNWRAP_DEPTH = 8
KNOWN_PREFIXES = ("result", "output", "analysis", "review")
RECORD_ARRAY_KEYS = ("analysis", "results", "records", "items", "data")
ERROR_STATUS = "Error"
DEFAULT_FIELD_PROFILE = "review"

# Report
REPORT_TITLE = "BRAND INTELLIGENCE REPORT"
REPORT_SUBTITLE = "Generated by feedback-batch"
REPORT_RULE_WIDTH = 40
