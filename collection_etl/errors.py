# ==============================================
# Errors
# ==============================================
#
# PURPOSE:
#   Exception hierarchy for the ETL run. Everything the package
#   raises on purpose inherits from EtlError so callers can catch
#   broadly or narrowly.
#
# CLASSES:
# --------
# - EtlError              → root
# - ConfigurationError    → bad arguments / namespaces / settings,
#                           raised before any I/O
# - FieldError            → one field of one record could not be
#                           decoded; never escapes the transformer
# - BatchWriteError       → a bulk insert reported write errors and
#                           the run is configured to abort
# - PipelineStateError    → single-use objects used twice
#
# ==============================================

from typing import Any, Optional


class EtlError(Exception):
    """Base exception for all collection_etl errors."""
    pass


class ConfigurationError(EtlError, ValueError):
    """Invalid invocation or configuration."""
    pass


class FieldError(EtlError, ValueError):
    """A single field could not be decoded."""

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.value = value
        super().__init__(f"{field}: {message}")


class BatchWriteError(EtlError):
    """A batch insert failed and the run treats it as fatal."""

    def __init__(self, message: str, result: Optional[Any] = None):
        self.result = result
        super().__init__(message)


class PipelineStateError(EtlError, RuntimeError):
    """A single-use pipeline object was used out of order."""
    pass
