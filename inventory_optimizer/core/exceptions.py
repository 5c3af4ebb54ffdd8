"""
Error taxonomy for the analytics core

Every failure raised by this package derives from AnalyticsError so the
request layer can map it to a single descriptive response. Data integrity
problems are warnings: they are absorbed and never fail a request.

Author: TM3
Date: 2025-11-03
"""
import logging
import warnings
from typing import Optional

logger = logging.getLogger(__name__)


class AnalyticsError(Exception):
    """Base class for all analytics failures"""

    kind = "analytics_error"

    def to_dict(self) -> dict:
        return {"error": str(self), "kind": self.kind}


class InputValidationError(AnalyticsError):
    """Malformed date, mode or page parameter. Raised before any retrieval."""

    kind = "input_validation"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid '{field}': {message}")


class RetrievalError(AnalyticsError):
    """
    The tabular store kept failing after the retry budget was spent.

    The whole computation is aborted; nothing fetched so far is returned.
    """

    kind = "retrieval"

    def __init__(
        self,
        operation: str,
        batch: Optional[str] = None,
        attempts: int = 0,
        cause: Optional[BaseException] = None
    ):
        self.operation = operation
        self.batch = batch
        self.attempts = attempts
        self.cause = cause

        message = f"Retrieval failed for {operation}"
        if batch:
            message += f" ({batch})"
        if attempts:
            message += f" after {attempts} attempt(s)"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class NotFoundError(AnalyticsError):
    """Requested product or customer does not exist"""

    kind = "not_found"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class DataIntegrityWarning(UserWarning):
    """Inconsistent source data that was patched with a placeholder"""


def warn_data_integrity(message: str) -> None:
    """Log and emit a DataIntegrityWarning; never raises"""
    logger.warning(f"Data integrity: {message}")
    warnings.warn(message, DataIntegrityWarning, stacklevel=2)
