import logging
import time
import uuid
from typing import Any, Dict, Optional

default_logger = logging.getLogger("workbook")


def new_request_id() -> str:
    """Short id used to correlate the log lines of one request."""
    return str(uuid.uuid4())[:8]


class LogContext:
    """
    Context manager that times one stage of a request.

    Logs when the stage starts, and either how long it took or the exception
    that ended it. Exceptions are never suppressed.

    Example:
        with LogContext("merge tables", request_id=rid, tables=3):
            merged = merge(tables, policy)
    """
    def __init__(self, operation_name: str, logger: Optional[logging.Logger] = None, **context: Any):
        self.operation_name = operation_name
        self.logger = logger or default_logger
        self.request_id = context.pop("request_id", None) or new_request_id()
        self.context: Dict[str, Any] = context
        self.start_time: Optional[float] = None
        self.duration: Optional[float] = None

    def _extra(self, **more: Any) -> Dict[str, Any]:
        return {"request_id": self.request_id, **self.context, **more}

    def __enter__(self) -> "LogContext":
        self.start_time = time.perf_counter()
        self.logger.info(f"Starting {self.operation_name}", extra=self._extra())
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.duration = time.perf_counter() - self.start_time
        if exc_type is not None:
            self.logger.error(
                f"Failed {self.operation_name} after {self.duration:.2f}s: {exc_val}",
                extra=self._extra(duration=self.duration),
                exc_info=(exc_type, exc_val, exc_tb),
            )
        else:
            self.logger.info(
                f"Completed {self.operation_name} in {self.duration:.2f}s",
                extra=self._extra(duration=self.duration),
            )
        return False
