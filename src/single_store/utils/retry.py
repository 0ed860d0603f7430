"""
Retry with exponential backoff for transient database errors

Used when opening backend connections. Statement execution inside the
migration transaction is never retried; a failed statement aborts the run.

Usage:
    from single_store.utils.retry import retry_database_operation

    @retry_database_operation(max_retries=3, base_delay=1.0, description="connect to postgresql")
    def connect():
        return psycopg2.connect(**config)
"""

import logging
import random
import re
import time
from functools import wraps
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

# SQLSTATE classes/codes worth another attempt: connection exceptions (08),
# server starting up (57P03), serialization failure and deadlock (40001, 40P01),
# ODBC timeouts (HYT00, HYT01)
TRANSIENT_SQLSTATE_PREFIXES = ("08", "57P03", "40001", "40P01", "HYT")

SQLSTATE = re.compile(r"^[0-9A-Z]{5}$")

# Message fragments for drivers that report no SQLSTATE
RETRYABLE_PATTERNS = (
    "timeout",
    "timed out",
    "deadlock",
    "could not connect",
    "unable to connect",
    "connection refused",
    "connection reset",
    "server closed the connection",
    "communication link failure",
    "the database system is starting up",
)

RETRYABLE_EXCEPTION_NAMES = (
    "connectionerror",
    "timeouterror",
    "operationalerror",
    "interfaceerror",
)


def sqlstate_of(exception: BaseException) -> Optional[str]:
    """
    SQLSTATE carried by a driver exception, if any.

    psycopg2 exposes it as ``pgcode``; pyodbc passes it as the first argument.
    """
    code = getattr(exception, "pgcode", None)
    if code:
        return code

    if exception.args and isinstance(exception.args[0], str) and SQLSTATE.match(exception.args[0]):
        return exception.args[0]

    return None


def is_retryable_db_exception(exception: BaseException) -> bool:
    """
    Determine if a database exception is transient and worth retrying

    A SQLSTATE, when present, decides. Otherwise the exception type and
    message are checked against known transient failures.
    """
    sqlstate = sqlstate_of(exception)
    if sqlstate is not None:
        return sqlstate.startswith(TRANSIENT_SQLSTATE_PREFIXES)

    if type(exception).__name__.lower() in RETRYABLE_EXCEPTION_NAMES:
        return True

    message = str(exception).lower()
    return any(pattern in message for pattern in RETRYABLE_PATTERNS)


def compute_backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
) -> float:
    """Exponential delay for ``attempt`` (0-based) with optional +/-25% jitter."""
    delay = min(base_delay * (exponential_base ** attempt), max_delay)

    if jitter:
        delay = max(0.1, delay * random.uniform(0.75, 1.25))

    return delay


def retry_database_operation(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    description: Optional[str] = None,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
):
    """
    Decorator retrying transient database errors with exponential backoff

    Non-retryable errors are raised immediately.

    Args:
        max_retries: Retries after the first attempt (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay in seconds (default: 60.0)
        description: Name used in log messages (default: function name)
        on_retry: Callback function(attempt, exception, delay) called on each retry
    """
    def decorator(func: Callable) -> Callable:
        what = description or getattr(func, "__name__", "database operation")

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not is_retryable_db_exception(e):
                        logger.error(f"Could not {what}: {type(e).__name__}: {e}")
                        raise

                    if attempt >= max_retries:
                        logger.error(f"Could not {what} after {attempt + 1} attempts: {e}")
                        raise

                    delay = compute_backoff_delay(attempt, base_delay, max_delay)
                    attempt += 1
                    logger.warning(
                        f"Could not {what} (attempt {attempt}/{max_retries + 1}, "
                        f"sqlstate={sqlstate_of(e) or 'n/a'}): {e}. Retrying in {delay:.2f}s"
                    )

                    if on_retry:
                        on_retry(attempt, e, delay)

                    time.sleep(delay)

        return wrapper
    return decorator
