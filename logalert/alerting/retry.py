import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type

from logalert.errors import MailTransportError

DEFAULT_MAX_RETRIES = 5
DEFAULT_BACKOFF_SECONDS = 120.0


@dataclass
class RetryOutcome:
    succeeded: bool
    attempts: int
    elapsed_backoff: float = 0.0
    last_error: Optional[BaseException] = None


class RetryPolicy:
    """
    Fixed-backoff retry loop.

    The first attempt runs immediately; each retry waits ``backoff_seconds``
    first. With the defaults that is 1 attempt + 5 retries, 2 minutes apart.
    """

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        retry_on: Tuple[Type[BaseException], ...] = (MailTransportError,),
        logger: Optional[logging.Logger] = None,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self.sleep = sleep
        self.retry_on = retry_on
        self.logger = logger or logging.getLogger(__name__)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def run(self, operation: Callable[[], object]) -> RetryOutcome:
        attempts = 0
        elapsed = 0.0
        last_error = None

        while attempts < self.max_attempts:
            if attempts > 0:
                self.logger.info(
                    f"Retrying in {self.backoff_seconds:g} seconds "
                    f"(retry {attempts} of {self.max_retries})"
                )
                self.sleep(self.backoff_seconds)
                elapsed += self.backoff_seconds

            attempts += 1
            try:
                operation()
            except self.retry_on as e:
                last_error = e
                self.logger.error(f"ERROR: {e}")
                continue

            return RetryOutcome(succeeded=True, attempts=attempts, elapsed_backoff=elapsed)

        return RetryOutcome(
            succeeded=False,
            attempts=attempts,
            elapsed_backoff=elapsed,
            last_error=last_error,
        )
