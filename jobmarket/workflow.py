"""
Common boundary for the money-moving workflows.

Each call runs one attempt function that opens its own unit of work.
Transient storage errors re-run the attempt; expected failures and
storage errors are turned into an Outcome here and nowhere else.
"""

from typing import Callable, Optional

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from .config import Settings
from .errors import ErrorKind, MarketplaceError, Outcome
from .logger import get_logger
from .retry import RetryError, exponential_backoff, is_transient_error
from .unit_of_work import UnitOfWorkFactory


class Workflow:
    operation = "operation"

    def __init__(self, uow_factory: UnitOfWorkFactory, settings: Optional[Settings] = None):
        self.uow_factory = uow_factory
        self.settings = settings or Settings()
        self.logger = get_logger()

    def _on_retry(self, attempt: int, exception: Exception, delay: float):
        self.logger.record_retry()
        self.logger.warning(
            f"{self.operation}: transient storage error, retrying",
            attempt=attempt,
            delay=delay,
            error=str(exception),
        )

    def _execute(self, attempt: Callable[[], None], **context) -> Outcome:
        self.logger.record_attempt(self.operation)
        run = exponential_backoff(
            max_retries=self.settings.max_retries,
            base_delay=self.settings.retry_base_delay,
            exceptions=(OperationalError,),
            should_retry=is_transient_error,
            on_retry=self._on_retry,
        )(attempt)

        try:
            run()
        except MarketplaceError as e:
            self.logger.record_failure(self.operation, e.kind.value)
            self.logger.info(f"{self.operation} rejected: {e.kind.value}", reason=str(e), **context)
            return Outcome.failure(e.kind, str(e))
        except (SQLAlchemyError, RetryError) as e:
            self.logger.record_failure(self.operation, ErrorKind.INTERNAL.value)
            self.logger.error(
                f"{self.operation} failed",
                error_type=type(e).__name__,
                error=str(e),
                **context,
            )
            return Outcome.failure(ErrorKind.INTERNAL, "Internal server error")

        self.logger.record_success(self.operation)
        self.logger.info(f"{self.operation} committed", **context)
        return Outcome.success()
