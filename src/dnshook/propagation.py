"""Wait for a TXT record to become visible on the authoritative nameserver."""

from dnshook._logging import Timer, get_domain_extra, get_logger
from dnshook.deadline import Deadline
from dnshook.exceptions import DnsLookupError, NoSuchRecordError
from dnshook.models import AttemptOutcome, PollAttempt, PollOutcome, PollResult
from dnshook.resolver import TxtResolver

logger = get_logger(__name__)


class PropagationPoller:
    """Bounded fixed-delay polling for an expected TXT value.

    Every outcome, including lookup errors, consumes one attempt. The
    delay between attempts is constant: provider propagation usually
    settles within about 50 seconds.

    Args:
        resolver: TXT lookup capability.
        max_attempts: Number of lookups before giving up.
        lookup_timeout: Per-lookup timeout in seconds.
        retry_delay: Delay between lookups in seconds.
    """

    MAX_ATTEMPTS = 30
    LOOKUP_TIMEOUT = 3.0  # seconds
    RETRY_DELAY = 10.0  # seconds

    def __init__(
        self,
        resolver: TxtResolver,
        max_attempts: int = MAX_ATTEMPTS,
        lookup_timeout: float = LOOKUP_TIMEOUT,
        retry_delay: float = RETRY_DELAY,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.resolver = resolver
        self.max_attempts = max_attempts
        self.lookup_timeout = lookup_timeout
        self.retry_delay = retry_delay

    def _attempt(self, attempt: int, fqdn: str, expected: str, deadline: Deadline) -> PollAttempt:
        extra = {"record": fqdn, "try": attempt, **get_domain_extra()}
        try:
            values = self.resolver.lookup_txt(fqdn, deadline.clamp(self.lookup_timeout))
        except NoSuchRecordError as e:
            logger.warning("DNS record not found", extra=extra)
            return PollAttempt(attempt=attempt, outcome=AttemptOutcome.ABSENT, error=str(e))
        except DnsLookupError as e:
            logger.error("DNS lookup failed", extra={**extra, "error": str(e)})
            return PollAttempt(
                attempt=attempt, outcome=AttemptOutcome.TRANSIENT_ERROR, error=str(e)
            )

        if values == [expected]:
            logger.info("Found expected TXT value", extra={**extra, "value": values[0]})
            return PollAttempt(attempt=attempt, outcome=AttemptOutcome.CONFIRMED, values=values)

        logger.info("Found unexpected TXT values", extra={**extra, "values": values})
        return PollAttempt(attempt=attempt, outcome=AttemptOutcome.WRONG_VALUE, values=values)

    def await_value(
        self,
        fqdn: str,
        expected: str,
        deadline: Deadline | None = None,
    ) -> PollResult:
        """Poll until the name serves exactly the expected TXT value.

        Args:
            fqdn: Fully-qualified name of the challenge record.
            expected: The TXT value that must be served.
            deadline: Overall deadline; firing aborts the wait immediately.

        Returns:
            PollResult with outcome CONFIRMED, TIMED_OUT (attempts
            exhausted) or CANCELLED (deadline fired or cancelled).
        """
        deadline = deadline or Deadline()
        attempts: list[PollAttempt] = []

        def result(outcome: PollOutcome) -> PollResult:
            return PollResult(outcome=outcome, fqdn=fqdn, expected=expected, attempts=attempts)

        with Timer() as timer:
            for attempt in range(self.max_attempts):
                if deadline.done:
                    outcome = PollOutcome.CANCELLED
                    break

                attempts.append(self._attempt(attempt, fqdn, expected, deadline))
                if attempts[-1].outcome == AttemptOutcome.CONFIRMED:
                    outcome = PollOutcome.CONFIRMED
                    break

                is_last = attempt == self.max_attempts - 1
                if not is_last and deadline.wait(self.retry_delay):
                    outcome = PollOutcome.CANCELLED
                    break
            else:
                outcome = PollOutcome.TIMED_OUT

        logger.info(
            "Propagation poll finished",
            extra={
                "record": fqdn,
                "outcome": str(outcome),
                "attempts": len(attempts),
                "elapsed_ms": round(timer.elapsed_ms),
                **get_domain_extra(),
            },
        )
        return result(outcome)
