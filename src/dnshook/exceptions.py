"""Challenge hook exceptions."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dnshook.models import PollResult


class HookError(Exception):
    """Base exception for all dnshook errors."""

    pass


class ConfigurationError(HookError):
    """Hook inputs or settings are missing or invalid."""

    pass


class ZoneNotFoundError(HookError):
    """No zone in the account catalog is a suffix of the challenge domain.

    This indicates misconfiguration rather than a transient state, so
    it is never retried.
    """

    def __init__(self, domain: str, zones: list[str] | None = None):
        self.domain = domain
        self.zones = zones or []
        super().__init__(f"No zone found for domain: {domain}")


class RecordNotFoundError(HookError):
    """No record in the zone matches the challenge FQDN."""

    def __init__(self, zone_id: str, fqdn: str):
        self.zone_id = zone_id
        self.fqdn = fqdn
        super().__init__(f"No record to delete for {fqdn} in zone {zone_id}")


class ProviderError(HookError):
    """Error returned by a DNS provider's record API.

    Args:
        message: Provider error text, unchanged.
        status_code: HTTP status code when the provider speaks HTTP.
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class PropagationTimeoutError(HookError):
    """The record was not observed with the expected value in time."""

    def __init__(self, result: "PollResult"):
        self.result = result
        super().__init__(
            f"TXT record {result.fqdn} not confirmed after {len(result.attempts)} attempts"
        )


class OperationCancelledError(HookError):
    """The operation was cancelled before it could finish."""

    pass


class DeadlineExceededError(OperationCancelledError):
    """The overall deadline expired before the operation could finish."""

    pass


class MalformedReplayInputError(HookError, ValueError):
    """The auth output replayed into a delete run could not be parsed."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(
            f"Expected auth output to be 2 comma separated values: zoneId,recordFQDN (got {text!r})"
        )


class DnsLookupError(HookError):
    """A TXT lookup against the nameserver failed."""

    pass


class NoSuchRecordError(DnsLookupError):
    """The looked-up name does not exist (yet)."""

    pass
