"""DNS-01 challenge lifecycle: publish, confirm and remove the TXT record."""

from collections.abc import Callable, Iterable

from dnshook._logging import get_domain_extra, get_logger, reset_domain, set_domain
from dnshook.deadline import Deadline
from dnshook.exceptions import (
    ProviderError,
    PropagationTimeoutError,
    RecordNotFoundError,
    ZoneNotFoundError,
)
from dnshook.models import ChallengeRecord, ChallengeRequest, CreateResult, PollOutcome
from dnshook.propagation import PropagationPoller
from dnshook.providers.base import RecordProvider
from dnshook.zones import record_fqdn, record_name_for, resolve_zone

logger = get_logger(__name__)

# Lowest TTL tier offered to free-tier accounts
FREE_TTL_VALUE = "For our premium supporters"

# Free-tier errors where deleting the existing challenge record frees the slot
DEFAULT_CONFLICT_MESSAGES = (
    "You already have another already existent",
    "You have no more subdomain capacity allocated",
)

ConflictPredicate = Callable[[Exception], bool]


def make_conflict_predicate(
    messages: Iterable[str] = DEFAULT_CONFLICT_MESSAGES,
    status_codes: Iterable[int] = (),
) -> ConflictPredicate:
    """Build a predicate recognising recoverable record conflicts.

    Provider wording can change without notice, which is why the
    messages are configurable.

    Args:
        messages: Prefixes matched against the error message, after
            leading whitespace is removed.
        status_codes: Provider status codes that signal a conflict.

    Returns:
        Callable returning True for conflict errors.
    """
    prefixes = tuple(messages)
    codes = frozenset(status_codes)

    def is_conflict(error: Exception) -> bool:
        if not isinstance(error, ProviderError):
            return False
        if error.status_code is not None and error.status_code in codes:
            return True
        return str(error).lstrip().startswith(prefixes) if prefixes else False

    return is_conflict


default_conflict_predicate = make_conflict_predicate(DEFAULT_CONFLICT_MESSAGES, status_codes=(409,))


class ChallengeLifecycle:
    """Create and delete DNS-01 challenge records.

    Creation and deletion happen in separate process runs, so nothing is
    kept between them: create returns a ChallengeRecord whose auth
    output is replayed into delete.

    Args:
        provider: Zone and record API of the DNS provider.
        poller: Propagation poller used after creation.
        conflict_predicate: Decides whether a creation error is
            recoverable by deleting the existing record and retrying once.
        ttl_hint: TTL selection passed to the provider.
    """

    RECORD_TYPE = "TXT"

    def __init__(
        self,
        provider: RecordProvider,
        poller: PropagationPoller,
        conflict_predicate: ConflictPredicate = default_conflict_predicate,
        ttl_hint: str = FREE_TTL_VALUE,
    ):
        self.provider = provider
        self.poller = poller
        self.conflict_predicate = conflict_predicate
        self.ttl_hint = ttl_hint

    def resolve_record(self, domain: str, deadline: Deadline | None = None) -> ChallengeRecord:
        """Work out where the challenge record for a domain lives.

        Raises:
            ZoneNotFoundError: No zone in the account matches the domain.
        """
        zones = self.provider.list_zones(deadline=deadline)
        zone_name = resolve_zone(zones, domain)
        if zone_name is None:
            raise ZoneNotFoundError(domain, sorted(zones))

        record_name = record_name_for(domain, zone_name)
        record = ChallengeRecord(
            zone_id=zones[zone_name],
            fqdn=record_fqdn(record_name, zone_name),
            zone_name=zone_name,
            record_name=record_name,
        )
        logger.info(
            "Found zone",
            extra={"zone_name": zone_name, "zone_id": record.zone_id, **get_domain_extra()},
        )
        return record

    def _create_record(self, record: ChallengeRecord, value: str, deadline: Deadline) -> None:
        self.provider.create_record(
            record.zone_id,
            record.record_name,
            self.RECORD_TYPE,
            f'"{value}"',
            self.ttl_hint,
            deadline=deadline,
        )

    def _delete_existing(self, record: ChallengeRecord, deadline: Deadline) -> None:
        """Delete leftovers at the record's name, if there are any."""
        try:
            self._delete_matching(record.zone_id, record.fqdn, deadline)
        except RecordNotFoundError:
            logger.debug("No existing record to clean up", extra={"record": record.fqdn})

    def create(self, request: ChallengeRequest, deadline: Deadline | None = None) -> CreateResult:
        """Publish the challenge TXT record and wait until it is served.

        Args:
            request: Domain, challenge value and overall timeout.
            deadline: Overrides the deadline derived from request.timeout.

        Returns:
            CreateResult with the record to replay into delete and the
            propagation attempt log.

        Raises:
            ZoneNotFoundError: No zone matches the domain.
            ProviderError: The provider rejected a call.
            PropagationTimeoutError: The value was not observed in time.
            OperationCancelledError: The deadline fired or was cancelled.
        """
        deadline = deadline or Deadline(request.timeout)
        token = set_domain(request.domain)
        try:
            deadline.check()
            record = self.resolve_record(request.domain, deadline)

            deadline.check()
            self._delete_existing(record, deadline)

            logger.info(
                "Creating DNS challenge",
                extra={
                    "record_name": record.record_name,
                    "value": request.value,
                    **get_domain_extra(),
                },
            )
            deadline.check()
            try:
                self._create_record(record, request.value, deadline)
            except ProviderError as e:
                if not self.conflict_predicate(e):
                    raise
                logger.warning(
                    "Existing challenge. Deleting and retrying creation",
                    extra={"record": record.fqdn, "error": str(e), **get_domain_extra()},
                )
                deadline.check()
                self._delete_existing(record, deadline)
                deadline.check()
                self._create_record(record, request.value, deadline)

            deadline.check()
            result = self.poller.await_value(record.fqdn, request.value, deadline)
            if result.outcome == PollOutcome.CANCELLED:
                deadline.check()
            if not result.confirmed:
                raise PropagationTimeoutError(result)

            logger.info("Challenge created", extra={"record": record.fqdn, **get_domain_extra()})
            return CreateResult(record=record, propagation=result)
        finally:
            reset_domain(token)

    def _delete_matching(self, zone_id: str, fqdn: str, deadline: Deadline) -> list[str]:
        deadline.check()
        records = self.provider.list_records(zone_id, deadline=deadline)
        record_ids = self.provider.find_record_ids(records, fqdn)
        logger.info("Found records to delete", extra={"record": fqdn, "record_ids": record_ids})
        if not record_ids:
            raise RecordNotFoundError(zone_id, fqdn)

        for record_id in record_ids:
            deadline.check()
            self.provider.delete_record(record_id, deadline=deadline)
        return record_ids

    def delete(self, zone_id: str, fqdn: str, deadline: Deadline | None = None) -> list[str]:
        """Delete every record named ``fqdn`` in the zone.

        Stops at the first deletion error; records already deleted stay
        deleted.

        Args:
            zone_id: Zone id from the create run's auth output.
            fqdn: Record FQDN from the create run's auth output.
            deadline: Optional overall deadline.

        Returns:
            The ids of the deleted records.

        Raises:
            RecordNotFoundError: No record in the zone has that name.
            ProviderError: Listing or deleting failed.
            OperationCancelledError: The deadline fired or was cancelled.
        """
        deleted = self._delete_matching(zone_id, fqdn, deadline or Deadline())
        logger.info("Challenge deleted", extra={"record": fqdn, "record_ids": deleted})
        return deleted
