"""Abstract base class for DNS record providers."""

from abc import ABC, abstractmethod

from dnshook.deadline import Deadline
from dnshook.models import DnsRecord


class RecordProvider(ABC):
    """Abstract interface for a DNS provider's zone and record API.

    Providers expose the zones an account controls and let the caller
    list, create and delete individual records. Errors reported by the
    provider are raised as ProviderError with the provider's own wording.

    Every call accepts the caller's Deadline. Providers bound their own
    network timeouts by it and raise DeadlineExceededError when a call
    is cut short by it.
    """

    @abstractmethod
    def list_zones(self, deadline: Deadline | None = None) -> dict[str, str]:
        """List the zones the account controls.

        Returns:
            Mapping of zone name (no trailing dot) to provider zone id.

        Raises:
            ProviderError: If the zones cannot be fetched.
            OperationCancelledError: The deadline fired or was cancelled.
        """
        ...

    @abstractmethod
    def list_records(
        self, zone_id: str, deadline: Deadline | None = None
    ) -> dict[str, DnsRecord]:
        """List the records of a zone.

        Args:
            zone_id: Provider zone id.
            deadline: Overall deadline of the calling operation.

        Returns:
            Mapping of record id to record.

        Raises:
            ProviderError: If the records cannot be fetched.
            OperationCancelledError: The deadline fired or was cancelled.
        """
        ...

    @abstractmethod
    def create_record(
        self,
        zone_id: str,
        name: str,
        type: str,
        value: str,
        ttl_hint: str,
        deadline: Deadline | None = None,
    ) -> None:
        """Create a record.

        Args:
            zone_id: Provider zone id.
            name: Host label relative to the zone (e.g. "_acme-challenge.www").
            type: Record type (e.g. "TXT").
            value: Record data, already in provider wire form.
            ttl_hint: Provider-specific TTL selection.
            deadline: Overall deadline of the calling operation.

        Raises:
            ProviderError: If the record cannot be created.
            OperationCancelledError: The deadline fired or was cancelled.
        """
        ...

    @abstractmethod
    def delete_record(self, record_id: str, deadline: Deadline | None = None) -> None:
        """Delete a record by id.

        Raises:
            ProviderError: If the record cannot be deleted.
            OperationCancelledError: The deadline fired or was cancelled.
        """
        ...

    def find_record_ids(self, records: dict[str, DnsRecord], fqdn: str) -> list[str]:
        """Select the ids of records whose name equals ``fqdn``.

        Names are compared case-insensitively, ignoring a trailing dot.
        """
        wanted = fqdn.rstrip(".").lower()
        return [
            record_id
            for record_id, record in records.items()
            if record.name.rstrip(".").lower() == wanted
        ]
