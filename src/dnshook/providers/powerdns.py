"""PowerDNS record provider for ACME DNS-01 challenges."""

import httpx

from dnshook._logging import get_logger
from dnshook.deadline import Deadline
from dnshook.exceptions import DeadlineExceededError, ProviderError
from dnshook.models import DnsRecord
from dnshook.providers.base import RecordProvider

logger = get_logger(__name__)

# Separates zone id, rrset name and type inside a record id
_ID_SEP = "|"


class PowerDnsProvider(RecordProvider):
    """Record provider for the PowerDNS authoritative server HTTP API.

    PowerDNS manages records as rrsets (all records sharing a name and
    type), so a record id here identifies one rrset and deleting it
    removes every value at that name and type.

    Args:
        api_url: Base URL of the PowerDNS API (e.g., "http://localhost:8081").
        api_key: API key for X-API-Key authentication header.
        server_id: PowerDNS server ID (default: "localhost").
        timeout: HTTP request timeout in seconds (default: 30), lowered to
            the time left on the caller's deadline.
        default_ttl: TTL used when the hint is not a number of seconds.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        server_id: str = "localhost",
        timeout: int = 30,
        default_ttl: int = 60,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.server_id = server_id
        self.timeout = timeout
        self.default_ttl = default_ttl

    @property
    def _zones_url(self) -> str:
        return f"{self.api_url}/api/v1/servers/{self.server_id}/zones"

    def _request(
        self,
        method: str,
        url: str,
        zone: str,
        deadline: Deadline | None = None,
        **kwargs,
    ) -> httpx.Response:
        """Send an API request, raising ProviderError on failure.

        Raises:
            ProviderError: The request failed or the API returned an error.
            DeadlineExceededError: The request timed out on the deadline.
            OperationCancelledError: The deadline was cancelled beforehand.
        """
        headers = {"X-API-Key": self.api_key}
        if "json" in kwargs:
            headers["Content-Type"] = "application/json"

        timeout = self.timeout
        if deadline is not None:
            deadline.check()
            timeout = deadline.clamp(self.timeout)

        try:
            response = httpx.request(method, url, headers=headers, timeout=timeout, **kwargs)
        except httpx.HTTPError as e:
            # A timeout bounded by the deadline belongs to the deadline
            hit_deadline = deadline is not None and (timeout < self.timeout or deadline.expired)
            if isinstance(e, httpx.TimeoutException) and hit_deadline:
                logger.error(
                    "PowerDNS API request exceeded the deadline",
                    extra={"zone": zone, "timeout": timeout},
                )
                raise DeadlineExceededError(f"PowerDNS API request timed out: {e}") from e
            logger.error("PowerDNS API request failed", extra={"zone": zone, "error": str(e)})
            raise ProviderError(f"PowerDNS API request failed: {e}") from e

        self._handle_response(response, zone)
        return response

    def _handle_response(self, response: httpx.Response, zone: str) -> None:
        """Handle PowerDNS API response status codes.

        Args:
            response: The httpx Response object.
            zone: The zone name (for error messages).

        Raises:
            ProviderError: For API errors with descriptive messages.
        """
        if 200 <= response.status_code < 300:
            logger.debug(
                "PowerDNS API request successful",
                extra={"zone": zone, "status_code": response.status_code},
            )
            return

        # Try to extract error detail from response body
        try:
            error_data = response.json()
            detail = error_data.get("error", response.text)
        except Exception:
            detail = response.text or "Unknown error"

        status_messages = {
            400: f"Bad Request: {detail}",
            404: f"Zone not found: {detail}",
            422: f"Unprocessable Entity: {detail}",
            500: f"Server Error: {detail}",
        }

        message = status_messages.get(
            response.status_code,
            f"Unexpected error ({response.status_code}): {detail}",
        )
        logger.error(
            "PowerDNS API error",
            extra={"zone": zone, "status_code": response.status_code, "detail": detail},
        )
        raise ProviderError(message, status_code=response.status_code)

    def _ttl_for(self, ttl_hint: str) -> int:
        hint = ttl_hint.strip()
        return int(hint) if hint.isdigit() else self.default_ttl

    def _patch_rrset(self, zone_id: str, rrset: dict, deadline: Deadline | None) -> None:
        self._request(
            "PATCH",
            f"{self._zones_url}/{zone_id}",
            zone_id,
            deadline,
            json={"rrsets": [rrset]},
        )

    def list_zones(self, deadline: Deadline | None = None) -> dict[str, str]:
        """List zones served by the PowerDNS server.

        Returns:
            Mapping of zone name (without trailing dot) to zone id.
        """
        response = self._request("GET", self._zones_url, "*", deadline)
        zones = {zone["name"].rstrip("."): zone.get("id", zone["name"]) for zone in response.json()}
        logger.debug("Zones listed", extra={"zones": sorted(zones)})
        return zones

    def list_records(
        self, zone_id: str, deadline: Deadline | None = None
    ) -> dict[str, DnsRecord]:
        """List the rrsets of a zone, one DnsRecord per rrset."""
        response = self._request("GET", f"{self._zones_url}/{zone_id}", zone_id, deadline)

        records: dict[str, DnsRecord] = {}
        for rrset in response.json().get("rrsets", []):
            record_id = _ID_SEP.join((zone_id, rrset["name"], rrset["type"]))
            records[record_id] = DnsRecord(
                id=record_id,
                name=rrset["name"].rstrip("."),
                type=rrset["type"],
                value=" ".join(r["content"] for r in rrset.get("records", [])),
                ttl=rrset.get("ttl"),
            )
        return records

    def create_record(
        self,
        zone_id: str,
        name: str,
        type: str,
        value: str,
        ttl_hint: str,
        deadline: Deadline | None = None,
    ) -> None:
        """Create an rrset holding a single value.

        Raises:
            ProviderError: 409 if an rrset with that name and type
                already exists, or any API error.
        """
        response = self._request("GET", f"{self._zones_url}/{zone_id}", zone_id, deadline)
        zone_data = response.json()
        rrset_name = f"{name}.{zone_data['name'].rstrip('.')}."

        for rrset in zone_data.get("rrsets", []):
            if rrset["name"].lower() == rrset_name.lower() and rrset["type"] == type:
                raise ProviderError(f"Record already exists: {rrset_name} {type}", status_code=409)

        self._patch_rrset(
            zone_id,
            {
                "name": rrset_name,
                "type": type,
                "changetype": "REPLACE",
                "ttl": self._ttl_for(ttl_hint),
                "records": [{"content": value, "disabled": False}],
            },
            deadline,
        )
        logger.info("Record created", extra={"zone": zone_id, "record_name": rrset_name})

    def delete_record(self, record_id: str, deadline: Deadline | None = None) -> None:
        """Delete the rrset identified by ``record_id``."""
        try:
            zone_id, rrset_name, type = record_id.split(_ID_SEP)
        except ValueError:
            raise ProviderError(f"Invalid PowerDNS record id: {record_id!r}") from None

        self._patch_rrset(
            zone_id,
            {"name": rrset_name, "type": type, "changetype": "DELETE"},
            deadline,
        )
        logger.info("Record deleted", extra={"zone": zone_id, "record_name": rrset_name})
