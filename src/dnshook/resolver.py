"""TXT lookups against a fixed authoritative nameserver."""

import ipaddress
from typing import Protocol

import dns.exception
import dns.resolver

from dnshook._logging import get_logger
from dnshook.exceptions import DnsLookupError, NoSuchRecordError

logger = get_logger(__name__)

DEFAULT_NAMESERVER = "ns1.afraid.org"


class TxtResolver(Protocol):
    """Capability to look up TXT values for a name.

    Implementations raise NoSuchRecordError when the name has no TXT
    records yet and DnsLookupError for any other lookup failure.
    """

    def lookup_txt(self, fqdn: str, timeout: float) -> list[str]: ...


class AuthoritativeResolver:
    """Resolve TXT records by querying one nameserver directly.

    The system resolver is bypassed so a freshly created record is seen
    as soon as the provider's own nameserver serves it, without waiting
    on recursive caches.

    Args:
        nameserver: Hostname or IP address of the nameserver to query.
        port: Nameserver port.
    """

    def __init__(self, nameserver: str = DEFAULT_NAMESERVER, port: int = 53):
        self.nameserver = nameserver
        self.port = port
        self._resolver: dns.resolver.Resolver | None = None

    def _nameserver_addresses(self, timeout: float) -> list[str]:
        try:
            ipaddress.ip_address(self.nameserver)
        except ValueError:
            pass
        else:
            return [self.nameserver]

        try:
            answer = dns.resolver.resolve(self.nameserver, "A", lifetime=timeout)
        except dns.exception.DNSException as e:
            raise DnsLookupError(f"Cannot resolve nameserver {self.nameserver}: {e}") from e
        return [rdata.address for rdata in answer]

    def _get_resolver(self, timeout: float) -> dns.resolver.Resolver:
        if self._resolver is None:
            resolver = dns.resolver.Resolver(configure=False)
            resolver.nameservers = self._nameserver_addresses(timeout)
            resolver.port = self.port
            logger.debug(
                "Using authoritative nameserver",
                extra={"nameserver": self.nameserver, "addresses": resolver.nameservers},
            )
            self._resolver = resolver
        return self._resolver

    def lookup_txt(self, fqdn: str, timeout: float) -> list[str]:
        """Look up the TXT values of a name.

        Args:
            fqdn: Fully-qualified name to query.
            timeout: Lifetime of the query in seconds.

        Returns:
            The decoded TXT strings; multi-string records are joined and
            bytes that are not UTF-8 are backslash-escaped.

        Raises:
            NoSuchRecordError: NXDOMAIN or no TXT data at the name.
            DnsLookupError: Any other failure (timeout, SERVFAIL, network).
        """
        resolver = self._get_resolver(timeout)
        try:
            answer = resolver.resolve(fqdn, "TXT", lifetime=timeout)
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer) as e:
            raise NoSuchRecordError(f"No TXT record for {fqdn}") from e
        except dns.exception.DNSException as e:
            raise DnsLookupError(f"TXT lookup for {fqdn} failed: {e}") from e
        except OSError as e:
            raise DnsLookupError(f"TXT lookup for {fqdn} failed: {e}") from e

        return [b"".join(rdata.strings).decode(errors="backslashreplace") for rdata in answer]
