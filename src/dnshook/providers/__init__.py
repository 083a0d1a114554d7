"""DNS record providers for ACME challenge records."""

from dnshook.providers.base import RecordProvider
from dnshook.providers.powerdns import PowerDnsProvider

__all__ = ["RecordProvider", "PowerDnsProvider"]
