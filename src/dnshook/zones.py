"""Zone selection and challenge record naming."""

from collections.abc import Iterable

ACME_CHALLENGE_LABEL = "_acme-challenge"


def resolve_zone(zones: Iterable[str], domain: str) -> str | None:
    """Pick the zone that best matches a domain.

    Among zone names that are a suffix of ``domain`` the longest wins,
    so a delegated sub-zone is preferred over its parent. On equal
    length the first candidate seen is kept.

    Names are compared as plain strings, not on label boundaries:
    ``ample.com`` is a candidate for ``example.com``.

    Args:
        zones: Zone names the account controls.
        domain: Fully-qualified domain under validation.

    Returns:
        The matching zone name, or None when no zone qualifies.
    """
    best: str | None = None
    for zone in zones:
        if not zone or not domain.endswith(zone):
            continue
        if best is None or len(zone) > len(best):
            best = zone
    return best


def record_name_for(domain: str, zone: str) -> str:
    """Derive the host label of the challenge record relative to its zone.

    Examples:
        >>> record_name_for("example.com", "example.com")
        '_acme-challenge'
        >>> record_name_for("s.example.com", "example.com")
        '_acme-challenge.s'
    """
    if domain == zone:
        return ACME_CHALLENGE_LABEL
    return f"{ACME_CHALLENGE_LABEL}.{domain.removesuffix('.' + zone)}"


def record_fqdn(record_name: str, zone: str) -> str:
    """Join a record name and its zone into the fully-qualified name."""
    return f"{record_name}.{zone}"
