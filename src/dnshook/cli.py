"""Certbot manual-hook entry point.

The same executable serves as ``--manual-auth-hook`` and
``--manual-cleanup-hook``: certbot sets ``CERTBOT_AUTH_OUTPUT`` only for
the cleanup run, which selects delete mode.
"""

import argparse
import sys
from pathlib import Path

from dnshook import __version__
from dnshook._logging import configure_logging, get_logger
from dnshook.config import HookSettings, load_settings
from dnshook.deadline import Deadline
from dnshook.exceptions import ConfigurationError, HookError
from dnshook.lifecycle import ChallengeLifecycle, make_conflict_predicate
from dnshook.models import ChallengeRecord, ChallengeRequest
from dnshook.propagation import PropagationPoller
from dnshook.providers.base import RecordProvider
from dnshook.providers.powerdns import PowerDnsProvider
from dnshook.resolver import AuthoritativeResolver

logger = get_logger(__name__)


def build_provider(settings: HookSettings) -> RecordProvider:
    """Create the record provider described by the settings."""
    if not settings.powerdns_api_url or not settings.powerdns_api_key:
        raise ConfigurationError(
            "DNSHOOK_POWERDNS_API_URL and DNSHOOK_POWERDNS_API_KEY must be set"
        )
    return PowerDnsProvider(
        api_url=settings.powerdns_api_url,
        api_key=settings.powerdns_api_key,
        server_id=settings.powerdns_server_id,
        timeout=settings.powerdns_timeout,
    )


def build_lifecycle(
    settings: HookSettings, provider: RecordProvider | None = None
) -> ChallengeLifecycle:
    """Wire a ChallengeLifecycle from settings."""
    poller = PropagationPoller(
        AuthoritativeResolver(settings.nameserver, settings.nameserver_port),
        max_attempts=settings.max_attempts,
        lookup_timeout=settings.lookup_timeout,
        retry_delay=settings.retry_delay,
    )
    return ChallengeLifecycle(
        provider=provider or build_provider(settings),
        poller=poller,
        conflict_predicate=make_conflict_predicate(settings.conflict_messages, status_codes=(409,)),
        ttl_hint=settings.ttl_hint,
    )


def run(settings: HookSettings, lifecycle: ChallengeLifecycle) -> str | None:
    """Run create or delete depending on the settings.

    Returns:
        The auth output line after a create, None after a delete.
    """
    deadline = Deadline(settings.timeout)
    if settings.delete_mode:
        record = ChallengeRecord.from_auth_output(settings.auth_output)
        lifecycle.delete(record.zone_id, record.fqdn, deadline)
        return None

    request = ChallengeRequest(
        domain=settings.domain, value=settings.validation, timeout=settings.timeout
    )
    result = lifecycle.create(request, deadline)
    return result.record.auth_output()


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dnshook",
        description="Certbot manual hook publishing DNS-01 challenge TXT records.",
    )
    parser.add_argument("--env-file", type=Path, help="path to an env file with hook settings")
    parser.add_argument("--timeout", type=float, help="overall deadline in seconds (0: none)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    overrides = {} if args.timeout is None else {"timeout": args.timeout}

    try:
        settings = load_settings(args.env_file, **overrides)
    except ConfigurationError as e:
        configure_logging()
        logger.error("Invalid configuration", extra={"error": str(e)})
        return 1

    configure_logging(settings.log_level, settings.log_format)
    logger.info(
        "Hook invoked",
        extra={"domain": settings.domain, "mode": "delete" if settings.delete_mode else "create"},
    )

    try:
        output = run(settings, build_lifecycle(settings))
    except HookError as e:
        logger.error(
            "Challenge hook failed",
            extra={"error": str(e), "error_type": type(e).__name__},
        )
        return 1

    if output is not None:
        sys.stdout.write(output)
        sys.stdout.flush()
    return 0
