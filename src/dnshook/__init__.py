"""dnshook - certbot manual hook for DNS-01 challenges."""

from dnshook.lifecycle import ChallengeLifecycle

__all__ = ["ChallengeLifecycle"]
__version__ = "0.1.0"
