"""Pydantic models for DNS-01 challenge state."""

from enum import StrEnum

from pydantic import BaseModel, Field

from dnshook.exceptions import MalformedReplayInputError

# =============================================================================
# Enums
# =============================================================================


class AttemptOutcome(StrEnum):
    """Classification of a single propagation lookup."""

    ABSENT = "absent"
    TRANSIENT_ERROR = "transient-error"
    WRONG_VALUE = "present-wrong-value"
    CONFIRMED = "present-correct-value"


class PollOutcome(StrEnum):
    """Terminal result of a propagation poll."""

    CONFIRMED = "confirmed"
    TIMED_OUT = "timed-out"
    CANCELLED = "cancelled"


# =============================================================================
# Pydantic Models
# =============================================================================


class ChallengeRequest(BaseModel):
    """Input for one create invocation."""

    domain: str = Field(min_length=1)
    value: str = Field(min_length=1)
    timeout: float = Field(default=0.0, ge=0)

    model_config = {"frozen": True}


class ChallengeRecord(BaseModel):
    """Identifies the challenge record across the create/delete boundary.

    Only ``zone_id`` and ``fqdn`` survive the round trip through the
    auth output; the zone and record names are known during create only.
    """

    zone_id: str
    fqdn: str
    zone_name: str | None = None
    record_name: str | None = None

    model_config = {"frozen": True}

    def auth_output(self) -> str:
        """Render the ``zoneId,recordFQDN`` line handed back to the caller."""
        return f"{self.zone_id},{self.fqdn}"

    @classmethod
    def from_auth_output(cls, text: str) -> "ChallengeRecord":
        """Parse the output of a previous create run.

        Args:
            text: The ``zoneId,recordFQDN`` line.

        Returns:
            ChallengeRecord with zone_id and fqdn set.

        Raises:
            MalformedReplayInputError: Unless there are exactly two non-empty fields.
        """
        parts = [part.strip() for part in text.strip().split(",")]
        if len(parts) != 2 or not all(parts):
            raise MalformedReplayInputError(text)
        return cls(zone_id=parts[0], fqdn=parts[1])


class DnsRecord(BaseModel):
    """A record as reported by a provider's record API."""

    id: str
    name: str
    type: str
    value: str
    ttl: int | None = None


class PollAttempt(BaseModel):
    """One lookup performed while waiting for propagation."""

    attempt: int
    outcome: AttemptOutcome
    values: list[str] = Field(default_factory=list)
    error: str | None = None


class PollResult(BaseModel):
    """Outcome of a propagation poll along with its attempt log."""

    outcome: PollOutcome
    fqdn: str
    expected: str
    attempts: list[PollAttempt] = Field(default_factory=list)

    @property
    def confirmed(self) -> bool:
        return self.outcome == PollOutcome.CONFIRMED


class CreateResult(BaseModel):
    """Result of a successful create."""

    record: ChallengeRecord
    propagation: PollResult
