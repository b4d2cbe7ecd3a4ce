"""Canonical Pydantic models shared across all beecli modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`EnvironmentConfig`, :class:`PairingSettings`, and
    :class:`GlobalConfig`.

**Wire models** -- decoded from pairing and identity endpoint responses:
    :class:`PendingAttempt`, :class:`CompletedAttempt`,
    :class:`ExpiredAttempt` (together the :data:`PairingAttempt` tagged
    union), and :class:`IdentityProfile`.

**Persisted state** -- written to the secret store between runs:
    :class:`PairingState`.

All models use Pydantic v2. Wire and persisted models keep the server's
camelCase field names as aliases so that ``model_dump(by_alias=True)``
round-trips exactly what was received.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator


# --- Timestamps ---

_datetime_adapter: TypeAdapter[datetime] = TypeAdapter(datetime)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp as sent by the pairing API.

    Accepts a trailing ``Z`` and fractional seconds finer than a
    microsecond. Naive values are taken as UTC.

    Args:
        value: The raw timestamp string, or ``None``.

    Returns:
        An aware :class:`~datetime.datetime`, or ``None`` if *value* is
        missing or unparsable.
    """
    if not value:
        return None
    try:
        parsed = _datetime_adapter.validate_python(value.strip())
    except ValidationError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# --- Configuration ---


class EnvironmentConfig(BaseModel):
    """Endpoints and identifiers for one deployment of the Bee services.

    ``pairing_urls`` lists candidate base URLs for the pairing endpoint in
    order of preference; a bare 404 from one of them makes the transport
    fall through to the next.
    """

    name: str
    label: str
    api_url: str = Field(description="Base URL of the developer API (identity endpoint)")
    pairing_urls: list[str] = Field(
        min_length=1, description="Candidate base URLs for the pairing endpoint"
    )
    app_id: str = Field(description="App identifier sent with every pairing request")
    connect_host: str = Field(
        default="bee.computer", description="Host serving the /connect/<requestId> page"
    )

    def pairing_url_for(self, request_id: str) -> str:
        """Build the user-facing approval URL for *request_id*."""
        return f"https://{self.connect_host}/connect/{request_id}"


class PairingSettings(BaseModel):
    """Tunable constants for the pairing flow and its HTTP retry policy."""

    poll_interval: float = Field(default=2.0, gt=0, description="Seconds between polls")
    max_attempts: int = Field(default=10, ge=1, description="HTTP attempts per call")
    base_delay: float = Field(default=1.0, ge=0, description="First backoff delay (s)")
    max_delay: float = Field(default=30.0, ge=0, description="Backoff cap (s)")
    fallback_window: float = Field(
        default=300.0,
        gt=0,
        description="Poll window (s) when the server's expiresAt is unparsable",
    )
    request_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout (s)")


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/beecli/config.json``.

    Loaded and saved by :func:`~beecli.config.load_global_config` and
    :func:`~beecli.config.save_global_config`. Environment variables
    override the values stored here; see
    :func:`~beecli.config.resolve_settings`.
    """

    default_environment: Literal["prod", "staging"] = "prod"
    secret_backend: Literal["file", "keyring"] = Field(
        default="file", description="Secret store: file, keyring"
    )
    pairing: PairingSettings = Field(default_factory=PairingSettings)
    environments: dict[str, dict[str, object]] = Field(
        default_factory=dict,
        description="Per-environment field overrides, keyed by environment name",
    )


# --- Pairing wire models ---


class PendingAttempt(BaseModel):
    """The pairing request exists and is waiting for approval."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["pending"] = "pending"
    request_id: str = Field(alias="requestId")
    expires_at: str = Field(alias="expiresAt")


class PairingResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    encrypted_token: str = Field(alias="encryptedToken")


class CompletedAttempt(BaseModel):
    """The user approved the request; the token is sealed to our public key."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["completed"] = "completed"
    request_id: str = Field(alias="requestId")
    result: PairingResult

    @property
    def encrypted_token(self) -> str:
        return self.result.encrypted_token


class ExpiredAttempt(BaseModel):
    """The server gave up on the request."""

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["expired"] = "expired"
    request_id: str = Field(alias="requestId")


PairingAttempt = Annotated[
    Union[PendingAttempt, CompletedAttempt, ExpiredAttempt],
    Field(discriminator="status"),
]
"""Tagged union of the three protocol outcomes, discriminated on ``status``."""

pairing_attempt_adapter: TypeAdapter[PairingAttempt] = TypeAdapter(PairingAttempt)


# --- Persisted pairing state ---


class PairingState(BaseModel):
    """Snapshot of an in-flight pairing attempt, persisted for resumption.

    Holds the ephemeral keypair (base64) alongside the request identifiers so
    that a restarted process can keep polling the same attempt and still
    decrypt its result.
    """

    model_config = ConfigDict(populate_by_name=True)

    app_id: str = Field(alias="appId")
    public_key: str = Field(alias="publicKey")
    secret_key: str = Field(alias="secretKey", repr=False)
    request_id: str = Field(alias="requestId")
    pairing_url: str = Field(alias="pairingUrl")
    expires_at: str = Field(alias="expiresAt")

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` if ``expires_at`` parses and is not after *now*.

        An unparsable timestamp never counts as expired; the poll loop's
        fallback window bounds such an attempt instead.
        """
        expires = parse_timestamp(self.expires_at)
        return expires is not None and now >= expires


# --- Identity ---


class IdentityProfile(BaseModel):
    """The account behind a credential, as returned by ``GET /v1/me``."""

    model_config = ConfigDict(extra="allow")

    id: int = Field(strict=True)
    first_name: str = Field(strict=True)
    last_name: Optional[str] = None

    @field_validator("last_name", mode="before")
    @classmethod
    def _drop_non_string_last_name(cls, value: object) -> Optional[str]:
        return value if isinstance(value, str) else None

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
