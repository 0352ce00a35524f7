"""Session value persisted between runs."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Self


@dataclass(frozen=True)
class Session:
    """OAuth session: both tokens plus the access token's expiry.

    Instances are immutable; a token exchange always produces a new one.
    """

    access_token: str
    refresh_token: str
    expires_at: datetime

    def __post_init__(self) -> None:
        if not self.access_token or not self.refresh_token:
            raise ValueError("Session requires both an access token and a refresh token")

    @classmethod
    def from_grant(cls, access_token: str, refresh_token: str, expires_in: int, now: float) -> Self:
        """Build a session from a token exchange performed at ``now`` (epoch seconds)."""
        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=datetime.fromtimestamp(int(now) + int(expires_in), tz=timezone.utc),
        )

    @property
    def expire(self) -> int:
        """Expiry as epoch seconds."""
        return int(self.expires_at.timestamp())

    def is_expired(self, now: float | None = None) -> bool:
        """Check if the access token's advertised lifetime has passed."""
        if now is None:
            now = datetime.now(timezone.utc).timestamp()
        return now >= self.expire

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted ``{expire, token, refresh}`` shape."""
        return {
            "expire": self.expire,
            "token": self.access_token,
            "refresh": self.refresh_token,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create from the persisted shape.

        Raises:
            KeyError, TypeError, ValueError: If the data is incomplete or malformed.
        """
        return cls(
            access_token=data["token"],
            refresh_token=data["refresh"],
            expires_at=datetime.fromtimestamp(int(data["expire"]), tz=timezone.utc),
        )

    def __repr__(self) -> str:
        return f"Session(expires_at={self.expires_at.isoformat()})"
