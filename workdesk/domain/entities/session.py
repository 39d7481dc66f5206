"""Session domain entities: credentials, identities and signed-in sessions.

A session couples the identity that signed in (used to scope queries) with
the credential that actually performs upstream calls. The two are decoupled:
in service-account mode every call uses the fixed privileged credential
while the identity and its groups still decide which rows are listed.
"""

from dataclasses import dataclass, field
from typing import Any

from workdesk.domain.values import unwrap_value
from workdesk.shared.enums import CredentialMode


@dataclass(frozen=True)
class Credential:
    """Basic-auth credential for the upstream record store."""

    username: str
    password: str = field(repr=False)

    def to_dict(self) -> dict[str, str]:
        return {"username": self.username, "password": self.password}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Credential":
        return cls(username=data["username"], password=data["password"])


@dataclass(frozen=True)
class Identity:
    """Authenticated upstream user (sys_id plus display attributes)."""

    id: str
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        """Name used in provenance stamps: login name, then email, then full name."""
        for key in ("user_name", "email", "name"):
            text = unwrap_value(self.attributes.get(key))
            if text:
                return text
        return "unknown"


@dataclass
class Session:
    """A signed-in user held by the session store.

    Attributes:
        token: Opaque 48-hex-char bearer token.
        identity: Who signed in.
        credential: Credential used for upstream calls on this session's behalf.
        mode: Whether credential is the user's own or the service account.
        groups: Group sys_ids cached at login.
        created_at: Unix time the session was created.
    """

    token: str
    identity: Identity
    credential: Credential
    mode: CredentialMode
    groups: list[str] = field(default_factory=list)
    created_at: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Serializable form for key-value stores."""
        return {
            "token": self.token,
            "identity": {"id": self.identity.id, "attributes": self.identity.attributes},
            "credential": self.credential.to_dict(),
            "mode": self.mode.value,
            "groups": list(self.groups),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        identity = data.get("identity") or {}
        return cls(
            token=data["token"],
            identity=Identity(id=identity["id"], attributes=identity.get("attributes") or {}),
            credential=Credential.from_dict(data["credential"]),
            mode=CredentialMode(data["mode"]),
            groups=list(data.get("groups") or []),
            created_at=float(data.get("created_at") or 0.0),
        )
