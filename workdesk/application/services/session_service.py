"""Session service: sign-in against the upstream and per-request session lookup.

A successful login performs one identity lookup with the user's own
password (this is the credential check), then fetches the user's group
memberships. The credential used afterwards depends on configuration: the
user's own, or the fixed service credential. Identity and groups are kept
either way, because list queries are scoped by them in the proxy rather
than by upstream ACLs.
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable
from typing import Any

from workdesk.core.constants import (
    GROUP_PAGE_SIZE,
    IDENTITY_FIELDS,
    TABLE_GROUP_MEMBER,
    TABLE_USER,
)
from workdesk.domain.entities import Credential, Identity, Session
from workdesk.domain.exceptions import (
    InvalidCredentialsException,
    NotAuthenticatedException,
    SessionStoreUnavailableException,
    UpstreamError,
)
from workdesk.domain.values import pick_id, raw_value
from workdesk.infrastructure.cache import KeyValueStore, session_key
from workdesk.infrastructure.upstream import UpstreamClient, conditions, table_path
from workdesk.shared.enums import CredentialMode

logger = logging.getLogger(__name__)

# 24 random bytes -> 48 hex chars
_TOKEN_BYTES = 24


class SessionService:
    """Create, look up and revoke sessions held in a KeyValueStore."""

    def __init__(
        self,
        upstream: UpstreamClient,
        store: KeyValueStore,
        *,
        service_credential: Credential,
        use_service_account: bool = True,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the service.

        Args:
            upstream: Upstream client.
            store: Session store (memory or Redis).
            service_credential: Fixed privileged credential.
            use_service_account: Delegate all calls to service_credential.
            ttl_seconds: Session lifetime (None or 0 = until logout/restart).
            clock: Wall-clock source for created_at.
        """
        self._upstream = upstream
        self._store = store
        self._service_credential = service_credential
        self._use_service_account = use_service_account
        self._ttl = ttl_seconds or None
        self._clock = clock

    @property
    def service_credential(self) -> Credential:
        return self._service_credential

    async def authenticate(self, username: str, password: str) -> Session:
        """Verify username/password upstream and open a session.

        Raises:
            InvalidCredentialsException: If the upstream rejects the credential,
                or no active identity with that login name exists.
            SessionStoreUnavailableException: If the new session could not be stored.
        """
        if not username or not password:
            raise InvalidCredentialsException("Missing username/password")
        user_credential = Credential(username=username, password=password)
        path = table_path(
            TABLE_USER,
            fields=IDENTITY_FIELDS,
            limit=1,
            query=conditions(f"user_name={username}", "active=true"),
        )
        try:
            data = await self._upstream.get(user_credential, path)
        except UpstreamError as exc:
            logger.info("Login rejected upstream for %s (status %s)", username, exc.status_code)
            raise InvalidCredentialsException(exc.message) from exc

        rows = data.get("result") if isinstance(data, dict) else None
        user = rows[0] if isinstance(rows, list) and rows else None
        user_id = raw_value(user.get("sys_id")) if isinstance(user, dict) else ""
        if not user_id:
            logger.info("Login failed for %s: no active identity", username)
            raise InvalidCredentialsException()

        groups = await self.fetch_groups(user_credential, user_id)
        mode = CredentialMode.SERVICE if self._use_service_account else CredentialMode.USER
        session = Session(
            token=secrets.token_hex(_TOKEN_BYTES),
            identity=Identity(id=user_id, attributes=user),
            credential=self._service_credential if mode is CredentialMode.SERVICE else user_credential,
            mode=mode,
            groups=groups,
            created_at=self._clock(),
        )
        if not await self._store.set(session_key(session.token), session.to_dict(), ttl=self._ttl):
            logger.error("Session for %s could not be stored", username)
            raise SessionStoreUnavailableException()
        logger.info(
            "Session opened for %s via %s credential (%d groups)",
            username,
            mode.value,
            len(groups),
        )
        return session

    async def lookup(self, token: str | None) -> Session | None:
        """Return the session for token, or None if unknown or expired."""
        if not token:
            return None
        try:
            key = session_key(token)
        except ValueError:
            return None
        data = await self._store.get(key)
        if not data:
            return None
        return Session.from_dict(data)

    async def require(self, token: str | None) -> Session:
        """Return the session for token.

        Raises:
            NotAuthenticatedException: If token is missing, unknown or expired.
        """
        session = await self.lookup(token)
        if session is None:
            raise NotAuthenticatedException()
        return session

    async def logout(self, token: str) -> None:
        """Revoke a session. Unknown tokens are ignored."""
        await self._store.delete(session_key(token))

    async def groups_for(self, session: Session) -> list[str]:
        """Session groups, re-fetched with the session credential when none were cached."""
        if session.groups:
            return session.groups
        return await self.fetch_groups(session.credential, session.identity.id)

    async def fetch_groups(self, credential: Credential, user_id: str) -> list[str]:
        """Group sys_ids the user belongs to.

        Tries credential first; if the upstream refuses (e.g. ACLs hide group
        membership from ordinary users), retries with the service credential.
        Returns [] when both fail so a login is never blocked on groups.
        """
        try:
            return await self._fetch_group_pages(credential, user_id)
        except UpstreamError as exc:
            if credential == self._service_credential:
                logger.warning("Group lookup failed for %s: %s", user_id, exc.message)
                return []
            logger.info("Group lookup refused for %s; retrying with service credential", user_id)
        try:
            return await self._fetch_group_pages(self._service_credential, user_id)
        except UpstreamError as exc:
            logger.warning("Group lookup failed for %s: %s", user_id, exc.message)
            return []

    async def _fetch_group_pages(self, credential: Credential, user_id: str) -> list[str]:
        groups: list[str] = []
        offset = 0
        while True:
            path = table_path(
                TABLE_GROUP_MEMBER,
                fields="group",
                query=f"user={user_id}",
                limit=GROUP_PAGE_SIZE,
                offset=offset or None,
            )
            data = await self._upstream.get(credential, path)
            rows: list[dict[str, Any]] = (data.get("result") or []) if isinstance(data, dict) else []
            for row in rows:
                group = pick_id(row.get("group"))
                if group and isinstance(group, str) and group not in groups:
                    groups.append(group)
            if len(rows) < GROUP_PAGE_SIZE:
                return groups
            offset += GROUP_PAGE_SIZE
