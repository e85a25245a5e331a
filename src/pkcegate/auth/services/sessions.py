"""Session store mapping opaque session ids to identity claims."""

from __future__ import annotations

import logging
import secrets
from collections.abc import MutableMapping

from pkcegate.auth.models.tokens import IdentityClaims

logger = logging.getLogger(__name__)


class SessionStore:
    """Authenticated sessions and their lifecycle.

    Maintains a mapping from session ids to the claims validated at sign-in.
    Presence in the store is the only access check for protected content;
    expiry is left to the cookie.
    """

    def __init__(
        self, backing: MutableMapping[str, IdentityClaims] | None = None
    ) -> None:
        self._sessions: MutableMapping[str, IdentityClaims] = (
            backing if backing is not None else {}
        )

    def __len__(self) -> int:
        return len(self._sessions)

    # ================================
    # Creation
    # ================================

    def create(self, claims: IdentityClaims) -> str:
        """Create a session for ``claims``.

        Returns:
            A fresh 128-bit session id, hex-encoded
        """
        session_id = secrets.token_hex(16)
        while session_id in self._sessions:
            session_id = secrets.token_hex(16)

        self._sessions[session_id] = claims

        logger.debug(f"Created session {session_id[:6]}**** for {claims.sub}")
        return session_id

    # ================================
    # Access
    # ================================

    def exists(self, session_id: str) -> bool:
        """Check if session exists."""
        return session_id in self._sessions

    def get(self, session_id: str) -> IdentityClaims | None:
        """Get the claims of a session.

        Returns None if session doesn't exist.
        """
        return self._sessions.get(session_id)

    # ================================
    # Termination
    # ================================

    def delete(self, session_id: str) -> None:
        """Delete a session. Deleting an absent session is a no-op."""
        claims = self._sessions.pop(session_id, None)
        if claims is not None:
            logger.debug(f"Deleted session {session_id[:6]}**** for {claims.sub}")

    def clear(self) -> None:
        """Delete all sessions."""
        self._sessions.clear()
        logger.debug("Deleted all sessions")
