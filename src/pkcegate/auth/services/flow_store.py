"""Authorization-code flow store.

Correlates the opaque ``state`` sent to the identity provider with the code
verifier and redirect URL used to start the flow. Entries are single use:
the callback consumes them, so replaying a captured callback URL fails.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, MutableMapping

from pkcegate.auth.models.errors import UnknownOrExpiredFlowError
from pkcegate.auth.models.security import AuthCode, AuthFlowEntry
from pkcegate.auth.primitives.pkce import generate_pkce_secret, generate_state

logger = logging.getLogger(__name__)

DEFAULT_FLOW_TTL_SECONDS = 600.0
DEFAULT_MAX_ENTRIES = 10_000


class AuthorizationCodeStore:
    """Pending sign-in flows keyed by state.

    The backing container is injected so tests get an isolated dict and a
    deployment can swap in an external key-value mapping. Abandoned flows
    are evicted after ``ttl_seconds``; the store never holds more than
    ``max_entries`` flows.
    """

    def __init__(
        self,
        backing: MutableMapping[str, AuthFlowEntry] | None = None,
        ttl_seconds: float = DEFAULT_FLOW_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._flows: MutableMapping[str, AuthFlowEntry] = (
            backing if backing is not None else {}
        )
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock

    def __len__(self) -> int:
        return len(self._flows)

    # ================================
    # Creation
    # ================================

    def create(self, redirect_url: str) -> AuthCode:
        """Start a flow for ``redirect_url``.

        Returns:
            The fresh state and code verifier to embed in the authorization
            request
        """
        self.sweep_expired()
        if len(self._flows) >= self._max_entries:
            self._evict_oldest()

        state = generate_state()
        while state in self._flows:
            state = generate_state()
        code_verifier = generate_pkce_secret().code_verifier

        self._flows[state] = AuthFlowEntry(
            state=state,
            code_verifier=code_verifier,
            redirect_url=redirect_url,
            created_at=self._clock(),
        )

        logger.debug(f"Created auth flow {state[:6]}**** for {redirect_url}")
        return AuthCode(state=state, code_verifier=code_verifier)

    # ================================
    # Access
    # ================================

    def get(self, state: str) -> AuthFlowEntry | None:
        """Get the live flow for ``state``.

        Returns None if the state is unknown, already consumed or expired.
        """
        entry = self._flows.get(state)
        if entry is None:
            return None

        if entry.is_expired(self._clock(), self._ttl_seconds):
            logger.debug(f"Auth flow {state[:6]}**** expired")
            self._flows.pop(state, None)
            return None

        return entry

    def consume(self, state: str) -> AuthFlowEntry:
        """Retrieve and invalidate the flow for ``state`` in one step.

        There is no suspension point between lookup and removal, so of two
        callbacks racing on the same state only the first succeeds.

        Raises:
            UnknownOrExpiredFlowError: If no live flow exists for ``state``
        """
        entry = self.get(state)
        if entry is None:
            raise UnknownOrExpiredFlowError(
                "No pending sign-in for this state; it was never issued, "
                "already used, or has expired"
            )
        self.delete(state)
        return entry

    # ================================
    # Removal
    # ================================

    def delete(self, state: str) -> None:
        """Remove the flow for ``state``. Removing an absent flow is a no-op."""
        if self._flows.pop(state, None) is not None:
            logger.debug(f"Deleted auth flow {state[:6]}****")

    def sweep_expired(self) -> int:
        """Remove every flow older than the time-to-live.

        Returns:
            Number of flows removed
        """
        now = self._clock()
        expired = [
            state
            for state, entry in self._flows.items()
            if entry.is_expired(now, self._ttl_seconds)
        ]
        for state in expired:
            self._flows.pop(state, None)

        if expired:
            logger.info(f"Evicted {len(expired)} abandoned auth flow(s)")
        return len(expired)

    def _evict_oldest(self) -> None:
        oldest = min(self._flows.values(), key=lambda entry: entry.created_at)
        self._flows.pop(oldest.state, None)
        logger.warning(
            f"Auth flow store full ({self._max_entries}); evicted oldest flow"
        )
