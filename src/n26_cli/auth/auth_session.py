"""Authentication state machine for the N26 API.

Owns the OAuth session for one client: password login with the out-of-band
MFA step, refresh, and recovery when the server rejects the bearer token in
the middle of a request.

States::

    UNAUTHENTICATED -> AUTHENTICATING -> [MFA_PENDING] -> AUTHENTICATED
    AUTHENTICATED -> EXPIRED -> AUTHENTICATING -> ...

Expiry is never checked up front. The session is renewed only when the
server answers ``error=invalid_token``.
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable

from tenacity import RetryCallState, Retrying, retry_if_result, wait_fixed

from n26_cli.api.exceptions import (
    AuthRejectedError,
    CorruptStoreError,
    MfaCancelledError,
    MfaTimeoutError,
    NotAuthenticatedError,
)
from n26_cli.api.models.auth import INVALID_TOKEN, TokenError, TokenGrant, parse_token_response
from n26_cli.api.transport import ApiCallContext, ApiResponse, ApiTransport
from n26_cli.auth.constants import (
    DEFAULT_MFA_MAX_WAIT_SEC,
    DEFAULT_MFA_WAIT_SEC,
    GRANT_MFA_OOB,
    GRANT_PASSWORD,
    GRANT_REFRESH_TOKEN,
    MFA_CHALLENGE_PATH,
    MFA_CHALLENGE_TYPE,
    REFRESH_TOKEN_INVALID_ERRORS,
    TOKEN_PATH,
)
from n26_cli.auth.credential_store import CredentialStore
from n26_cli.auth.session import Session

logger = logging.getLogger(__name__)

CredentialsSource = Callable[[], tuple[str, str] | None]


class AuthState(str, Enum):
    """Lifecycle states of an AuthSession."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    MFA_PENDING = "mfa_pending"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"


class AuthSession:
    """Obtains, persists and renews the user's session.

    All reads and writes of the session go through one re-entrant lock, so a
    request never picks up half of a freshly written token pair. Renewal holds
    the lock for its whole duration; concurrent callers whose token was
    rejected wait for it and then replay with the new token.
    """

    def __init__(
        self,
        store: CredentialStore,
        credentials: CredentialsSource | tuple[str, str] | None = None,
        *,
        strict_store: bool = False,
        mfa_wait: float = DEFAULT_MFA_WAIT_SEC,
        mfa_max_wait: float = DEFAULT_MFA_MAX_WAIT_SEC,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the session manager.

        Args:
            store: Where the session is persisted
            credentials: (username, password), or a callable returning them
                lazily (e.g. from the keyring); needed only for password login
            strict_store: Raise instead of logging in again when the stored
                session cannot be read
            mfa_wait: Seconds between MFA approval polls
            mfa_max_wait: Seconds to wait for MFA approval
            clock: Returns the current time as epoch seconds
        """
        self._store = store
        self._credentials = credentials
        self._strict_store = strict_store
        self.mfa_wait = mfa_wait
        self.mfa_max_wait = mfa_max_wait
        self._clock = clock

        self._transport: ApiTransport | None = None
        self._session: Session | None = None
        self._state = AuthState.UNAUTHENTICATED
        self._lock = threading.RLock()
        # Guards only _state, so it stays readable while login waits for MFA
        self._state_lock = threading.Lock()
        self._cancelled = threading.Event()

    def attach(self, transport: ApiTransport) -> None:
        """Use ``transport`` for token exchanges and take over its stale-token recovery."""
        self._transport = transport
        transport.set_refresh_handler(self.refresh)

    @property
    def transport(self) -> ApiTransport:
        if self._transport is None:
            raise RuntimeError("AuthSession has no transport - call attach() first")
        return self._transport

    @property
    def state(self) -> AuthState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: AuthState) -> None:
        with self._state_lock:
            self._state = state

    @property
    def session(self) -> Session | None:
        with self._lock:
            return self._session

    def get_access_token(self) -> str | None:
        """Current access token, read under the session lock."""
        with self._lock:
            return self._session.access_token if self._session else None

    def load_stored(self) -> Session | None:
        """Adopt the stored session without contacting the server.

        Returns:
            The stored session, or None when there is none or it is unreadable.

        Raises:
            CorruptStoreError: If the store is unreadable and strict_store is set
        """
        with self._lock:
            if not self._store.exists():
                return None
            try:
                session = self._store.load()
            except CorruptStoreError as e:
                if self._strict_store:
                    raise
                logger.warning(f"Stored session unusable, logging in again: {e}")
                return None
            self._session = session
            self._set_state(AuthState.AUTHENTICATED)
            logger.debug("Loaded stored session")
            return session

    def start(self) -> Session:
        """Reuse the stored session, or log in when there is none.

        Raises:
            CorruptStoreError: If the store is unreadable and strict_store is set
        """
        with self._lock:
            return self.load_stored() or self.login()

    def login(self) -> Session:
        """Exchange username and password for a session.

        Runs the out-of-band MFA flow when the server asks for it.

        Raises:
            NotAuthenticatedError: If no credentials are available
            AuthRejectedError: If the server refuses the login
            MfaTimeoutError: If the second factor was not approved in time
        """
        with self._lock:
            self._cancelled.clear()
            creds = self._resolve_credentials()
            if creds is None:
                raise NotAuthenticatedError()
            username, password = creds

            self._set_state(AuthState.AUTHENTICATING)
            logger.info("Logging in")
            try:
                result = self._exchange(
                    {"grant_type": GRANT_PASSWORD, "username": username, "password": password}
                )

                if isinstance(result, TokenError) and result.is_mfa_required:
                    self._set_state(AuthState.MFA_PENDING)
                    logger.info("Second factor required, waiting for approval")
                    result = self._complete_mfa(result.mfa_token)

                if isinstance(result, TokenGrant):
                    session = self.set_session(result)
                    logger.info("Login successful")
                    return session
                if isinstance(result, TokenError):
                    raise AuthRejectedError(result.error, result.description)
                raise AuthRejectedError("invalid_response", "Unexpected token endpoint response")
            except Exception:
                self._set_state(AuthState.UNAUTHENTICATED)
                raise

    def refresh(
        self,
        pending: ApiCallContext | None = None,
        stale_token: str | None = None,
    ) -> ApiResponse | None:
        """Renew the session and replay the call whose token was rejected.

        Args:
            pending: The rejected call; replayed exactly once after renewal
            stale_token: Access token the rejected call carried. If the
                session has moved on since, only the replay is done.

        Returns:
            The replayed response, or None when nothing was pending.

        Raises:
            AuthRejectedError: If renewal fails for any reason other than a
                dead refresh token, or the replay is rejected again
        """
        with self._lock:
            current = self._session
            if stale_token is not None and current is not None and current.access_token != stale_token:
                logger.debug("Session already renewed, replaying with the current token")
            else:
                self._renew(current)

        if pending is None:
            return None
        return self._replay(pending)

    def set_session(self, grant: TokenGrant) -> Session:
        """Persist a fresh token pair and make it the current session."""
        session = Session.from_grant(
            grant.access_token, grant.refresh_token, grant.expires_in, self._clock()
        )
        with self._lock:
            self._store.save(session)
            self._session = session
            self._set_state(AuthState.AUTHENTICATED)
        return session

    def logout(self) -> bool:
        """Forget the session in memory and in the store.

        Returns:
            True if a stored session was removed.
        """
        with self._lock:
            self._session = None
            self._set_state(AuthState.UNAUTHENTICATED)
            return self._store.delete()

    def cancel(self) -> None:
        """Abort the login in progress; it fails with MfaCancelledError once MFA is reached."""
        self._cancelled.set()

    def _resolve_credentials(self) -> tuple[str, str] | None:
        if callable(self._credentials):
            return self._credentials()
        return self._credentials

    def _exchange(self, payload: dict[str, str], json: bool = True) -> TokenGrant | TokenError | None:
        response = self.transport.send(
            ApiCallContext(TOKEN_PATH, payload, basic=True, method="POST", json=json)
        )
        return parse_token_response(response.data)

    def _renew(self, current: Session | None) -> None:
        self._set_state(AuthState.EXPIRED)
        if current is None:
            logger.info("No session to refresh, logging in")
            self.login()
            return

        self._set_state(AuthState.AUTHENTICATING)
        try:
            result = self._exchange(
                {"grant_type": GRANT_REFRESH_TOKEN, "refresh_token": current.refresh_token}
            )
        except Exception:
            self._set_state(AuthState.EXPIRED)
            raise

        if isinstance(result, TokenGrant):
            self.set_session(result)
            logger.info("Session refreshed")
            return

        if isinstance(result, TokenError) and result.error in REFRESH_TOKEN_INVALID_ERRORS:
            logger.info("Refresh token no longer valid, logging in again")
            self.login()
            return

        self._set_state(AuthState.EXPIRED)
        if isinstance(result, TokenError):
            raise AuthRejectedError(result.error, result.description)
        raise AuthRejectedError("invalid_response", "Unexpected refresh response")

    def _replay(self, pending: ApiCallContext) -> ApiResponse:
        response = self.transport.send(pending)
        if response.stale_token:
            raise AuthRejectedError(
                INVALID_TOKEN,
                response.error_description or "Access token rejected after refresh",
                response.status_code,
            )
        return response

    def _complete_mfa(self, mfa_token: str) -> TokenGrant:
        # Only the side effect matters: N26 pushes an approval request to the phone
        self.transport.send(
            ApiCallContext(
                MFA_CHALLENGE_PATH,
                {"challengeType": MFA_CHALLENGE_TYPE, "mfaToken": mfa_token},
                basic=True,
                method="POST",
                json=True,
            )
        )

        if self._cancelled.is_set():
            raise MfaCancelledError()
        started = self._clock()

        def deadline_reached(retry_state: RetryCallState) -> bool:
            # Don't start a wait that would end past the ceiling
            return self._clock() - started + self.mfa_wait >= self.mfa_max_wait

        retrying = Retrying(
            retry=retry_if_result(lambda result: not isinstance(result, TokenGrant)),
            wait=wait_fixed(self.mfa_wait),
            stop=deadline_reached,
            sleep=self._pause,
            retry_error_callback=lambda retry_state: None,
        )
        grant = retrying(self._poll_mfa, mfa_token)
        if grant is None:
            logger.warning(f"MFA not approved within {self.mfa_max_wait}s")
            raise MfaTimeoutError()
        return grant

    def _poll_mfa(self, mfa_token: str) -> TokenGrant | TokenError | None:
        logger.debug("Polling for MFA approval")
        return self._exchange({"grant_type": GRANT_MFA_OOB, "mfaToken": mfa_token}, json=False)

    def _pause(self, seconds: float) -> None:
        if self._cancelled.wait(seconds):
            raise MfaCancelledError()
