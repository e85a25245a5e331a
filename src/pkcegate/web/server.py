"""HTTP server exposing the sign-in, sign-out and protected routes."""

import contextlib
import logging
from collections.abc import AsyncIterator
from pathlib import Path

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import FileResponse, RedirectResponse, Response
from starlette.routing import Route

from pkcegate.auth.models.errors import (
    AuthorizationCallbackError,
    OAuth2Error,
    UnknownOrExpiredFlowError,
)
from pkcegate.auth.relying_party import RelyingParty
from pkcegate.config import RelyingPartyConfig
from pkcegate.web.cookies import (
    SESSION_COOKIE_NAME,
    expired_session_cookie,
    parse_cookies,
    session_cookie,
)

logger = logging.getLogger(__name__)

SIGNIN_PATH = "/api/signin"


class RelyingPartyServer:
    """Starlette application serving the relying party.

    Routes:
    - ``/``, ``/styles.css``: static application shell
    - ``/secret.html``: protected page, requires a live session
    - ``/api/signin``, ``/api/signin/callback``: sign-in flow
    - ``/api/signout``, ``/api/signout/callback``: sign-out flow
    """

    def __init__(
        self,
        config: RelyingPartyConfig,
        relying_party: RelyingParty | None = None,
    ) -> None:
        """Initialize the HTTP server."""
        self.config = config
        self.relying_party = (
            relying_party if relying_party is not None else RelyingParty(config)
        )
        self._public_dir = Path(config.public_dir)

        self._app = Starlette(
            routes=[
                Route("/", self._handle_index, methods=["GET"]),
                Route("/styles.css", self._handle_styles, methods=["GET"]),
                Route("/secret.html", self._handle_secret, methods=["GET"]),
                Route(SIGNIN_PATH, self._handle_signin, methods=["GET"]),
                Route(
                    "/api/signin/callback",
                    self._handle_signin_callback,
                    methods=["GET"],
                ),
                Route("/api/signout", self._handle_signout, methods=["GET"]),
                Route(
                    "/api/signout/callback",
                    self._handle_signout_callback,
                    methods=["GET"],
                ),
            ],
            lifespan=self._lifespan,
        )
        self._server = None

    @property
    def app(self) -> Starlette:
        return self._app

    @contextlib.asynccontextmanager
    async def _lifespan(self, app: Starlette) -> AsyncIterator[None]:
        yield
        await self.relying_party.close()

    async def serve(self) -> None:
        """Run the HTTP server until it is told to exit."""
        config = uvicorn.Config(
            app=self._app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower(),
        )
        self._server = uvicorn.Server(config)

        logger.info(f"Server started on {self.config.host}:{self.config.port}")
        logger.info("Listening for requests ...")
        await self._server.serve()

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._server:
            self._server.should_exit = True

    # ================================
    # Static content
    # ================================

    async def _handle_index(self, request: Request) -> Response:
        self._log_request(request)
        return FileResponse(self._public_dir / "index.html", media_type="text/html")

    async def _handle_styles(self, request: Request) -> Response:
        self._log_request(request)
        return FileResponse(self._public_dir / "styles.css", media_type="text/css")

    async def _handle_secret(self, request: Request) -> Response:
        """Serve the protected page, or send the browser to sign in."""
        self._log_request(request)
        session_id = self._session_id(request)
        if not self.relying_party.is_authenticated(session_id):
            return RedirectResponse(SIGNIN_PATH, status_code=307)

        return FileResponse(self._public_dir / "secret.html", media_type="text/html")

    # ================================
    # Sign-in
    # ================================

    async def _handle_signin(self, request: Request) -> Response:
        self._log_request(request)
        try:
            authorization_url = await self.relying_party.start_sign_in()
        except Exception as e:
            return self._error_response(e)

        return RedirectResponse(authorization_url, status_code=307)

    async def _handle_signin_callback(self, request: Request) -> Response:
        """Complete sign-in and hand the browser its session cookie."""
        self._log_request(request)
        try:
            result = await self.relying_party.complete_sign_in(request.query_params)
        except UnknownOrExpiredFlowError as e:
            logger.warning(f"Rejected sign-in callback: {e}")
            return RedirectResponse(SIGNIN_PATH, status_code=307)
        except Exception as e:
            return self._error_response(e)

        cookie = session_cookie(
            result.session_id,
            secure=self.config.cookie_secure,
            max_age_seconds=self.config.session_ttl_seconds,
        )
        return RedirectResponse(
            self.config.app_root, status_code=302, headers={"Set-Cookie": cookie}
        )

    # ================================
    # Sign-out
    # ================================

    async def _handle_signout(self, request: Request) -> Response:
        self._log_request(request)
        try:
            logout_url = await self.relying_party.start_sign_out()
        except Exception as e:
            return self._error_response(e)

        return RedirectResponse(logout_url, status_code=307)

    async def _handle_signout_callback(self, request: Request) -> Response:
        """Delete the session and expire the cookie."""
        self._log_request(request)
        self.relying_party.complete_sign_out(self._session_id(request))

        cookie = expired_session_cookie(secure=self.config.cookie_secure)
        return RedirectResponse(
            self.config.app_root, status_code=307, headers={"Set-Cookie": cookie}
        )

    # ================================
    # Helpers
    # ================================

    def _session_id(self, request: Request) -> str | None:
        cookies = parse_cookies(request.headers.get("cookie"))
        return cookies.get(SESSION_COOKIE_NAME) or None

    def _log_request(self, request: Request) -> None:
        logger.info(f"{request.method} - Request on path: {request.url.path}")

    def _error_response(self, error: Exception) -> Response:
        """Map a failed flow step to an error response."""
        if isinstance(error, AuthorizationCallbackError):
            logger.warning(f"Bad authorization callback: {error}")
            return Response("Bad request", status_code=400)
        if isinstance(error, OAuth2Error):
            logger.error(f"Identity provider error: {error}")
            return Response("Bad gateway", status_code=502)

        logger.exception(f"Error handling request: {error}")
        return Response("Internal server error", status_code=500)
