"""Cookie codec for the session cookie.

Serializes ``Set-Cookie`` values with their security attributes and parses
``Cookie`` request headers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

SESSION_COOKIE_NAME = "sessionId"


@dataclass(frozen=True)
class CookieOptions:
    """Attributes appended to a ``Set-Cookie`` value."""

    http_only: bool = False
    secure: bool = False
    same_site: str | None = None
    path: str | None = None
    expires: datetime | None = None


def _http_date(value: datetime) -> str:
    """Format ``value`` as an RFC 1123 date in GMT."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value.astimezone(timezone.utc), usegmt=True)


def encode_cookie(name: str, value: str, options: CookieOptions | None = None) -> str:
    """Serialize a cookie for a ``Set-Cookie`` header.

    Attributes follow ``name=value`` in a fixed order (HttpOnly, Secure,
    Path, SameSite, Expires); any attribute that is false or absent is left
    out.
    """
    options = options or CookieOptions()
    segments = [f"{name}={value}"]
    if options.http_only:
        segments.append("HttpOnly")
    if options.secure:
        segments.append("Secure")
    if options.path:
        segments.append(f"Path={options.path}")
    if options.same_site:
        segments.append(f"SameSite={options.same_site}")
    if options.expires:
        segments.append(f"Expires={_http_date(options.expires)}")
    return "; ".join(segments)


def parse_cookies(header: str | None) -> dict[str, str]:
    """Parse a ``Cookie`` header into a name to value mapping.

    Each pair is split on its first ``=``; any later ``=`` stays part of
    the value. Segments without ``=`` are ignored.
    """
    cookies: dict[str, str] = {}
    if not header:
        return cookies

    for segment in header.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        name, sep, value = segment.partition("=")
        name = name.strip()
        if not sep or not name:
            continue
        cookies[name] = value.strip()
    return cookies


def session_cookie(
    session_id: str,
    *,
    secure: bool,
    max_age_seconds: int,
    now: datetime | None = None,
) -> str:
    """Build the ``Set-Cookie`` value that establishes a session."""
    now = now or datetime.now(timezone.utc)
    return encode_cookie(
        SESSION_COOKIE_NAME,
        session_id,
        CookieOptions(
            http_only=True,
            secure=secure,
            same_site="Strict",
            path="/",
            expires=now + timedelta(seconds=max_age_seconds),
        ),
    )


def expired_session_cookie(*, secure: bool, now: datetime | None = None) -> str:
    """Build the ``Set-Cookie`` value that clears the session cookie."""
    now = now or datetime.now(timezone.utc)
    return encode_cookie(
        SESSION_COOKIE_NAME,
        "",
        CookieOptions(
            http_only=True,
            secure=secure,
            same_site="Strict",
            path="/",
            expires=now - timedelta(seconds=1),
        ),
    )
