"""
Cookie-session HTTP client for the LuxPower web portal.

Wraps an ``httpx.AsyncClient`` bound to a cookie jar whose policy rejects
cookies scoped to a public suffix (``.com``, ``.co.uk``, ...), using the
bundled list from ``publicsuffixlist``. Login is a plain form-post; the
session is considered established once the portal has set a cookie that
would be sent back to the base URL.

Redirects are never followed: the first response (a 302 after login, for
example) completes the exchange.

Operations:
- authenticate(): POST account/password to ``/web/login``.
- has_session(): True iff the jar holds a cookie for the base URL.
- post_form(path, data): Authenticated form-post, raising on HTTP errors.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
import urllib.request
from http.cookiejar import Cookie, CookieJar, DefaultCookiePolicy

import httpx
from publicsuffixlist import PublicSuffixList

from luxpower.src.errors import AuthError, HttpStatusError, NetworkError

logger = logging.getLogger(__name__)

LOGIN_PATH = "/web/login"
"""Portal login endpoint, relative to the base URL."""

_psl: PublicSuffixList | None = None


def _public_suffix_list() -> PublicSuffixList:
    """Return the shared PublicSuffixList, loading it on first use."""
    global _psl  # noqa: PLW0603
    if _psl is None:
        _psl = PublicSuffixList()
    return _psl


class PublicSuffixCookiePolicy(DefaultCookiePolicy):
    """Cookie policy that refuses Domain= attributes naming a public suffix.

    Host-only cookies are unaffected; only cookies that try to widen their
    scope to a registry-controlled domain are dropped.
    """

    def __init__(self, psl: PublicSuffixList | None = None, **kwargs: object) -> None:
        super().__init__(**kwargs)  # type: ignore[arg-type]
        self._psl = psl

    def set_ok_domain(self, cookie: Cookie, request: urllib.request.Request) -> bool:
        if not super().set_ok_domain(cookie, request):
            return False
        if cookie.domain_specified:
            psl = self._psl or _public_suffix_list()
            if psl.is_public(cookie.domain.lstrip(".")):
                logger.debug(
                    "Rejected cookie %s scoped to public suffix %s",
                    cookie.name,
                    cookie.domain,
                )
                return False
        return True


class SessionClient:
    """HTTP client holding the LuxPower login session for one run.

    The cookie jar lives exactly as long as this object; nothing is
    persisted between runs.

    Args:
        base_url: Portal base URL without a trailing slash.
        account_name: Login name sent as the ``account`` form field.
        password: Password sent as the ``password`` form field.
        transport: Optional httpx transport, e.g. ``httpx.MockTransport``
            in tests. Defaults to the regular network transport.

    Usage::

        async with SessionClient(url, "me", "secret") as client:
            if not client.has_session():
                await client.authenticate()
            response = await client.post_form("/api/...", {"k": "v"})
    """

    def __init__(
        self,
        base_url: str,
        account_name: str,
        password: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._account_name = account_name
        self._password = password
        self._jar = CookieJar(policy=PublicSuffixCookiePolicy())
        self._client = httpx.AsyncClient(
            cookies=self._jar,
            follow_redirects=False,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def base_url(self) -> str:
        """Portal base URL this client talks to."""
        return self._base_url

    @property
    def cookie_jar(self) -> CookieJar:
        """The session cookie jar (shared with the underlying httpx client)."""
        return self._jar

    def has_session(self) -> bool:
        """Return True iff the jar would send any cookie to the base URL."""
        request = urllib.request.Request(self._base_url)
        self._jar.add_cookie_header(request)
        return request.has_header("Cookie")

    async def authenticate(self) -> None:
        """Log in by form-posting the account name and password.

        Success is defined by the portal having set a session cookie; the
        response body is not inspected.

        Raises:
            NetworkError: If the request could not be sent.
            AuthError: If the portal answered with an HTTP error status or
                set no session cookie.
        """
        logger.info("Logging in to LuxPower portal at %s", self._base_url)
        response = await self._post(
            LOGIN_PATH,
            {"account": self._account_name, "password": self._password},
        )
        if response.status_code >= 400:
            raise AuthError(f"Login rejected with HTTP {response.status_code}")
        if not self.has_session():
            raise AuthError("Login response did not set a session cookie")
        logger.info("Login succeeded (HTTP %d)", response.status_code)

    async def post_form(self, path: str, data: dict[str, str]) -> httpx.Response:
        """POST a form to ``{base_url}{path}`` using the current session.

        Args:
            path: Absolute path on the portal, starting with ``/``.
            data: Form fields.

        Returns:
            The response, with its body fully read.

        Raises:
            NetworkError: If the request could not be sent.
            HttpStatusError: If the portal answered with status >= 400.
        """
        response = await self._post(path, data)
        if response.status_code >= 400:
            raise HttpStatusError(
                f"POST {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def __aenter__(self) -> SessionClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _post(self, path: str, data: dict[str, str]) -> httpx.Response:
        """Send a form-post, translating transport failures to NetworkError."""
        try:
            return await self._client.post(f"{self._base_url}{path}", data=data)
        except httpx.TransportError as exc:
            raise NetworkError(f"POST {path} failed: {exc}") from exc
