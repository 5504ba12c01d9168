from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from .config import API_PATH, HTTP_TIMEOUT, PAGE_SIZE, USER_AGENT
from .datamodels import (
    FederatedInstances,
    Instance,
    ListingScope,
    LoginResult,
    PostRecord,
    RawPage,
)
from .errors import AuthError, DecodeError, TransportError

logger = logging.getLogger("lemnux")

# Error codes the API answers with when the session is the problem.
AUTH_ERROR_CODES = {
    "not_logged_in",
    "incorrect_login",
    "missing_totp_token",
    "incorrect_totp_token",
    "email_not_verified",
    "registration_application_is_pending",
    "registration_denied",
    "site_ban",
    "deleted",
}


class LemmyClient:
    """A client for one Lemmy instance, bound to one (optional) token.

    The token is fixed for the client's lifetime. A session change builds a
    new client, so requests already running keep the credentials they
    started with.
    """

    def __init__(self, domain: str, token: Optional[str] = None, secure: bool = True):
        self.domain = domain
        self.token = token
        self.url = f"http{'s' if secure else ''}://{domain}{API_PATH}"
        self.session = self._create_session()

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def _create_session(self) -> requests.Session:
        s = requests.Session()
        s.headers.update({"Accept": "application/json", "User-Agent": USER_AGENT})
        if self.token:
            s.headers["Authorization"] = f"Bearer {self.token}"
        return s

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.url}{path}"
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(method, url, timeout=HTTP_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if resp.status_code >= 400:
            code = _error_code(resp)
            if resp.status_code in (401, 403) or code in AUTH_ERROR_CODES:
                raise AuthError(code or f"HTTP {resp.status_code}")
            try:
                resp.raise_for_status()
            except requests.HTTPError as e:
                raise TransportError(code or str(e)) from e

        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(f"Invalid JSON from {url}: {e}") from e

    def get_posts(self, scope: ListingScope, cursor: Optional[str] = None) -> RawPage:
        """Fetch one page of posts. ``cursor`` must come from the same scope."""
        if scope.listing_type.requires_login and not self.is_authenticated:
            raise AuthError(f"Log in to see the {scope.listing_type.label} feed")

        params: Dict[str, Any] = {
            "type_": scope.listing_type.value,
            "sort": scope.sort.value,
            "limit": PAGE_SIZE,
            "saved_only": _flag(scope.saved_only),
            "liked_only": _flag(scope.liked_only),
            "disliked_only": _flag(scope.disliked_only),
        }
        if scope.community_name:
            params["community_name"] = scope.community_name
        if cursor is not None:
            params["page_cursor"] = cursor

        data = self._request("GET", "/post/list", params=params)
        try:
            posts = tuple(PostRecord.from_view(view) for view in data["posts"])
            next_cursor = data.get("next_page")
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise DecodeError(f"Malformed post listing: {e!r}") from e

        logger.debug("Fetched %d posts from %s, next page %s", len(posts), self.domain, next_cursor)
        return RawPage(posts=posts, next_cursor=next_cursor)

    def get_federated_instances(self) -> FederatedInstances:
        data = self._request("GET", "/federated_instances")
        try:
            federated = data.get("federated_instances") or {}
            return FederatedInstances(
                linked=[Instance.from_dict(i) for i in federated.get("linked", [])],
                allowed=[Instance.from_dict(i) for i in federated.get("allowed", [])],
                blocked=[Instance.from_dict(i) for i in federated.get("blocked", [])],
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise DecodeError(f"Malformed instance list: {e!r}") from e

    def login(
        self,
        username_or_email: str,
        password: str,
        totp_2fa_token: Optional[str] = None,
    ) -> LoginResult:
        payload = {
            "username_or_email": username_or_email,
            "password": password,
            "totp_2fa_token": totp_2fa_token,
        }
        data = self._request("POST", "/user/login", json=payload)
        try:
            result = LoginResult(
                token=data.get("jwt"),
                registration_created=data.get("registration_created", False),
                verify_email_sent=data.get("verify_email_sent", False),
            )
        except AttributeError as e:
            raise DecodeError(f"Malformed login response: {e!r}") from e
        logger.info(
            "Login for %s on %s: token=%s", username_or_email, self.domain, result.token is not None
        )
        return result


def _flag(value: bool) -> str:
    return "true" if value else "false"


def _error_code(resp: requests.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return None
