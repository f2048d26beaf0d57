r"""Client for the remote site store.

This module wraps the REST endpoints the site builder persists drafts,
versions, provisioning and publishing through. Every call returns a
:class:`RemoteResult` instead of raising: transport failures, non-2xx
statuses, undecodable bodies and ``{"ok": false}`` envelopes all come back as
``ok=False`` so the lifecycle manager and the provisioning state machine can
turn them into diagnostics or an ``error`` status. Callers that prefer
exceptions use :meth:`RemoteResult.raise_for_status`.

Example
-------
>>> from sb_sites.remote import SiteStoreClient
>>> client = SiteStoreClient("https://builder.example.com", token="t")  # doctest: +SKIP
>>> client.load_draft("42").data["slug"]  # doctest: +SKIP
'my-studio'
"""

from __future__ import annotations

import dataclasses as dc
import json
import logging
import typing as typ
from http import HTTPStatus

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
_USER_AGENT = "sb-sites/0.1"


class SiteStoreError(RuntimeError):
    """Raised by :meth:`RemoteResult.raise_for_status` for failed calls."""


@dc.dataclass(frozen=True, slots=True)
class RemoteResult:
    """Outcome of one remote call.

    Attributes
    ----------
    ok : bool
        True for a 2xx response whose body is not an ``{"ok": false}``
        envelope.
    status_code : int | None
        HTTP status, or None when the request never completed.
    data : Any
        Decoded JSON body, when there was one.
    error : str | None
        Human-readable failure description.
    """

    ok: bool
    status_code: int | None = None
    data: typ.Any = None
    error: str | None = None

    def raise_for_status(self) -> RemoteResult:
        """Return ``self`` when ok, otherwise raise :class:`SiteStoreError`."""
        if self.ok:
            return self
        status = f" (status {self.status_code})" if self.status_code else ""
        msg = f"Remote store call failed{status}: {self.error or 'unknown error'}"
        raise SiteStoreError(msg)


class SiteStore(typ.Protocol):
    """Blocking remote store contract; async callers wrap it in a thread."""

    def load_draft(self, business_id: str) -> RemoteResult: ...

    def save_draft(self, business_id: str, payload: typ.Mapping[str, typ.Any]) -> RemoteResult: ...

    def get_site_settings(self, business_id: str) -> RemoteResult: ...

    def provision(self, business_id: str, payload: typ.Mapping[str, typ.Any]) -> RemoteResult: ...

    def get_provision_status(self, business_id: str) -> RemoteResult: ...

    def publish(self, business_id: str, payload: typ.Mapping[str, typ.Any]) -> RemoteResult: ...

    def get_publish_status(self, task_id: str) -> RemoteResult: ...

    def list_versions(self, business_id: str) -> RemoteResult: ...

    def get_version_content(self, business_id: str, version_id: str) -> RemoteResult: ...

    def revert_version(self, business_id: str, version_id: str) -> RemoteResult: ...

    def fetch_public_site_data(self, business_id: str) -> RemoteResult: ...


def build_retrying_session() -> requests.Session:
    """Return a session that retries idempotent requests on transient errors.

    Only ``GET`` and ``HEAD`` are retried. ``POST`` calls such as publish and
    revert create server-side state and are never replayed.
    """
    session = requests.Session()
    retry = Retry(
        total=3,
        read=3,
        connect=3,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class SiteStoreClient:
    """HTTP implementation of :class:`SiteStore` built on ``requests``."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        csrf_token: str | None = None,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialise the client with optional credentials and transport.

        Parameters
        ----------
        base_url : str
            Scheme and host of the site builder service.
        token : str | None, optional
            Bearer token added to every request when provided.
        csrf_token : str | None, optional
            Value forwarded in the ``X-CSRFToken`` header on writes.
        session : requests.Session, optional
            Preconfigured session; defaults to one from
            :func:`build_retrying_session`.
        timeout : float, optional
            Per-request timeout in seconds. Defaults to ``10.0``.
        """
        normalized = base_url.strip().rstrip("/")
        if not normalized:
            msg = "Remote store base URL cannot be empty"
            raise ValueError(msg)
        self.base_url = normalized
        self.session = session or build_retrying_session()
        self.timeout = timeout
        self._headers = {
            "Accept": "application/json",
            "User-Agent": _USER_AGENT,
            "X-Requested-With": "XMLHttpRequest",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"
        self._csrf_token = csrf_token

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        payload: typ.Mapping[str, typ.Any] | None = None,
    ) -> RemoteResult:
        headers = dict(self._headers)
        if method != "GET" and self._csrf_token:
            headers["X-CSRFToken"] = self._csrf_token
        url = self._url(path)
        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            return RemoteResult(ok=False, error=str(exc))

        status = response.status_code
        try:
            data = response.json() if response.content else None
        except (json.JSONDecodeError, ValueError):
            return RemoteResult(
                ok=False,
                status_code=status,
                error=f"Response from {path} was not valid JSON",
            )

        if status >= HTTPStatus.BAD_REQUEST or status < HTTPStatus.OK:
            message = _error_message(data) or f"HTTP {status}"
            logger.warning("%s %s returned %s", method, url, status)
            return RemoteResult(ok=False, status_code=status, data=data, error=message)
        if isinstance(data, dict) and data.get("ok") is False:
            message = _error_message(data) or "Request was rejected"
            return RemoteResult(ok=False, status_code=status, data=data, error=message)
        return RemoteResult(ok=True, status_code=status, data=data)

    def load_draft(self, business_id: str) -> RemoteResult:
        return self._request("GET", f"/api/sitebuilder/{business_id}/draft")

    def save_draft(self, business_id: str, payload: typ.Mapping[str, typ.Any]) -> RemoteResult:
        return self._request("POST", f"/api/sitebuilder/{business_id}/draft", payload=payload)

    def get_site_settings(self, business_id: str) -> RemoteResult:
        return self._request("GET", f"/api/sitebuilder/{business_id}/site-settings")

    def provision(self, business_id: str, payload: typ.Mapping[str, typ.Any]) -> RemoteResult:
        return self._request("POST", f"/api/sitebuilder/{business_id}/provision", payload=payload)

    def get_provision_status(self, business_id: str) -> RemoteResult:
        return self._request("GET", f"/api/sitebuilder/{business_id}/provision-status")

    def publish(self, business_id: str, payload: typ.Mapping[str, typ.Any]) -> RemoteResult:
        return self._request("POST", f"/api/sitebuilder/{business_id}/publish", payload=payload)

    def get_publish_status(self, task_id: str) -> RemoteResult:
        return self._request("GET", f"/api/sitebuilder/publish/status/{task_id}")

    def list_versions(self, business_id: str) -> RemoteResult:
        return self._request("GET", f"/api/sitebuilder/{business_id}/versions")

    def get_version_content(self, business_id: str, version_id: str) -> RemoteResult:
        """Fetch the read-only configuration stored in ``version_id``."""
        return self._request(
            "POST",
            f"/api/sitebuilder/{business_id}/versions",
            payload={"action": "get_content", "version_id": version_id},
        )

    def revert_version(self, business_id: str, version_id: str) -> RemoteResult:
        """Create a new version whose content equals ``version_id``."""
        return self._request(
            "POST",
            f"/api/sitebuilder/{business_id}/versions",
            payload={"action": "revert", "version_id": version_id},
        )

    def fetch_public_site_data(self, business_id: str) -> RemoteResult:
        return self._request("GET", f"/api/public/sites/data-for/{business_id}")

    def close(self) -> None:
        self.session.close()


def _error_message(data: object) -> str | None:
    if isinstance(data, dict):
        for key in ("message", "error", "detail"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return None


__all__ = [
    "DEFAULT_TIMEOUT",
    "RemoteResult",
    "SiteStore",
    "SiteStoreClient",
    "SiteStoreError",
    "build_retrying_session",
]
