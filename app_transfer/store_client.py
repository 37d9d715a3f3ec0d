"""
app_transfer/store_client.py
-----------------------------------------------------------------------------
Thin synchronous wrapper around the REST definition backend.

Why synchronous?
----------------
FastAPI runs sync route handlers in a thread-pool executor automatically
(via `def` rather than `async def`), so a blocking httpx call never stalls
the event loop.  Each call opens its own ``httpx.Client``; no connection or
session state — in particular no workspace selection — is shared between
requests.

Backend reference
-----------------
GET    {base}/workspaces/{scope}/applications/{id}?split=true&components=PAGE:1,PAGE:2
GET    {base}/applications/{id}?split=false                (no scope on export)
       → {"files": [{"name": "f101.sql", "contents": "..."}]}

POST   {base}/workspaces/{scope}/applications
       {"files": [...], "overwrite": true, "application_id": 205 | null}
       → {"application_id": 205}

DELETE {base}/workspaces/{scope}/applications/{id}

GET    {base}/users/{caller}/workspaces
       → {"workspaces": ["SALES", "HR"]}

Error handling
--------------
Every failure — HTTP 4xx/5xx, timeouts, connection errors, malformed JSON —
is logged as a warning and re-raised as a :class:`StoreError` subclass that
carries the backend's diagnostic text.  The one exception is a 404 on the
workspace lookup: an unknown caller is a scope failure
(:class:`ScopeResolutionError`), not a missing definition.  Nothing is
retried here; retry policy belongs to the caller.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from app_transfer import settings
from app_transfer.errors import (
    DefinitionNotFound,
    InstallError,
    ScopeResolutionError,
    StoreError,
)
from app_transfer.schema import FileCollection

logger = logging.getLogger(__name__)

# Longest backend error text carried into a StoreError.
_MAX_DETAIL_CHARS: int = 500


def _segment(value: str) -> str:
    return quote(value, safe="")


class HttpDefinitionStore:
    """
    :class:`~app_transfer.store.DefinitionStore` backed by a REST service.

    Parameters
    ----------
    base_url        : Backend root URL, e.g. ``"https://defs.internal/api"``.
    connect_timeout : Seconds to wait for a connection.
    read_timeout    : Seconds to wait for the full response body.  Installs
                      of large applications can take a while.
    """

    kind = "http"

    def __init__(
        self,
        base_url: str,
        *,
        connect_timeout: float = settings.STORE_CONNECT_TIMEOUT,
        read_timeout: float = settings.STORE_READ_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(
            connect=connect_timeout, read=read_timeout, write=read_timeout, pool=5.0
        )

    # -- Transport --------------------------------------------------------- #

    def _request(
        self,
        method: str,
        path: str,
        *,
        error_cls: type[StoreError] = StoreError,
        **kwargs,
    ) -> httpx.Response:
        """
        Send one request and translate every failure into ``error_cls``.

        404 always becomes :class:`DefinitionNotFound`, whatever the call.
        """
        url = f"{self.base_url}{path}"
        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            detail = exc.response.text[:_MAX_DETAIL_CHARS] or exc.response.reason_phrase
            logger.warning("Definition store %s %s returned HTTP %s: %s", method, url, status, detail)
            cls = DefinitionNotFound if status == 404 else error_cls
            raise cls(detail, status_code=status) from exc
        except httpx.TimeoutException as exc:
            logger.warning("Definition store %s %s timed out", method, url)
            raise StoreError(f"Definition store timed out on {method} {path}.") from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "Definition store %s %s failed: %s: %s", method, url, type(exc).__name__, exc
            )
            raise StoreError(f"Definition store unreachable: {exc}") from exc
        return response

    @staticmethod
    def _json(response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError as exc:
            raise StoreError(
                f"Definition store returned a non-JSON body: {response.text[:_MAX_DETAIL_CHARS]}"
            ) from exc
        if not isinstance(data, dict):
            raise StoreError(f"Definition store returned unexpected JSON: {type(data).__name__}")
        return data

    # -- DefinitionStore --------------------------------------------------- #

    def get_definition(
        self,
        scope: str | None,
        application_id: int,
        *,
        components: frozenset[str] | None,
        split: bool,
    ) -> FileCollection:
        if scope is None:
            path = f"/applications/{application_id}"
        else:
            path = f"/workspaces/{_segment(scope)}/applications/{application_id}"

        params: dict[str, str] = {"split": "true" if split else "false"}
        if components:
            params["components"] = ",".join(sorted(components))

        data = self._json(self._request("GET", path, params=params))

        # Guard: the "files" key must be present and well-formed.
        if "files" not in data:
            raise StoreError(
                f"Definition store response for application {application_id} is missing "
                f"the 'files' key. Got keys: {list(data.keys())}"
            )
        try:
            return FileCollection(files=data["files"])
        except ValidationError as exc:
            raise StoreError(f"Definition store returned invalid files: {exc}") from exc

    def install(
        self,
        scope: str,
        files: FileCollection,
        *,
        overwrite: bool = True,
        forced_id: int | None = None,
    ) -> int:
        body: dict = {
            "files": [f.model_dump() for f in files.files],
            "overwrite": overwrite,
            "application_id": forced_id,
        }
        response = self._request(
            "POST",
            f"/workspaces/{_segment(scope)}/applications",
            json=body,
            error_cls=InstallError,
        )
        data = self._json(response)

        installed = data.get("application_id", forced_id)
        if installed is None:
            raise InstallError("Definition store did not report the installed application id.")
        try:
            return int(installed)
        except (TypeError, ValueError) as exc:
            raise InstallError(
                f"Definition store reported a non-numeric application id: {installed!r}"
            ) from exc

    def remove_definition(self, scope: str, application_id: int) -> None:
        self._request("DELETE", f"/workspaces/{_segment(scope)}/applications/{application_id}")

    def assigned_workspaces(self, caller: str) -> list[str]:
        try:
            response = self._request("GET", f"/users/{_segment(caller)}/workspaces")
        except DefinitionNotFound as exc:
            raise ScopeResolutionError(
                f"User '{caller}' is not known to the definition store."
            ) from exc
        data = self._json(response)
        workspaces = data.get("workspaces", [])
        if not isinstance(workspaces, list):
            raise StoreError("Definition store returned a malformed workspace list.")
        return [str(w) for w in workspaces]
