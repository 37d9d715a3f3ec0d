"""
app_transfer/main.py
-----------------------------------------------------------------------------
FastAPI application entrypoint for the Application Transfer Service.

This module is a **thin routing layer** — each route handler maps the
request onto one orchestrator call and maps the result (or error) back onto
a response.  All transfer logic lives in dedicated modules:

Domain modules
~~~~~~~~~~~~~~
- ``app_transfer.transfer_mode`` – single-document vs archive resolution.
- ``app_transfer.codec``         – UTF-8 text ↔ bytes.
- ``app_transfer.archive``       – zip pack / unpack with safety limits.
- ``app_transfer.exporter``      – export orchestration.
- ``app_transfer.importer``      – import orchestration.
- ``app_transfer.remover``       – delete orchestration.
- ``app_transfer.scope``         – workspace resolution.
- ``app_transfer.store_client``  – REST definition store (httpx).
- ``app_transfer.memory_store``  – in-process definition store.
- ``app_transfer.schema``        – Pydantic v2 models.
- ``app_transfer.errors``        – exception taxonomy.
- ``app_transfer.settings``      – environment configuration.

Run with:
    uvicorn app_transfer.main:app --host 127.0.0.1 --port 8242

Endpoints
---------
GET    /api/health                          → version and store kind
GET    /api/applications/{target_file}      → export ``<id>[.sql|.zip]``
POST   /api/applications                    → import, keep embedded id
POST   /api/applications/{application_id}   → import, force the id
DELETE /api/applications/{application_id}   → delete

Request headers
---------------
Accept              – export media type hint (wildcards mean "no hint").
Content-Type        – import media type hint.
X-Target-Workspace  – explicit workspace for import / delete / export.
X-Remote-User       – authenticated caller, set by the fronting proxy;
                      used to find the default workspace.
"""

from __future__ import annotations

import io
import logging
import tomllib
from pathlib import Path

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from starlette.requests import Request

from app_transfer import settings
from app_transfer.errors import (
    ArchiveFormatError,
    DefinitionNotFound,
    EncodingError,
    InvalidIdentifier,
    InvalidPayload,
    ScopeResolutionError,
    StoreError,
    TransferError,
)
from app_transfer.exporter import export_application
from app_transfer.importer import import_application
from app_transfer.memory_store import InMemoryDefinitionStore
from app_transfer.remover import delete_application
from app_transfer.schema import DeleteResponse, HealthResponse, ImportResponse, TargetDescriptor
from app_transfer.store import DefinitionStore
from app_transfer.store_client import HttpDefinitionStore

# -----------------------------------------------------------------------------
# Bootstrap
# -----------------------------------------------------------------------------

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

_HERE = Path(__file__).parent

# Read version from pyproject.toml (single source of truth).
_PYPROJECT = _HERE.parent / "pyproject.toml"
with open(_PYPROJECT, "rb") as _f:
    _APP_VERSION: str = tomllib.load(_f)["project"]["version"]


def _build_store() -> DefinitionStore:
    if settings.DEFINITION_STORE_URL:
        logger.info("Using definition store at %s", settings.DEFINITION_STORE_URL)
        return HttpDefinitionStore(settings.DEFINITION_STORE_URL)
    logger.warning("DEFINITION_STORE_URL not set; using a non-persistent in-memory store")
    return InMemoryDefinitionStore()


_store: DefinitionStore = _build_store()


def get_store() -> DefinitionStore:
    """Dependency returning the process-wide store (overridden in tests)."""
    return _store


# -----------------------------------------------------------------------------
# FastAPI app
# -----------------------------------------------------------------------------

app = FastAPI(
    title="Application Transfer Service",
    description=(
        "Exports application definitions as a single SQL script or a zip of "
        "scripts, and imports either form back into a target workspace."
    ),
    version=_APP_VERSION,
)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _accept_hint(accept: str | None) -> str | None:
    """
    Turn an ``Accept`` header into a media-type hint.

    The first listed type is the hint.  Missing headers and wildcards
    (``*/*``, ``application/*``) carry no preference, so the filename
    suffix decides instead.
    """
    if not accept:
        return None
    first = accept.split(",", 1)[0].split(";", 1)[0].strip()
    if not first or first.endswith("/*"):
        return None
    return first


def _to_http_error(exc: TransferError) -> HTTPException:
    """Map a transfer error onto the HTTP status the client should see."""
    if isinstance(exc, (InvalidIdentifier, InvalidPayload, ArchiveFormatError, EncodingError)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, ScopeResolutionError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, DefinitionNotFound):
        return HTTPException(status_code=404, detail=exc.detail)
    if isinstance(exc, StoreError):
        return HTTPException(status_code=502, detail=f"Definition store error: {exc.detail}")
    return HTTPException(status_code=500, detail=str(exc))


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


@app.get("/api/health", response_model=HealthResponse, summary="Service health")
def health(store: DefinitionStore = Depends(get_store)) -> HealthResponse:
    """Return the service version and which kind of store is configured."""
    return HealthResponse(version=_APP_VERSION, store=store.kind)


@app.get(
    "/api/applications/{target_file}",
    summary="Export an application as <id>.sql or <id>.zip",
)
def export_app(
    target_file: str,
    components: str | None = Query(
        default=None,
        description="Comma-separated component selectors, e.g. 'PAGE:1,PAGE:2'.",
    ),
    accept: str | None = Header(default=None),
    x_target_workspace: str | None = Header(default=None),
    x_remote_user: str | None = Header(default=None),
    store: DefinitionStore = Depends(get_store),
) -> StreamingResponse:
    """
    Stream an application definition for download.

    ``target_file`` is ``<id>`` or ``<id>.<ext>``.  The ``Accept`` header,
    when it names a concrete type, overrides the suffix: ``application/zip``
    yields an archive, anything else a single SQL script.

    Raises
    ------
    HTTPException(400) : Non-numeric application id.
    HTTPException(404) : Application not found.
    HTTPException(502) : Definition store failure.
    """
    try:
        result = export_application(
            store,
            target_file,
            components,
            _accept_hint(accept),
            workspace=x_target_workspace,
            caller=x_remote_user,
        )
    except TransferError as exc:
        raise _to_http_error(exc) from exc

    return StreamingResponse(
        io.BytesIO(result.content),
        media_type=result.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{result.filename}"',
            "Content-Length": str(result.content_length),
            "X-Content-SHA256": result.sha256,
        },
    )


def _too_large(size: int) -> HTTPException:
    return HTTPException(
        status_code=413,
        detail=f"Upload size ({size:,} bytes) exceeds the "
        f"{settings.MAX_UPLOAD_SIZE:,}-byte limit.",
    )


async def _read_body(request: Request) -> bytes:
    """
    Read the request body, stopping as soon as it passes ``MAX_UPLOAD_SIZE``.

    A declared ``Content-Length`` over the limit is refused before anything
    is read; chunked uploads are cut off mid-stream.
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > settings.MAX_UPLOAD_SIZE:
        raise _too_large(int(declared))

    buffer = bytearray()
    async for chunk in request.stream():
        buffer.extend(chunk)
        if len(buffer) > settings.MAX_UPLOAD_SIZE:
            raise _too_large(len(buffer))
    return bytes(buffer)


async def _install(
    request: Request,
    store: DefinitionStore,
    *,
    application_id: int | None,
    workspace: str | None,
    caller: str | None,
) -> ImportResponse:
    """Shared body of both import routes."""
    payload = await _read_body(request)

    target = TargetDescriptor(application_id=application_id, workspace=workspace)
    try:
        # Unpacking and the store call block; keep them off the event loop.
        outcome = await run_in_threadpool(
            import_application,
            store,
            payload,
            request.headers.get("content-type"),
            target=target,
            caller=caller,
        )
    except TransferError as exc:
        raise _to_http_error(exc) from exc

    return ImportResponse(
        application_id=outcome.application_id,
        workspace=outcome.workspace,
        mode=outcome.mode.value,
        files=outcome.files,
    )


@app.post(
    "/api/applications",
    response_model=ImportResponse,
    summary="Import an application, keeping its embedded id",
)
async def import_app(
    request: Request,
    x_target_workspace: str | None = Header(default=None),
    x_remote_user: str | None = Header(default=None),
    store: DefinitionStore = Depends(get_store),
) -> ImportResponse:
    """
    Install the raw request body.  ``Content-Type: application/zip`` marks
    an archive; any other type is read as a single SQL script.
    """
    return await _install(
        request,
        store,
        application_id=None,
        workspace=x_target_workspace,
        caller=x_remote_user,
    )


@app.post(
    "/api/applications/{application_id}",
    response_model=ImportResponse,
    summary="Import an application under a forced id",
)
async def import_app_as(
    application_id: int,
    request: Request,
    x_target_workspace: str | None = Header(default=None),
    x_remote_user: str | None = Header(default=None),
    store: DefinitionStore = Depends(get_store),
) -> ImportResponse:
    """Same as ``POST /api/applications`` but installs under ``application_id``."""
    return await _install(
        request,
        store,
        application_id=application_id,
        workspace=x_target_workspace,
        caller=x_remote_user,
    )


@app.delete(
    "/api/applications/{application_id}",
    response_model=DeleteResponse,
    summary="Delete an application",
)
def delete_app(
    application_id: int,
    x_target_workspace: str | None = Header(default=None),
    x_remote_user: str | None = Header(default=None),
    store: DefinitionStore = Depends(get_store),
) -> DeleteResponse:
    """
    Remove an application from the target workspace (or the caller's
    default workspace).

    Raises
    ------
    HTTPException(403) : No workspace could be resolved.
    HTTPException(404) : Application not found.
    HTTPException(502) : Definition store failure.
    """
    try:
        workspace = delete_application(
            store,
            application_id,
            target_workspace=x_target_workspace,
            caller=x_remote_user,
        )
    except TransferError as exc:
        raise _to_http_error(exc) from exc
    return DeleteResponse(application_id=application_id, workspace=workspace)
