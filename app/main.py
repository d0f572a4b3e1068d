"""FastAPI app exposing the data-entry workspace."""

from __future__ import annotations

import os
import re
import sys
import time
import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _load_env_file(path: Path) -> None:
    if not path.exists():
        return
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


_load_env_file(ROOT / "app" / ".env")

from app.entries_validation import field_errors_to_issues
from app.export_csv import EXPORT_FILENAME
from app.stores import FileBlobStore, MemoryBlobStore
from app.workspace import Workspace


app = FastAPI(title="Entry Desk")
logger = logging.getLogger("entrydesk")
logging.basicConfig(level=logging.INFO)

APP_ENV = os.getenv("APP_ENV", os.getenv("ENV", "dev")).strip().lower() or "dev"
IS_DEV = APP_ENV == "dev"
STORAGE = os.getenv("ENTRYDESK_STORAGE", "file").strip().lower() or "file"
DATA_DIR = os.getenv("ENTRYDESK_DATA_DIR", "").strip() or str(ROOT / "data")
REQ_SLOW_MS = float(os.getenv("ENTRYDESK_REQ_SLOW_MS", "250"))
_LOCAL_CORS_REGEX = re.compile(r"^http://(localhost|127\.0\.0\.1):\d+$")
_CORS_ORIGINS = {
    origin.strip().rstrip("/")
    for origin in os.getenv("ENTRYDESK_CORS_ORIGINS", "").split(",")
    if origin.strip()
}


def build_blob_store(storage: str = STORAGE):
    if storage == "memory":
        return MemoryBlobStore()
    if storage == "db":
        from app.stores_db import DbBlobStore

        return DbBlobStore()
    return FileBlobStore(DATA_DIR)


logger.info("storage=%s data_dir=%s app_env=%s", STORAGE, DATA_DIR if STORAGE == "file" else None, APP_ENV)
workspace = Workspace(build_blob_store())


@app.middleware("http")
async def local_cors_fallback_middleware(request: Request, call_next):
    origin = request.headers.get("origin")
    if request.method == "OPTIONS":
        response = JSONResponse({}, status_code=200)
    else:
        response = await call_next(request)
    normalized_origin = origin.rstrip("/") if isinstance(origin, str) else origin
    if normalized_origin and (normalized_origin in _CORS_ORIGINS or _LOCAL_CORS_REGEX.match(normalized_origin)):
        response.headers.setdefault("Access-Control-Allow-Origin", origin)
        response.headers.setdefault("Access-Control-Allow-Headers", "*")
        response.headers.setdefault("Access-Control-Allow-Methods", "*")
        response.headers.setdefault("Vary", "Origin")
    return response


@app.middleware("http")
async def timing_middleware(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    total_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s %s total_ms=%.1f", request.method, request.url.path, response.status_code, total_ms)
    if total_ms >= REQ_SLOW_MS:
        logger.warning("slow_request method=%s path=%s total_ms=%.1f", request.method, request.url.path, total_ms)
    if IS_DEV:
        response.headers["X-Req-MS"] = f"{total_ms:.1f}"
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error path=%s", request.url.path)
    return _error_response("INTERNAL_ERROR", "Unexpected server error", detail={"error": str(exc)}, status=500)


def _error_response(code: str, message: str, path: str | None = None, detail: dict | None = None, status: int = 400) -> JSONResponse:
    body = {
        "ok": False,
        "errors": [{"code": code, "message": message, "path": path, "detail": detail}],
        "warnings": [],
    }
    return JSONResponse(jsonable_encoder(body), status_code=status)


def _ok_response(payload: dict, warnings: list | None = None, status: int = 200) -> JSONResponse:
    body = {"ok": True, **payload, "errors": [], "warnings": warnings or []}
    return JSONResponse(jsonable_encoder(body), status_code=status)


def _issues_response(errors: list, status: int = 400, payload: dict | None = None) -> JSONResponse:
    body = {"ok": False, **(payload or {}), "errors": errors, "warnings": []}
    return JSONResponse(jsonable_encoder(body), status_code=status)


async def _safe_json(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _form_state() -> dict:
    return {
        "mode": workspace.mode,
        "editing_entry_id": workspace.editing_entry_id,
        "fields": workspace.fields(),
        "values": workspace.form_values(),
    }


@app.get("/health")
async def health() -> dict:
    return {"ok": True}


@app.get("/fields")
async def list_fields() -> JSONResponse:
    return _ok_response({"fields": workspace.fields()})


@app.post("/fields")
async def create_field(request: Request) -> JSONResponse:
    body = await _safe_json(request)
    draft = body.get("field") if "field" in body else body
    result = workspace.create_field(draft)
    if not result["ok"]:
        return _issues_response(result["errors"])
    return _ok_response({"field": result["field"]}, status=201)


@app.patch("/fields/{field_id}")
async def update_field(request: Request, field_id: str) -> JSONResponse:
    body = await _safe_json(request)
    patch = body.get("patch") if "patch" in body else body
    result = workspace.update_field(field_id, patch)
    if not result["ok"]:
        return _issues_response(result["errors"])
    return _ok_response({"changed": result["changed"], "field": result["field"]})


@app.delete("/fields/{field_id}")
async def delete_field(field_id: str) -> JSONResponse:
    result = workspace.delete_field(field_id)
    return _ok_response({"deleted": result["deleted"]})


@app.get("/form")
async def get_form() -> JSONResponse:
    return _ok_response(_form_state())


@app.post("/form/edit/{entry_id}")
async def begin_edit(entry_id: str) -> JSONResponse:
    changed = workspace.begin_edit(entry_id)
    return _ok_response({"changed": changed, **_form_state()})


@app.post("/form/cancel")
async def cancel_edit() -> JSONResponse:
    workspace.cancel_edit()
    return _ok_response(_form_state())


@app.post("/form/submit")
async def submit_form(request: Request) -> JSONResponse:
    body = await _safe_json(request)
    values = body.get("values") if "values" in body else body
    result = workspace.submit(values)
    outcome = result["outcome"]
    if outcome == "invalid":
        return _issues_response(
            [{"code": "ENTRY_INVALID", "message": "Entry has missing required fields", "path": "values", "detail": None}]
            + field_errors_to_issues(result["field_errors"]),
            status=422,
            payload={"outcome": outcome, "field_errors": result["field_errors"], **_form_state()},
        )
    if outcome == "not_found":
        return _error_response("ENTRY_NOT_FOUND", "Entry being edited no longer exists", "entry_id", status=404)
    return _ok_response({"outcome": outcome, "entry": result["entry"], **_form_state()}, status=201 if outcome == "created" else 200)


@app.get("/entries")
async def list_entries(q: str | None = None) -> JSONResponse:
    entries = workspace.search(q)
    return _ok_response({"entries": entries, "total": len(workspace.entries()), "matched": len(entries)})


@app.get("/entries/export.csv")
async def export_entries() -> Response:
    csv_text = workspace.export()
    if csv_text is None:
        return _error_response("NO_ENTRIES", "There are no entries to export", status=409)
    return Response(
        content=csv_text.encode("utf-8-sig"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@app.delete("/entries")
async def clear_entries() -> JSONResponse:
    removed = workspace.clear_entries()
    return _ok_response({"removed": removed})


@app.get("/entries/{entry_id}")
async def get_entry(entry_id: str) -> JSONResponse:
    entry = workspace.get_entry(entry_id)
    if entry is None:
        return _error_response("ENTRY_NOT_FOUND", "Entry not found", "entry_id", status=404)
    return _ok_response({"entry": entry})


@app.delete("/entries/{entry_id}")
async def delete_entry(entry_id: str) -> JSONResponse:
    deleted = workspace.delete_entry(entry_id)
    return _ok_response({"deleted": deleted})


@app.post("/entries/{entry_id}/duplicate")
async def duplicate_entry(entry_id: str) -> JSONResponse:
    entry = workspace.duplicate_entry(entry_id)
    if entry is None:
        return _ok_response({"changed": False, "entry": None})
    return _ok_response({"changed": True, "entry": entry}, status=201)
