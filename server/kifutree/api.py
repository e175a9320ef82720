from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from .core.arena import UnknownSequence
from .core.export_kif import export_tree_to_kif
from .core.splice import OrphanBranchPoint
from .services.state_store import RuntimeState


_LOGGER = logging.getLogger(__name__)

router = APIRouter()


def _runtime(request: Request) -> RuntimeState:
    return request.app.state.runtime


async def _read_json_or_empty(request: Request) -> dict[str, Any]:
    try:
        data = await request.json()
    except Exception:
        return {}
    return data if isinstance(data, dict) else {}


async def _load(request: Request, kifu_id: str):
    try:
        return await _runtime(request).get(kifu_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="kifu not found") from None


@router.get("/healthz")
async def healthz(request: Request):
    return {"ok": True, "stored": await _runtime(request).count()}


@router.get("/api/kifu")
async def list_kifu(
    request: Request,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    items = await _runtime(request).list_kifu(limit=limit, offset=offset)
    return {"items": items, "limit": limit, "offset": offset}


@router.post("/api/import")
async def import_kifu(
    request: Request,
    encoding: str | None = Query(default=None),
    title: str | None = Query(default=None),
):
    content_type = (request.headers.get("content-type") or "").lower()
    runtime = _runtime(request)
    try:
        if "application/json" in content_type:
            data = await _read_json_or_empty(request)
            kifu = await runtime.import_text(str(data.get("text") or ""), title=data.get("title") or title)
        else:
            body = await request.body()
            kifu = await runtime.import_bytes(body, encoding=encoding, title=title)
    except OrphanBranchPoint as exc:
        _LOGGER.warning("rejected kifu: %s", exc)
        raise HTTPException(status_code=400, detail=f"Import failed: {exc}") from exc
    except ValueError as exc:
        _LOGGER.warning("rejected kifu: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"kifu": kifu.to_wire()}


@router.get("/api/kifu/{kifu_id}")
async def get_kifu(request: Request, kifu_id: str):
    kifu = await _load(request, kifu_id)
    return {"kifu": kifu.to_wire()}


@router.get("/api/kifu/{kifu_id}/sequences/{sequence_id}")
async def get_sequence(request: Request, kifu_id: str, sequence_id: int):
    kifu = await _load(request, kifu_id)
    try:
        view = kifu.tree.get(sequence_id)
    except UnknownSequence:
        raise HTTPException(status_code=404, detail="sequence not found") from None
    out = view.to_dict()
    out["path"] = kifu.tree.path_to(sequence_id)
    return {"sequence": out}


@router.get("/api/kifu/{kifu_id}/export")
async def export_kifu(request: Request, kifu_id: str):
    kifu = await _load(request, kifu_id)
    text = export_tree_to_kif(kifu.tree, kifu.meta, _runtime(request).config)
    resp = PlainTextResponse(text, media_type="text/plain; charset=utf-8")
    resp.headers["Content-Disposition"] = f'attachment; filename="{kifu_id}.kif"'
    return resp


@router.delete("/api/kifu/{kifu_id}")
async def delete_kifu(request: Request, kifu_id: str):
    deleted = await _runtime(request).delete(kifu_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="kifu not found")
    return {"ok": True}
