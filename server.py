"""SEM Ad Writer — Web Server.

FastAPI backend for the ad copy form: start a session with an API key,
fill in the campaign, generate every ad group, then regenerate / add /
edit / delete single items and export the result as CSV.

Usage:
    python server.py
    # Then open http://localhost:8000/docs
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

import config
from pipeline.csv_export import build_csv, default_export_path
from pipeline.editing import ItemNotFoundError
from pipeline.llm import get_usage_log, get_usage_summary, reset_usage
from pipeline.session import SessionError, SessionStore
from schemas.ad_copy import (
    AdGroupInput,
    CampaignInput,
    GenerationConfig,
    ItemPath,
    ItemType,
    SitelinkContent,
)

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL), format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

sessions = SessionStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "SEM Ad Writer ready — default provider %s/%s, search grounding %s",
        config.DEFAULT_PROVIDER, config.DEFAULT_MODEL,
        "on" if config.GOOGLE_SEARCH_GROUNDING else "off",
    )
    yield
    sessions.clear()


app = FastAPI(title="SEM Ad Writer", lifespan=lifespan)


def _not_found(exc: Exception) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=404)


def _bad_request(exc: Exception) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=400)


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------

class CreateSessionRequest(BaseModel):
    api_key: str
    provider: Optional[str] = None
    model: Optional[str] = None


@app.post("/api/session")
async def api_create_session(req: CreateSessionRequest):
    try:
        session = sessions.create(req.api_key, provider=req.provider, model=req.model)
    except SessionError as exc:
        return _bad_request(exc)
    return {"session_id": session.session_id, "provider": session.provider, "model": session.model}


@app.delete("/api/session/{session_id}")
async def api_close_session(session_id: str):
    try:
        sessions.close(session_id)
    except SessionError as exc:
        return _not_found(exc)
    return {"ok": True}


@app.get("/api/session/{session_id}")
async def api_get_session(session_id: str):
    try:
        return sessions.get(session_id).snapshot()
    except SessionError as exc:
        return _not_found(exc)


# ---------------------------------------------------------------------------
# Form + generation
# ---------------------------------------------------------------------------

class CampaignFormRequest(BaseModel):
    campaign: CampaignInput = Field(default_factory=CampaignInput)
    ad_groups: list[AdGroupInput] = Field(default_factory=lambda: [AdGroupInput()])
    generation_config: GenerationConfig = Field(default_factory=GenerationConfig)


@app.put("/api/session/{session_id}/campaign")
async def api_update_campaign(session_id: str, req: CampaignFormRequest):
    try:
        session = sessions.get(session_id)
    except SessionError as exc:
        return _not_found(exc)
    session.update_form(campaign=req.campaign, ad_group_inputs=req.ad_groups, gen_config=req.generation_config)
    return session.snapshot()


@app.post("/api/session/{session_id}/generate")
async def api_generate(session_id: str):
    try:
        session = sessions.get(session_id)
    except SessionError as exc:
        return _not_found(exc)
    try:
        results = await session.generate()
    except SessionError as exc:
        return _bad_request(exc)
    return {
        "ad_groups": [g.model_dump(by_alias=True) for g in results],
        "error": session.error,
    }


# ---------------------------------------------------------------------------
# Single items
# ---------------------------------------------------------------------------

class ItemPathRequest(BaseModel):
    path: ItemPath


class AddItemRequest(BaseModel):
    ad_group_index: int = Field(..., ge=0)
    item_type: ItemType
    variant_index: Optional[int] = None


class EditItemRequest(BaseModel):
    path: ItemPath
    text: Optional[str] = None
    title: Optional[str] = None
    description1: Optional[str] = None
    description2: Optional[str] = None


@app.post("/api/session/{session_id}/items/regenerate")
async def api_regenerate_item(session_id: str, req: ItemPathRequest):
    try:
        session = sessions.get(session_id)
        content = await session.regenerate(req.path)
    except (SessionError, ItemNotFoundError) as exc:
        return _not_found(exc)
    if isinstance(content, SitelinkContent):
        return {"path": req.path.model_dump(by_alias=True), "content": content.model_dump()}
    return {"path": req.path.model_dump(by_alias=True), "content": content}


@app.post("/api/session/{session_id}/items")
async def api_add_item(session_id: str, req: AddItemRequest):
    try:
        session = sessions.get(session_id)
        path = session.add_item(req.ad_group_index, req.item_type, req.variant_index)
    except (SessionError, ItemNotFoundError) as exc:
        return _not_found(exc)
    return {"path": path.model_dump(by_alias=True)}


@app.patch("/api/session/{session_id}/items")
async def api_edit_item(session_id: str, req: EditItemRequest):
    fields = req.model_dump(exclude={"path"}, exclude_none=True)
    try:
        session = sessions.get(session_id)
        session.edit_item(req.path, **fields)
    except (SessionError, ItemNotFoundError) as exc:
        return _not_found(exc)
    except ValueError as exc:
        return _bad_request(exc)
    return {"ok": True}


@app.delete("/api/session/{session_id}/items")
async def api_delete_item(session_id: str, req: ItemPathRequest):
    try:
        session = sessions.get(session_id)
        session.delete_item(req.path)
    except (SessionError, ItemNotFoundError) as exc:
        return _not_found(exc)
    return {"ok": True}


# ---------------------------------------------------------------------------
# Export, usage, health
# ---------------------------------------------------------------------------

@app.get("/api/session/{session_id}/export.csv")
async def api_export_csv(session_id: str):
    try:
        session = sessions.get(session_id)
    except SessionError as exc:
        return _not_found(exc)
    if not session.results:
        return _bad_request(ValueError("Nothing to export — generate ads first."))
    filename = default_export_path().name
    return Response(
        content=build_csv(session.results).encode("utf-8-sig"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/usage")
async def api_usage():
    return {**get_usage_summary(), "entries": get_usage_log()}


@app.delete("/api/usage")
async def api_reset_usage():
    reset_usage()
    return {"ok": True}


@app.get("/api/health")
async def api_health():
    return {
        "status": "ok",
        "provider": config.DEFAULT_PROVIDER,
        "model": config.DEFAULT_MODEL,
        "languages": list(config.SUPPORTED_LANGUAGES),
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn
    print("\n  SEM Ad Writer API")
    print("  http://localhost:8000/docs\n")
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
