from __future__ import annotations

import asyncio
import os
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from site_builder.firestore_row_store import FirestoreRowStore
from site_builder.logging_config import set_entity_id, set_trace_id, setup_logging
from site_builder.models.draft import Draft, Product, Surface
from site_builder.models.recipe import PricingMode, RecipePricingResult
from site_builder.persistence import DraftPersistenceAdapter, PersistenceError, SaveResult
from site_builder.preview import PreviewConfig, build_preview
from site_builder.pubsub_client import PubSubClient
from site_builder.recipe_pricing import PricingServiceError, RecipePricingAdapter
from site_builder.row_store import InMemoryRowStore
from site_builder.session import BuilderSession, SaveInProgressError
from site_builder.templates import default_draft


class PriceRecipeRequest(BaseModel):
    input: str = ""
    state: str | None = None
    mode: str = Field(default="full", description="parse, price or full")


class BuilderStateResponse(BaseModel):
    draft: Draft
    exists: bool


# Environment configuration
ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")
PROJECT_ID = os.getenv("PROJECT_ID")
VERTEX_LOCATION = os.getenv("VERTEX_LOCATION", "us-central1")
VERTEX_MODEL = os.getenv("VERTEX_MODEL", "gemini-2.5-flash")
PUBSUB_TOPIC_SITE_PUBLISHED = os.getenv("PUBSUB_TOPIC_SITE_PUBLISHED", "site-published")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "")

setup_logging(environment=ENVIRONMENT, project_id=PROJECT_ID)

app = FastAPI(title="Site Builder API", version="0.1.0")

# Use Firestore in production, in-memory for dev
if ENVIRONMENT == "dev":
    row_store = InMemoryRowStore()
else:
    row_store = FirestoreRowStore(project_id=PROJECT_ID)

adapter = DraftPersistenceAdapter(row_store, public_base_url=PUBLIC_BASE_URL)

pubsub_client = (
    PubSubClient(project_id=PROJECT_ID, site_published_topic=PUBSUB_TOPIC_SITE_PUBLISHED)
    if PROJECT_ID and ENVIRONMENT != "dev"
    else None
)

pricing_adapter = (
    RecipePricingAdapter(project_id=PROJECT_ID, location=VERTEX_LOCATION, model_name=VERTEX_MODEL)
    if PROJECT_ID
    else None
)


@app.middleware("http")
async def trace_requests(request: Request, call_next):
    set_trace_id(request.headers.get("x-cloud-trace-context") or str(uuid.uuid4()))
    return await call_next(request)


def _require_entity_id(draft: Draft) -> str:
    if not draft.overview.id:
        raise HTTPException(status_code=400, detail="Missing entity id")
    set_entity_id(draft.overview.id)
    return draft.overview.id


def _publish_hooks():
    return [pubsub_client.publish_site_published] if pubsub_client else []


@app.get("/v1/builder/state", response_model=BuilderStateResponse)
async def get_builder_state(entity_id: str, product: Product = Product.conference) -> BuilderStateResponse:
    set_entity_id(entity_id)
    try:
        draft = await asyncio.to_thread(adapter.load, entity_id, product)
    except PersistenceError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    if draft is None:
        draft = default_draft(product)
        draft.overview.id = entity_id
        return BuilderStateResponse(draft=draft, exists=False)
    return BuilderStateResponse(draft=draft, exists=True)


@app.post("/v1/builder/save", response_model=SaveResult)
async def save_builder(draft: Draft) -> SaveResult:
    _require_entity_id(draft)
    session = BuilderSession(adapter, draft)
    try:
        return await asyncio.to_thread(session.save)
    except PersistenceError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/v1/builder/publish", response_model=SaveResult)
async def publish_builder(draft: Draft) -> SaveResult:
    _require_entity_id(draft)
    session = BuilderSession(adapter, draft, publish_hooks=_publish_hooks())
    try:
        return await asyncio.to_thread(session.publish)
    except (PersistenceError, SaveInProgressError) as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/v1/builder/preview", response_model=PreviewConfig)
async def preview_builder(draft: Draft, surface: Surface = Surface.app) -> PreviewConfig:
    return build_preview(draft, surface)


@app.post("/v1/ai/price-recipe", response_model=RecipePricingResult)
async def price_recipe(request: PriceRecipeRequest) -> RecipePricingResult:
    if pricing_adapter is None:
        raise HTTPException(status_code=503, detail="Pricing assistant not configured")
    if not request.input:
        raise HTTPException(status_code=400, detail="Missing input")
    try:
        mode = PricingMode(request.mode)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid mode. Use: parse, price, or full") from exc

    try:
        return await asyncio.to_thread(pricing_adapter.run, request.input, mode, state=request.state)
    except PricingServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@app.get("/health")
async def healthcheck() -> JSONResponse:
    return JSONResponse({"status": "ok"})
