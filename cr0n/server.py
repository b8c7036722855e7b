"""FastAPI server for cr0n."""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cr0n.config import get_config, resolve_settings
from cr0n.constants import DEFAULT_LEARNING_CONFIG, DEFAULT_WEIGHTS, MODEL_DEFAULTS, default_model_weights
from cr0n.federation.registry import ProviderRegistry
from cr0n.federation.types import BusinessContext
from cr0n.pipeline import Cr0nEngine
from cr0n.types import ActionRecord, PageData

app = FastAPI(title="cr0n")


@app.on_event("startup")
def _startup() -> None:
    config = get_config()
    app.state.config = config
    app.state.registry = ProviderRegistry.from_config(config.models)


def _engine(payload: dict, request: Request) -> Cr0nEngine:
    settings = resolve_settings(
        request.app.state.config,
        weights=payload.get("weights"),
        model_weights=payload.get("model_weights"),
        learning_cycles=int(payload.get("learning_cycles") or 0),
    )
    return Cr0nEngine(settings, registry=request.app.state.registry)


def _pages(payload: dict) -> list[PageData] | None:
    items = payload.get("pages")
    if not isinstance(items, list):
        return None
    try:
        return [PageData.from_dict(item) for item in items if isinstance(item, dict)]
    except (TypeError, ValueError):
        return None


def _actions(payload: dict) -> list[ActionRecord] | None:
    items = payload.get("actions") or []
    if not isinstance(items, list):
        return None
    try:
        return [ActionRecord.from_dict(item) for item in items if isinstance(item, dict)]
    except (TypeError, ValueError):
        return None


@app.get("/health")
async def health():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "service": "cr0n"}


@app.get("/api/models")
async def models_api(request: Request):
    registry = request.app.state.registry
    return {
        "models": [
            {"id": provider_id, "provider": defaults["provider"], "available": registry.has(provider_id)}
            for provider_id, defaults in MODEL_DEFAULTS.items()
        ],
        "available": registry.count(),
    }


@app.get("/api/weights/defaults")
async def weight_defaults_api():
    return {
        "weights": dict(DEFAULT_WEIGHTS),
        "learning": dict(DEFAULT_LEARNING_CONFIG),
        "model_weights": default_model_weights(),
    }


@app.post("/api/analyze")
async def analyze_api(payload: dict, request: Request):
    pages = _pages(payload)
    if pages is None:
        return JSONResponse({"error": "pages required"}, status_code=400)
    try:
        engine = _engine(payload, request)
    except (TypeError, ValueError):
        return JSONResponse({"error": "invalid weight state"}, status_code=400)
    plan = engine.analyze(pages, site_id=payload.get("site_id"))
    return {"ok": True, "plan": plan.to_dict()}


@app.post("/api/cycle")
async def cycle_api(payload: dict, request: Request):
    pages = _pages(payload)
    if pages is None:
        return JSONResponse({"error": "pages required"}, status_code=400)
    actions = _actions(payload)
    if actions is None:
        return JSONResponse({"error": "invalid actions"}, status_code=400)
    try:
        engine = _engine(payload, request)
    except (TypeError, ValueError):
        return JSONResponse({"error": "invalid weight state"}, status_code=400)
    result = await engine.run_cycle(
        pages,
        actions,
        context=BusinessContext.from_dict(payload.get("context")),
        site_id=payload.get("site_id"),
    )
    body = result.to_dict()
    body["learning_cycles"] = engine.weight_adjuster.learning_cycles
    return {"ok": True, **body}


def main():
    import uvicorn
    config = get_config()
    host = config.server.get("host", "127.0.0.1")
    port = int(config.server.get("port", 8099))
    uvicorn.run("cr0n.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
