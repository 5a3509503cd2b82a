import base64
import binascii
import logging
import time
from contextlib import asynccontextmanager
from typing import Literal, Optional

import httpx
from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from travel_ai.clients.generative import GenerativeClient
from travel_ai.clients.remote_config import build_config_provider
from travel_ai.config import HTTP_TIMEOUT_S, USER_AGENT
from travel_ai.errors import ConfigError, LocationUnavailableError, PermissionDeniedError
from travel_ai.models import Coordinate, Intent, PermissionStatus, PermissionType
from travel_ai.sessions import Session, SessionRegistry

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
# httpx logs full request URLs at INFO, and the Gemini and Remote Config URLs carry the key.
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    http_client = httpx.AsyncClient(
        timeout=HTTP_TIMEOUT_S,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
    )
    app.state.sessions = SessionRegistry(
        generative_client=GenerativeClient(http_client),
        config_provider=build_config_provider(http_client),
    )
    logger.info("Travel with AI service started")
    yield
    logger.info("Travel with AI service shutting down")
    await http_client.aclose()


app = FastAPI(title="Travel with AI", lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("%s %s", request.method, request.url.path)
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    logger.info("%s %s completed %d in %.2fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


# ── Dependencies ─────────────────────────────────────────────────────────────


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)) -> Session:
    try:
        return registry.get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown session '{session_id}'") from None


# ── Schemas ──────────────────────────────────────────────────────────────────


class PromptBody(BaseModel):
    intent: Intent
    prompt: Optional[str] = Field(None, description="Free-text question, used by custom and photo intents.")
    photo_base64: Optional[str] = Field(None, description="Base64-encoded JPEG or PNG photo.")
    location: Optional[str] = Field(None, description="Manually entered place; overrides GPS when non-empty.")


class LocationFailureBody(BaseModel):
    reason: Literal["denied", "unavailable"]
    message: str = Field("Location is not available.", description="Shown in the \"Your Location\" readout.")


class PermissionBody(BaseModel):
    status: PermissionStatus


def _state_payload(session: Session) -> dict:
    orchestrator = session.orchestrator
    return {
        "session_id": session.session_id,
        "request_id": orchestrator.request_id,
        "state": orchestrator.state.model_dump(),
        "output_text": orchestrator.output_text,
        "trace": orchestrator.trace,
    }


def _decode_photo(photo_base64: Optional[str]) -> Optional[bytes]:
    if photo_base64 is None:
        return None
    try:
        return base64.b64decode(photo_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="photo_base64 is not valid base64") from None


# ── Routes ───────────────────────────────────────────────────────────────────


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/sessions", status_code=201)
async def create_session(background_tasks: BackgroundTasks, registry: SessionRegistry = Depends(get_registry)):
    session = registry.create()
    background_tasks.add_task(session.orchestrator.initialize)
    return _state_payload(session)


@app.delete("/sessions/{session_id}", status_code=204)
async def close_session(session: Session = Depends(get_session), registry: SessionRegistry = Depends(get_registry)):
    registry.close(session.session_id)


@app.post("/sessions/{session_id}/prompt", status_code=202)
async def send_prompt(body: PromptBody, session: Session = Depends(get_session)):
    photo = _decode_photo(body.photo_base64)
    session.orchestrator.dispatch(
        body.intent,
        prompt=body.prompt,
        photo=photo,
        location_input=body.location,
    )
    return _state_payload(session) | {"request_id": session.orchestrator.latest_request_id}


@app.get("/sessions/{session_id}/state")
async def get_state(session: Session = Depends(get_session)):
    return _state_payload(session)


@app.get("/sessions/{session_id}/requests/{request_id}/trace")
async def get_request_trace(request_id: int, session: Session = Depends(get_session)):
    events = session.orchestrator.trace_for(request_id)
    if events is None:
        raise HTTPException(status_code=404, detail=f"No trace kept for request {request_id}")
    return {"request_id": request_id, "trace": events}


@app.get("/sessions/{session_id}/location")
async def get_location(session: Session = Depends(get_session)):
    return {"location_text": session.orchestrator.current_display_location()}


@app.post("/sessions/{session_id}/location")
async def report_location(coordinate: Coordinate, session: Session = Depends(get_session)):
    session.location.report_fix(coordinate)
    return {"accepted": True}


@app.post("/sessions/{session_id}/location/failure")
async def report_location_failure(body: LocationFailureBody, session: Session = Depends(get_session)):
    if body.reason == "denied":
        session.location.report_failure(PermissionDeniedError(body.message))
        session.orchestrator.user_denied_location(body.message)
    else:
        session.location.report_failure(LocationUnavailableError(body.message))
    return {"accepted": True}


@app.get("/sessions/{session_id}/permissions/{kind}")
async def get_permission(kind: PermissionType, session: Session = Depends(get_session)):
    status = session.permissions.status(kind)
    return {"permission": kind.value, "status": status.value, "granted": session.permissions.is_granted(kind)}


@app.put("/sessions/{session_id}/permissions/{kind}")
async def report_permission(kind: PermissionType, body: PermissionBody, session: Session = Depends(get_session)):
    status = session.permissions.report(kind, body.status)
    return {"permission": kind.value, "status": status.value, "granted": session.permissions.is_granted(kind)}


@app.post("/sessions/{session_id}/credential/refresh")
async def refresh_credential(session: Session = Depends(get_session)):
    try:
        await session.orchestrator.refresh_credential()
    except ConfigError as e:
        logger.warning("Credential refresh failed for session %s: %s", session.session_id, e)
        return JSONResponse(status_code=503, content={"error": f"Problem with the server: {e}"})
    except Exception:
        logger.exception("Credential refresh crashed for session %s", session.session_id)
        return JSONResponse(
            status_code=500,
            content={"error": "Something went wrong. Please try again later."},
        )
    return {"configured": True}
