# autoctx/server.py
"""
FastAPI server exposing context engines to an external measurement recorder.
"""

import uuid

from fastapi import FastAPI, HTTPException, Request
from starlette.responses import JSONResponse

from autoctx.engine.cadence import parse_frequency_to_ms
from autoctx.engine.config import EngineConfig
from autoctx.engine.engine import ContextEngine
from autoctx.utils.log import get_logger
from autoctx.utils.validate import (
    AccelRecord,
    ContextRequest,
    ContextSampleOut,
    GpsRecord,
    SessionCreate,
    SessionCreated,
    SpeedEstimateOut,
    WalkingStateOut,
)

logger = get_logger(__name__)


class SessionRegistry:
    """
    One ContextEngine per recording session id; engines are never shared.
    """
    def __init__(self) -> None:
        self._engines: dict[str, ContextEngine] = {}

    def __len__(self) -> int:
        return len(self._engines)

    def create(self, frequency: str, cfg: EngineConfig) -> tuple[str, ContextEngine]:
        session_id = str(uuid.uuid4())
        engine = ContextEngine(cfg, parse_frequency_to_ms(frequency))
        self._engines[session_id] = engine
        return session_id, engine

    def get(self, session_id: str) -> ContextEngine:
        try:
            return self._engines[session_id]
        except KeyError:
            raise HTTPException(status_code=404, detail=f"unknown session {session_id}") from None

    def remove(self, session_id: str) -> None:
        engine = self.get(session_id)
        engine.reset()
        del self._engines[session_id]


def create_app() -> FastAPI:
    """
    Build a FastAPI instance with its own session registry.
    """
    app = FastAPI()
    app.state.sessions = SessionRegistry()

    @app.get("/api/status", response_class=JSONResponse)
    async def status(request: Request) -> JSONResponse:
        return JSONResponse(
            status_code=200,
            content={"status": "ok", "sessions": len(request.app.state.sessions)},
        )

    @app.post("/api/sessions", response_model=SessionCreated, status_code=201)
    async def create_session(request: Request, body: SessionCreate):
        """
        Start a new session; its engine starts from the initial state.
        """
        try:
            cfg = EngineConfig.preset(body.preset)
            session_id, engine = request.app.state.sessions.create(body.frequency, cfg)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from None
        logger.info(
            "Session %s created (frequency=%s, preset=%s)",
            session_id, body.frequency, body.preset,
            extra={"session": session_id},
        )
        return SessionCreated(session_id=session_id, frequency=body.frequency, period_ms=engine.period_ms)

    @app.post("/api/sessions/{session_id}/gps", response_model=SpeedEstimateOut)
    async def post_gps(request: Request, session_id: str, fix: GpsRecord):
        engine = request.app.state.sessions.get(session_id)
        return SpeedEstimateOut.from_estimate(engine.on_gps_fix(fix.to_fix()))

    @app.post("/api/sessions/{session_id}/accel", response_model=WalkingStateOut)
    async def post_accel(request: Request, session_id: str, samples: list[AccelRecord]):
        """
        Feed a batch of accelerometer samples; returns the state after the last one.
        """
        engine = request.app.state.sessions.get(session_id)
        state = engine.walking.state
        for s in samples:
            state = engine.on_accel_sample(s.to_sample())
        return WalkingStateOut.from_state(state)

    @app.post("/api/sessions/{session_id}/context", response_model=ContextSampleOut)
    async def sample_context(request: Request, session_id: str, body: ContextRequest):
        engine = request.app.state.sessions.get(session_id)
        return ContextSampleOut.from_sample(engine.sample_context(body.now_ms))

    @app.post("/api/sessions/{session_id}/reset", response_class=JSONResponse)
    async def reset_session(request: Request, session_id: str) -> JSONResponse:
        engine = request.app.state.sessions.get(session_id)
        engine.reset()
        return JSONResponse(
            status_code=200,
            content={"session_id": session_id, "context": engine.context.value},
        )

    @app.delete("/api/sessions/{session_id}", status_code=204)
    async def delete_session(request: Request, session_id: str) -> None:
        request.app.state.sessions.remove(session_id)
        logger.info("Session %s closed", session_id, extra={"session": session_id})

    return app
