"""FastAPI server that relays extraction events to remote callers over SSE."""

import asyncio
import contextlib
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field, ValidationError

from ..errors import (
    ExtractionError,
    IdentityRequiredError,
    InvalidInputError,
    QuotaExceededError,
)
from ..extraction.pipeline import ExtractionPipeline, PreparedExtraction
from ..llm.providers.base import LLMProvider, get_provider
from ..middleware.quota import QuotaDecision, QuotaGuard
from ..types.types import SourceDocument
from ..utils.config import Settings
from .frames import IDENTITY_HEADER
from .relay import EventRelay

logger = logging.getLogger(__name__)

STREAM_ID_HEADER = "X-Stream-ID"


class AnalyzeTranscriptRequest(BaseModel):
    transcript: str
    context: str | None = None
    filename: str | None = None


class AnalyzeDocumentsRequest(BaseModel):
    documents: list[SourceDocument] = Field(min_length=1)
    context: str | None = None


def _error_response(error: ExtractionError, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_dict(), headers=headers)


async def _parse_body(request: Request, model: type[BaseModel]) -> Any:
    try:
        body = await request.json()
    except ValueError:
        raise InvalidInputError("Request body must be valid JSON") from None
    try:
        return model.model_validate(body)
    except ValidationError as e:
        details = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise InvalidInputError("Validation error", details=details) from None


class ExtractionServer:
    """HTTP front end for the extraction pipeline."""

    def __init__(
        self,
        settings: Settings | None = None,
        provider: LLMProvider | None = None,
        quota_guard: QuotaGuard | None = None,
        pipeline: ExtractionPipeline | None = None,
    ):
        """
        Initialize the server.

        Args:
            settings: Service settings; read from the environment if omitted
            provider: Streaming LLM provider; Anthropic if omitted
            quota_guard: Per-identity quota; built from settings if omitted
            pipeline: Fully configured pipeline (overrides provider/quota_guard)
        """
        self.settings = settings or Settings.from_env()
        if pipeline is None:
            if provider is None:
                provider = get_provider("anthropic", api_key=self.settings.anthropic_api_key)
            pipeline = ExtractionPipeline(
                provider=provider, quota_guard=quota_guard, settings=self.settings
            )
        self.pipeline = pipeline
        self.active_relays: dict[str, tuple[str, EventRelay]] = {}
        self.app: FastAPI | None = None
        self.server: uvicorn.Server | None = None
        self._setup_app()

    def _identity(self, request: Request) -> str:
        identity = (request.headers.get(IDENTITY_HEADER) or "").strip()
        if not identity:
            raise IdentityRequiredError()
        return identity

    def _admit(self, identity: str) -> QuotaDecision:
        decision = self.pipeline.admit(identity)
        logger.info("Admitted identity=%s remaining=%d", identity, decision.remaining)
        return decision

    def _stream_response(
        self, identity: str, prepared: PreparedExtraction, decision: QuotaDecision
    ) -> StreamingResponse:
        stream_id = str(uuid.uuid4())
        relay = EventRelay(self.pipeline.stream(prepared), session_id=stream_id)

        async def frames():
            # registered only while the body is being sent; finally always unregisters
            self.active_relays[stream_id] = (identity, relay)
            try:
                async for frame in relay.frames():
                    yield frame
            finally:
                self.active_relays.pop(stream_id, None)
                logger.info(
                    "Stream %s closed after %d events (cancelled=%s)",
                    stream_id,
                    relay.frames_sent,
                    relay.cancelled,
                )

        headers = {
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
            STREAM_ID_HEADER: stream_id,
            **decision.headers(),
        }
        return StreamingResponse(frames(), media_type="text/event-stream", headers=headers)

    def _setup_app(self):
        """Setup FastAPI application with endpoints."""

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            sweeper = asyncio.create_task(self.pipeline.quota_guard.run_sweeper())
            try:
                yield
            finally:
                sweeper.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await sweeper

        self.app = FastAPI(title="PRD Extraction Server", lifespan=lifespan)
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=[self.settings.cors_origin],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=[STREAM_ID_HEADER, "X-RateLimit-Remaining", "X-RateLimit-Reset"],
        )

        @self.app.post("/api/transcript/analyze")
        async def analyze_transcript(request: Request):
            """Analyze one raw transcript."""
            decision = None
            try:
                identity = self._identity(request)
                decision = self._admit(identity)
                body = await _parse_body(request, AnalyzeTranscriptRequest)
                prepared = await asyncio.to_thread(
                    self.pipeline.prepare_transcript,
                    body.transcript,
                    context=body.context,
                    filename=body.filename,
                )
            except QuotaExceededError as e:
                return _error_response(e, e.decision.headers() if e.decision else None)
            except ExtractionError as e:
                return _error_response(e, decision.headers() if decision else None)
            return self._stream_response(identity, prepared, decision)

        @self.app.post("/api/files/analyze")
        async def analyze_documents(request: Request):
            """Analyze summaries produced by external file or repository readers."""
            decision = None
            try:
                identity = self._identity(request)
                decision = self._admit(identity)
                body = await _parse_body(request, AnalyzeDocumentsRequest)
                prepared = await asyncio.to_thread(
                    self.pipeline.prepare_documents, body.documents, context=body.context
                )
            except QuotaExceededError as e:
                return _error_response(e, e.decision.headers() if e.decision else None)
            except ExtractionError as e:
                return _error_response(e, decision.headers() if decision else None)
            return self._stream_response(identity, prepared, decision)

        @self.app.post("/api/streams/{stream_id}/cancel")
        async def cancel_stream(stream_id: str, request: Request):
            """Stop relaying an in-flight stream owned by the caller."""
            try:
                identity = self._identity(request)
            except ExtractionError as e:
                return _error_response(e)

            entry = self.active_relays.get(stream_id)
            if entry is None or entry[0] != identity:
                return JSONResponse(
                    status_code=status.HTTP_404_NOT_FOUND,
                    content={
                        "error": "Stream not found or already completed",
                        "code": "NOT_FOUND",
                    },
                )
            entry[1].cancel()
            return JSONResponse(
                status_code=status.HTTP_200_OK,
                content={"status": "cancellation_requested", "streamId": stream_id},
            )

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    async def run(self):
        """Run the server with uvicorn."""
        if not self.app:
            raise RuntimeError("FastAPI app not initialized")

        # Route module loggers through uvicorn's handler so they appear alongside access logs
        import copy

        from uvicorn.config import LOGGING_CONFIG

        logging_config = copy.deepcopy(LOGGING_CONFIG)
        if "" not in logging_config["loggers"]:
            logging_config["loggers"][""] = {}
        logging_config["loggers"][""].update(
            {
                "handlers": ["default"],
                "level": "INFO",
                "propagate": False,
            }
        )
        # Disable httpx HTTP request logs
        logging_config["loggers"]["httpx"] = {
            "handlers": ["default"],
            "level": "WARNING",
            "propagate": False,
        }

        config = uvicorn.Config(
            self.app,
            host=self.settings.host,
            port=self.settings.port,
            log_level="info",
            log_config=logging_config,
        )
        self.server = uvicorn.Server(config)
        await self.server.serve()

    async def shutdown(self):
        """Shutdown the server gracefully."""
        if self.server:
            self.server.should_exit = True
