"""
FastAPI binding for bots, documents, chat and bookings.

Usage:
    uvicorn docbot.api.app:create_app --factory
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from docbot.conversation.session_store import sweep_forever
from docbot.errors import (
    BookingNotFoundError,
    DocumentTooShortError,
    InvalidStatusError,
    NotFoundError,
    UpstreamError,
)
from docbot.schemas.booking_schema import BookingDraft, BookingRecord
from docbot.schemas.conversation_schema import ChatMessage, TurnResult
from docbot.schemas.retrieval_schema import IndexResult, SearchHit
from docbot.schemas.tenant_schema import TenantInfo
from docbot.services.container import ServiceContainer, build_container
from docbot.utils import is_valid_mobile, normalize_phone

logger = logging.getLogger(__name__)


class CreateBotRequest(BaseModel):
    name: str = Field(min_length=1)
    website: Optional[str] = None


class DocumentUploadRequest(BaseModel):
    """Raw document text, already extracted from the uploaded file."""
    text: str
    source_file: str = "document.txt"


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    session_id: str = Field(default="default", min_length=1)
    language: Optional[str] = None


class CreateBookingRequest(BaseModel):
    """A booking submitted directly, outside the chat dialogue."""
    full_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    preferred_date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    preferred_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    email: Optional[str] = None
    service: Optional[str] = None
    notes: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: str


class ClearHistoryResponse(BaseModel):
    deleted: int


class CancelBookingsResponse(BaseModel):
    cancelled: int


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """Build the application around a service container."""
    container = container or build_container()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        interval = container.config.sessions.sweep_interval_minutes * 60
        sweeper = asyncio.create_task(sweep_forever(container.sessions, interval))
        logger.info("Session sweeper started (every %ds)", interval)
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            container.engine.dispose()

    app = FastAPI(
        title=container.config.app_name,
        description="Document chat and appointment booking for multiple bots",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NotFoundError)
    async def not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})

    @app.exception_handler(DocumentTooShortError)
    @app.exception_handler(InvalidStatusError)
    async def bad_request(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    @app.exception_handler(UpstreamError)
    async def upstream_failed(request: Request, exc: UpstreamError) -> JSONResponse:
        logger.error("Upstream failure on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "app": container.config.app_name}

    # --- Bots ---

    @app.post("/bots", response_model=TenantInfo, status_code=status.HTTP_201_CREATED)
    def create_bot(body: CreateBotRequest, services: ServiceContainer = Depends(get_container)):
        try:
            bot_id = services.tenants.create_tenant(body.name, body.website)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
        return services.tenants.get_tenant(bot_id)

    @app.get("/bots/{bot_id}", response_model=TenantInfo)
    def get_bot(bot_id: str, services: ServiceContainer = Depends(get_container)):
        return services.tenants.get_tenant(bot_id)

    # --- Documents ---

    @app.post("/bots/{bot_id}/documents", response_model=IndexResult)
    def upload_document(
        bot_id: str,
        body: DocumentUploadRequest,
        services: ServiceContainer = Depends(get_container),
    ):
        services.tenants.require(bot_id)
        return services.documents.replace_documents(bot_id, body.text, body.source_file)

    @app.put("/bots/{bot_id}/documents/file", response_model=IndexResult)
    async def upload_document_file(
        bot_id: str,
        request: Request,
        filename: str = Query("upload.txt", min_length=1),
        services: ServiceContainer = Depends(get_container),
    ):
        await run_in_threadpool(services.tenants.require, bot_id)
        data = await request.body()
        text = await run_in_threadpool(services.extractor.extract, data, filename)
        return await run_in_threadpool(services.documents.replace_documents, bot_id, text, filename)

    @app.get("/bots/{bot_id}/search", response_model=list[SearchHit])
    def search_documents(
        bot_id: str,
        q: str = Query(..., min_length=1),
        k: Optional[int] = Query(None, ge=1, le=50),
        services: ServiceContainer = Depends(get_container),
    ):
        services.tenants.require(bot_id)
        return services.documents.search(bot_id, q, k or services.config.retrieval.top_k)

    # --- Chat ---

    @app.post("/bots/{bot_id}/chat", response_model=TurnResult)
    async def chat(
        bot_id: str,
        body: ChatRequest,
        services: ServiceContainer = Depends(get_container),
    ):
        bot = await run_in_threadpool(services.tenants.get_tenant, bot_id)
        return await services.chat.handle_turn(
            bot_id, body.session_id, body.message, body.language, bot_name=bot.name
        )

    @app.get("/bots/{bot_id}/history", response_model=list[ChatMessage])
    def get_history(
        bot_id: str,
        session_id: str = Query("default", min_length=1),
        limit: Optional[int] = Query(None, ge=1, le=200),
        services: ServiceContainer = Depends(get_container),
    ):
        services.tenants.require(bot_id)
        return services.chat.get_history(bot_id, session_id, limit)

    @app.delete("/bots/{bot_id}/history", response_model=ClearHistoryResponse)
    def clear_history(
        bot_id: str,
        session_id: str = Query("default", min_length=1),
        reset_dialogue: bool = Query(False),
        services: ServiceContainer = Depends(get_container),
    ):
        services.tenants.require(bot_id)
        deleted = services.chat.clear_history(bot_id, session_id, reset_dialogue=reset_dialogue)
        return ClearHistoryResponse(deleted=deleted)

    # --- Bookings ---

    @app.get("/bots/{bot_id}/bookings", response_model=list[BookingRecord])
    def list_bookings(
        bot_id: str,
        status_filter: Optional[str] = Query(None, alias="status"),
        phone: Optional[str] = None,
        email: Optional[str] = None,
        services: ServiceContainer = Depends(get_container),
    ):
        services.tenants.require(bot_id)
        return services.bookings.list_bookings(bot_id, status_filter, phone, email)

    @app.post(
        "/bots/{bot_id}/bookings",
        response_model=BookingRecord,
        status_code=status.HTTP_201_CREATED,
    )
    def create_booking(
        bot_id: str,
        body: CreateBookingRequest,
        services: ServiceContainer = Depends(get_container),
    ):
        services.tenants.require(bot_id)
        phone = normalize_phone(body.phone)
        if not is_valid_mobile(phone):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid mobile number: {body.phone}",
            )
        draft = BookingDraft(
            full_name=body.full_name.strip(),
            phone=phone,
            preferred_date=body.preferred_date,
            preferred_time=body.preferred_time,
            email=body.email,
            service=body.service or services.config.dialogue.default_service,
            notes=body.notes,
        )
        return services.bookings.create_booking(bot_id, draft)

    @app.delete("/bots/{bot_id}/bookings/phone/{phone}", response_model=CancelBookingsResponse)
    def cancel_bookings_by_phone(
        bot_id: str,
        phone: str,
        services: ServiceContainer = Depends(get_container),
    ):
        services.tenants.require(bot_id)
        cancelled = services.bookings.cancel_by_phone(bot_id, normalize_phone(phone))
        if cancelled == 0:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No active booking found for {phone}",
            )
        return CancelBookingsResponse(cancelled=cancelled)

    @app.get("/bookings/{booking_id}", response_model=BookingRecord)
    def get_booking(booking_id: str, services: ServiceContainer = Depends(get_container)):
        record = services.bookings.get_booking(booking_id)
        if record is None:
            raise BookingNotFoundError(booking_id)
        return record

    @app.put("/bookings/{booking_id}/status", response_model=BookingRecord)
    def update_booking_status(
        booking_id: str,
        body: StatusUpdateRequest,
        services: ServiceContainer = Depends(get_container),
    ):
        return services.bookings.update_status(booking_id, body.status)

    return app
