from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from ..domain.errors import GatewayError, NotReady
from ..infrastructure.logging import get_logger
from .schemas import AddDocumentRequest, AddDocumentResponse, HealthResponse, SearchDocumentsRequest, SearchHit
from .service import Gateway, build_gateway

logger = get_logger("hivemind.api.http")


def _gateway(request: Request) -> Gateway:
    return request.app.state.gateway


def create_app(gateway: Optional[Gateway] = None) -> FastAPI:
    """Build the FastAPI app. The lifespan blocks on ``gateway.start()`` before serving traffic."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        gw = gateway or build_gateway()
        app.state.gateway = gw
        try:
            await run_in_threadpool(gw.start)
            yield
        finally:
            gw.close()

    app = FastAPI(title="Hivemind Gateway", lifespan=lifespan)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid input", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        if exc.client_error:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": "Invalid input", "details": str(exc)},
            )
        if isinstance(exc, NotReady):
            logger.warning("Request before readiness | path=%s", request.url.path)
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"error": "Service not ready", "kind": exc.kind},
            )
        logger.error("Request failed | path=%s | kind=%s | %s", request.url.path, exc.kind, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error", "kind": exc.kind},
        )

    @app.get("/health", response_model=HealthResponse)
    def health(request: Request) -> JSONResponse:
        body = _gateway(request).health()
        code = status.HTTP_200_OK if body["ready"] else status.HTTP_503_SERVICE_UNAVAILABLE
        return JSONResponse(status_code=code, content=body)

    @app.post("/api/vectordb", response_model=AddDocumentResponse, summary="Add document")
    def add_document(body: AddDocumentRequest, request: Request) -> AddDocumentResponse:
        result = _gateway(request).add_document(body.model_dump())
        return AddDocumentResponse(**result)

    @app.post("/api/vectordb/search", response_model=List[SearchHit], summary="Search documents")
    def search_documents(body: SearchDocumentsRequest, request: Request) -> List[SearchHit]:
        hits = _gateway(request).search_documents(body.model_dump(exclude_none=True))
        return [SearchHit(**h) for h in hits]

    return app


app = create_app()
