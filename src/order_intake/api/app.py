"""FastAPI application exposing order upload, listing and validation."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel

from .. import __version__
from ..db.order_store import OrderStore, OrderStoreError, PostgresOrderStore, build_dsn
from ..logging.init import setup_logging
from ..models.config_models import AppConfig
from ..services.order_service import InvalidStatusError, OrderNotFoundError, OrderService
from ..validation.errors import SheetError
from .auth import AuthError, TokenVerifier, build_verifier, require_client

logger = logging.getLogger(__name__)


class StatusUpdate(BaseModel):
    status: str


def get_service(request: Request) -> OrderService:
    service: OrderService = request.app.state.service
    return service


def _content_disposition(filename: str) -> str:
    safe = filename.replace('"', "").replace("\r", "").replace("\n", "")
    return f'attachment; filename="{safe}"'


def _install_error_handlers(api: FastAPI) -> None:
    @api.exception_handler(AuthError)
    async def _auth_error(request: Request, exc: AuthError) -> JSONResponse:
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @api.exception_handler(OrderNotFoundError)
    async def _not_found(request: Request, exc: OrderNotFoundError) -> JSONResponse:
        return JSONResponse({"error": "Order not found"}, status_code=404)

    @api.exception_handler(InvalidStatusError)
    async def _bad_status(request: Request, exc: InvalidStatusError) -> JSONResponse:
        return JSONResponse({"error": str(exc)}, status_code=400)

    @api.exception_handler(SheetError)
    async def _sheet_error(request: Request, exc: SheetError) -> JSONResponse:
        logger.error("validation failed path=%s type=%s: %s", request.url.path, exc.error_type, exc)
        return JSONResponse(
            {"error": "Error validating order", "error_type": exc.error_type, "detail": str(exc)},
            status_code=500,
        )

    @api.exception_handler(OrderStoreError)
    async def _store_error(request: Request, exc: OrderStoreError) -> JSONResponse:
        logger.error("store failure path=%s: %s", request.url.path, exc)
        return JSONResponse({"error": "Order store unavailable"}, status_code=500)

    @api.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unexpected failure path=%s", request.url.path, exc_info=exc)
        return JSONResponse({"error": "Internal server error"}, status_code=500)


def create_app(
    config: AppConfig | None = None,
    store: OrderStore | None = None,
    verifier: TokenVerifier | None = None,
) -> FastAPI:
    """Build the API.

    ``store`` defaults to PostgreSQL using the configured connection
    settings; ``verifier`` defaults to the static token table and/or JWT
    secret from config.
    """
    setup_logging()
    config = config or AppConfig()
    if store is None:
        store = PostgresOrderStore(dsn=build_dsn(config.database))

    api = FastAPI(title="Order Intake Service", version=__version__)
    api.state.service = OrderService(store, config)
    api.state.verifier = verifier or build_verifier(config.api)
    _install_error_handlers(api)

    @api.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return "Order intake API is running"

    @api.get("/health")
    def health(service: OrderService = Depends(get_service)) -> dict:
        return {"status": "healthy", "store": service.store.kind}

    @api.post("/upload")
    def upload(
        file: UploadFile = File(...),
        client: str = Depends(require_client),
        service: OrderService = Depends(get_service),
    ) -> dict:
        content = file.file.read()
        record = service.upload(
            client=client,
            filename=file.filename or "upload",
            mime_type=file.content_type,
            content=content,
        )
        return {"message": "Order uploaded", "id": record.id}

    @api.get("/orders")
    def list_orders(
        client: str = Depends(require_client),
        service: OrderService = Depends(get_service),
    ) -> list[dict]:
        return [r.to_summary() for r in service.list_orders()]

    @api.put("/orders/{order_id}")
    def update_status(
        order_id: str,
        body: StatusUpdate,
        client: str = Depends(require_client),
        service: OrderService = Depends(get_service),
    ) -> dict:
        status = service.update_status(order_id, body.status)
        return {"message": "Status updated", "status": status.value}

    @api.get("/orders/{order_id}/download")
    def download(
        order_id: str,
        client: str = Depends(require_client),
        service: OrderService = Depends(get_service),
    ) -> Response:
        record = service.get_order(order_id)
        return Response(
            content=record.content,
            media_type=record.mime_type or "application/octet-stream",
            headers={"Content-Disposition": _content_disposition(record.filename)},
        )

    @api.post("/orders/{order_id}/validate")
    def validate(
        order_id: str,
        client: str = Depends(require_client),
        service: OrderService = Depends(get_service),
    ) -> dict:
        outcome = service.validate(order_id)
        first_failure = outcome.verdict.first_failure
        return {
            "message": f"Order validated as {outcome.status.value}",
            "status": outcome.status.value,
            "rows_evaluated": outcome.verdict.rows_evaluated,
            "first_failed_row": first_failure.row_number if first_failure else None,
        }

    return api
