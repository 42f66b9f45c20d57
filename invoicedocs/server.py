"""HTTP service that hands out incoming invoice documents."""

import argparse
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, StrictInt, StrictStr

from .database import DbPools, init_db_connection_pools
from .errors import AppError, DbError
from .incoming import get_incoming_invoice_recs_afterthis
from .models import DownloadFormat, DownloadType
from .object_store import MssqlStore, Store
from .processing import process_invoices_according_to_types_and_formats

log = logging.getLogger(__name__)

INCOMING_INVOICE_DATABASE = "uut_24_6"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3090

# Opens a database connection from a DbConfig; no driver is bundled.
_DEFAULT_CONNECT: Optional[Callable] = None


@dataclass
class AppState:
    """Resources shared by every request."""

    db_pools: DbPools
    object_store: Store


class DownloadDocsRequest(BaseModel):
    """Body of a document download request."""

    source_vkntckn: StrictStr
    after_this: StrictInt
    download_type: DownloadType
    format: DownloadFormat

    def __str__(self) -> str:
        return (
            f"Source vkntckn: {self.source_vkntckn} after count: {self.after_this} "
            f"download type: {str(self.download_type)} format: {str(self.format)}"
        )


class DownloadDocsResponse(BaseModel):
    """Successful download: a base64 encoded archive and its description."""

    data: str
    filename: str
    record_count: int
    size_bytes: int


class DownloadDocsErrorResponse(BaseModel):
    error: str
    message: str


def _reply(status_code: int, body: BaseModel) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def download_docs_handler(state: AppState, request: DownloadDocsRequest) -> JSONResponse:
    """Read the requested invoices and convert them to the requested documents."""
    log.info(
        "Download request: vkntckn=%s, after_this=%s, type=%s",
        request.source_vkntckn,
        request.after_this,
        request.download_type,
    )
    try:
        invoices = get_incoming_invoice_recs_afterthis(
            state.db_pools.incoming_invoice_pool,
            INCOMING_INVOICE_DATABASE,
            request.source_vkntckn,
            request.after_this,
        )
    except DbError as exc:
        return _reply(
            500,
            DownloadDocsErrorResponse(error="Internal Error", message=f"Error source: {exc}"),
        )
    log.info("Found %d invoice records", len(invoices))
    if not invoices:
        return _reply(
            404,
            DownloadDocsErrorResponse(
                error="NoInvoices",
                message=(
                    f"No invoices found for vkntckn {request.source_vkntckn} "
                    f"after sirano {request.after_this}"
                ),
            ),
        )
    try:
        result = process_invoices_according_to_types_and_formats(
            state.object_store, invoices, request.download_type, request.format
        )
    except Exception as exc:
        log.error("Processing error: %s", exc)
        return _reply(
            500,
            DownloadDocsErrorResponse(
                error="ProcessingError", message=f"Failed to process invoices: {exc}"
            ),
        )
    log.info(
        "Processed %d invoices, size: %d bytes", result.record_count, result.size_bytes
    )
    return _reply(
        200,
        DownloadDocsResponse(
            data=result.data,
            filename=result.filename,
            record_count=result.record_count,
            size_bytes=result.size_bytes,
        ),
    )


def health_check() -> str:
    return "Health : Ok"


async def _fallback(request: Request, exc: Exception):
    if getattr(exc, "status_code", 404) != 404:
        return await http_exception_handler(request, exc)
    log.warning("fallback")
    uri = request.url.path
    if request.url.query:
        uri = f"{uri}?{request.url.query}"
    return PlainTextResponse(uri, status_code=404)


def create_app(state: AppState) -> FastAPI:
    """Build the application serving ``state``."""
    app = FastAPI()
    app.state.app_state = state

    app.get("/healthcheck", response_class=PlainTextResponse)(health_check)

    @app.get("/api/v1/download_docs")
    def download_docs(request: DownloadDocsRequest) -> JSONResponse:
        return download_docs_handler(state, request)

    app.add_exception_handler(404, _fallback)
    return app


def _run(argv: Optional[List[str]], connect: Optional[Callable]) -> int:
    parser = argparse.ArgumentParser(description="Serve incoming invoice documents.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    if connect is None:
        log.error("Database initialization failed: no database driver configured")
        return 1
    try:
        db_pools = init_db_connection_pools(connect)
    except AppError as exc:
        log.error("Database initialization failed: %s", exc)
        return 1
    log.info("All DB pools initialized successfully.")
    try:
        object_store = Store(MssqlStore.new_mssql(connect))
    except AppError as exc:
        log.error("Failed to init MSSQL store: %s", exc)
        return 1

    app = create_app(AppState(db_pools=db_pools, object_store=object_store))
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Start the service."""
    return _run(argv, _DEFAULT_CONNECT)