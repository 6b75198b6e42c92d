"""
FastAPI Main Application
-----------------------
This is the main application file that defines the FastAPI app and endpoints.
It wires System A and System B into the customer service and exposes the unified
lookup, search, sync and health operations as a RESTful API.

Every customer endpoint answers with the envelope {success, data, timestamp};
errors use {success: false, error: {statusCode, message, details}, timestamp}.
"""

import asyncio
import logging
import traceback
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Depends, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from unified_customer import mock_api
from unified_customer.config import get_settings
from unified_customer.core.exceptions import CustomerNotFoundError, InvalidIdentity
from unified_customer.core.orchestrator import CustomerService
from unified_customer.models.data_models import (
    ApiError,
    ApiResponse,
    ErrorBody,
    ErrorDetail,
    SyncRequest,
)
from unified_customer.sources.system_a import SystemARepository, seed_system_a
from unified_customer.sources.system_b import SystemBClient

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()]
)
logger = logging.getLogger(__name__)


def build_customer_service(settings) -> CustomerService:
    """Create the customer service with both configured sources."""
    system_a = SystemARepository(settings.system_a_db_path)
    system_b = SystemBClient(
        settings.system_b_base_url,
        timeout=settings.system_b_timeout_seconds,
        health_timeout=settings.system_b_health_timeout_seconds
    )
    return CustomerService(system_a, system_b)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await asyncio.to_thread(seed_system_a, settings.system_a_db_path, settings.system_a_seed_csv)
    app.state.customer_service = build_customer_service(settings)
    logger.info(f"System B base URL: {settings.system_b_base_url}")
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Unified Customer Service",
    description="Unified view of customer records across System A (legacy store) and System B (external API), "
                "with field-level merge rules, provenance metadata and conflict detection.",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware to allow cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins
    allow_credentials=True,
    allow_methods=["*"],  # Allow all methods
    allow_headers=["*"],  # Allow all headers
)

if settings.mock_api_enabled:
    app.include_router(mock_api.router)


def get_customer_service(request: Request) -> CustomerService:
    """Dependency returning the service created at startup."""
    return request.app.state.customer_service


def error_response(request: Request, status_code: int, message: str,
                   details: Optional[List[ErrorDetail]] = None) -> JSONResponse:
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {status_code}")
    else:
        logger.warning(f"{request.method} {request.url.path} - {status_code}: {message}")

    body = ApiError(error=ErrorBody(status_code=status_code, message=message, details=details or []))
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


@app.exception_handler(CustomerNotFoundError)
async def not_found_handler(request: Request, exc: CustomerNotFoundError):
    return error_response(request, 404, str(exc))


@app.exception_handler(InvalidIdentity)
async def invalid_identity_handler(request: Request, exc: InvalidIdentity):
    return error_response(
        request, 400, str(exc),
        [ErrorDetail(field="email", constraints={"validation": "email must be a valid email"})]
    )


@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    details = [
        ErrorDetail(
            field=str(err["loc"][-1]) if err.get("loc") else "unknown",
            constraints={"validation": err.get("msg", "invalid value")}
        )
        for err in exc.errors()
    ]
    return error_response(request, 400, "Validation failed", details)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(request, exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    # Log the full error with traceback
    trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(f"Unhandled error in {request.method} {request.url.path}: {str(exc)}\n{trace}")
    return error_response(request, 500, "Internal server error")


@app.get("/")
async def root():
    """Root endpoint that returns a simple liveness message."""
    return {"message": "Unified Customer Service is running!"}


@app.get("/customer/search", response_model=ApiResponse, tags=["customers"])
async def search_customers(
    q: str = Query(..., min_length=2, description="Partial name match, case-insensitive"),
    service: CustomerService = Depends(get_customer_service)
):
    """
    Search customers by name across both systems.

    Hits from either system are cross-referenced by email in the other system
    and merged. Returns an empty list when nothing matches.
    """
    logger.info(f"Received search request with query \"{q}\"")
    results = await service.search_by_name(q)
    return ApiResponse(data=jsonable_encoder(results))


@app.get("/customer/{email}", response_model=ApiResponse, tags=["customers"])
async def get_customer(email: str, service: CustomerService = Depends(get_customer_service)):
    """
    Get the unified customer record for an email.

    If only one system has the customer, the record is returned from that system
    and marked as partial.
    """
    logger.info(f"Received lookup request for {email}")
    result = await service.get_by_email(email)
    return ApiResponse(data=jsonable_encoder(result))


@app.post("/customer/sync", response_model=ApiResponse, tags=["customers"])
async def sync_customer(body: SyncRequest, service: CustomerService = Depends(get_customer_service)):
    """
    Compare a customer across both systems.

    Returns a field-by-field diff with the conflicting values and which system
    holds the newer data.
    """
    logger.info(f"Received sync request for {body.email}")
    result = await service.sync(body.email)
    return ApiResponse(data=jsonable_encoder(result))


@app.get("/health", tags=["health"])
async def health_check(service: CustomerService = Depends(get_customer_service)):
    """Health check for both data sources; 503 if either one is down."""
    status = await service.check_health()
    healthy = status.system_a and status.system_b
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "ok" if healthy else "error",
            "details": {
                "system-a": {"status": "up" if status.system_a else "down"},
                "system-b": {"status": "up" if status.system_b else "down"},
            }
        }
    )


# If this file is run directly, start the server
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("unified_customer.main:app", host=settings.host, port=settings.port, reload=True)
