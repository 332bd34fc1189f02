"""HTTP surface for UTR submission and gateway verification."""

import logging
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import SUBMIT_UTR_RATE_LIMIT, limiter, verify_api_key
from .database import GatewayConfigRepository, close_db, get_db, init_db
from .errors import GatewayNotFoundError
from .reconciliation import (
    GatewayVerificationService,
    ReconciliationService,
    SubmissionState,
    UTRLockRegistry,
)

logger = logging.getLogger(__name__)

STATUS_CODES: Dict[SubmissionState, int] = {
    SubmissionState.PERSISTED: 200,
    SubmissionState.REJECTED_INPUT: 400,
    SubmissionState.NO_TRANSACTIONS: 400,
    SubmissionState.ORDER_NOT_FOUND: 404,
    SubmissionState.GATEWAY_NOT_FOUND: 404,
    SubmissionState.NO_MATCH: 404,
    SubmissionState.DUPLICATE_UTR: 409,
    SubmissionState.PERSIST_CONFLICT: 409,
    SubmissionState.UPSTREAM_UNAVAILABLE: 502,
    SubmissionState.INTERNAL_ERROR: 500,
}

# Shared across requests in this process
lock_registry = UTRLockRegistry()


class SubmitUTRBody(BaseModel):
    """Request body for a UTR submission."""
    utr_number: Optional[str] = Field(None, alias="utrNumber")
    order_id: Optional[str] = Field(None, alias="orderId")

    class Config:
        populate_by_name = True


class VerifyGatewayBody(BaseModel):
    """Optional credential updates applied before verification."""
    api_token: Optional[str] = Field(None, alias="apiToken")
    api_secret: Optional[str] = Field(None, alias="apiSecret")
    transaction_ref: Optional[str] = Field(None, alias="tr")
    accesskey_id: Optional[str] = Field(None, alias="accesskeyId")
    merchant_key: Optional[str] = Field(None, alias="merchantKey")
    cookie: Optional[str] = None
    xsrf: Optional[str] = None

    class Config:
        populate_by_name = True


async def get_reconciliation_service(db: AsyncSession = Depends(get_db)) -> ReconciliationService:
    return ReconciliationService.from_session(db, lock_registry=lock_registry)


async def get_verification_service(db: AsyncSession = Depends(get_db)) -> GatewayVerificationService:
    return GatewayVerificationService(GatewayConfigRepository(db))


router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.post("/transactions/submit-utr")
@limiter.limit(SUBMIT_UTR_RATE_LIMIT)
async def submit_utr(
    request: Request,
    body: SubmitUTRBody,
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    """Reconcile a customer-submitted UTR against the order's gateway.

    Responds with ``{success, message, state}``; the HTTP status reflects
    the terminal state of the submission.
    """
    result = await service.submit_utr(body.utr_number, body.order_id)
    payload = result.to_response()
    payload["state"] = result.state.value
    return JSONResponse(status_code=STATUS_CODES.get(result.state, 500), content=payload)


@router.post("/gateways/{gateway_id}/verify")
async def verify_gateway(
    gateway_id: str,
    body: Optional[VerifyGatewayBody] = None,
    service: GatewayVerificationService = Depends(get_verification_service),
):
    """Store any supplied credentials and re-check the gateway upstream."""
    updates = body.model_dump(exclude_none=True) if body else None
    try:
        result = await service.verify_gateway(gateway_id, updates)
    except GatewayNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    return {
        "success": result.is_active,
        "message": result.details.get("message", f"Gateway is {result.status.value}"),
        "status": result.status.value,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield
    await close_db()


def create_app() -> FastAPI:
    app = FastAPI(title="UTR Reconciler", lifespan=lifespan)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.include_router(router)
    return app


app = create_app()
