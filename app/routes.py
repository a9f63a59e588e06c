import re
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, field_validator

from app.errors import PersistenceError, ValidationError
from app.paypal_service import (
    DEFAULT_AMOUNT,
    DEFAULT_CURRENCY,
    PayPalService,
    first_authorization,
)
from app.store import VOIDED, TransactionStore

router = APIRouter()

PAYPAL_ID = re.compile(r"^[A-Za-z0-9_-]+$")
VOID_MESSAGE = "Authorization voided successfully"


def _amount_to_str(value):
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return f"{Decimal(str(value)):.2f}"
    return value


class CreateOrderRequest(BaseModel):
    amount: str = DEFAULT_AMOUNT
    currency: str = DEFAULT_CURRENCY

    @field_validator("amount", mode="before")
    @classmethod
    def default_amount(cls, value):
        return _amount_to_str(value) if value not in (None, "") else DEFAULT_AMOUNT

    @field_validator("currency", mode="before")
    @classmethod
    def default_currency(cls, value):
        return value if value not in (None, "") else DEFAULT_CURRENCY


class AuthorizeOrderRequest(BaseModel):
    orderId: Optional[str] = None


class CaptureRequest(BaseModel):
    authorizationId: Optional[str] = None
    amount: Optional[str] = None
    currency: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def amount_as_string(cls, value):
        return _amount_to_str(value)


class VoidRequest(BaseModel):
    authorizationId: Optional[str] = None


def get_paypal(request: Request) -> PayPalService:
    return request.app.state.paypal


def get_store(request: Request) -> Optional[TransactionStore]:
    return request.app.state.store


def require_id(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    value = value.strip()
    if not PAYPAL_ID.match(value):
        raise ValidationError(f"{field} is not a valid PayPal id")
    return value


def persist(processor_response, write, *args):
    """Run a store write; on failure keep PayPal's answer in the error body."""
    try:
        return write(*args)
    except PersistenceError as e:
        e.details["processor_response"] = processor_response
        raise


@router.get("/", response_class=PlainTextResponse)
def health():
    return "✅ PayPal server is running"


@router.post("/create-order")
def create_order(
    request: Optional[CreateOrderRequest] = None,
    paypal: PayPalService = Depends(get_paypal),
    store: Optional[TransactionStore] = Depends(get_store),
):
    request = request or CreateOrderRequest()

    order = paypal.create_order(request.amount, request.currency)

    if store is not None and order.get("id"):
        persist(
            order,
            store.record_created,
            order["id"],
            order.get("status"),
            request.amount,
            request.currency,
        )

    return order


@router.post("/authorize-order")
def authorize_order(
    request: Optional[AuthorizeOrderRequest] = None,
    paypal: PayPalService = Depends(get_paypal),
    store: Optional[TransactionStore] = Depends(get_store),
):
    order_id = require_id(request.orderId if request else None, "orderId")

    order = paypal.authorize_order(order_id)

    authorization = first_authorization(order)
    if store is not None and authorization and authorization.get("id"):
        persist(
            order,
            store.record_authorized,
            order_id,
            authorization["id"],
            authorization.get("status"),
            (order.get("payer") or {}).get("email_address"),
        )

    return order


@router.post("/capture")
def capture(
    request: Optional[CaptureRequest] = None,
    paypal: PayPalService = Depends(get_paypal),
    store: Optional[TransactionStore] = Depends(get_store),
):
    request = request or CaptureRequest()
    authorization_id = require_id(request.authorizationId, "authorizationId")

    result = paypal.capture_authorization(authorization_id, request.amount, request.currency)

    if store is not None and result.get("id"):
        persist(result, store.record_captured, authorization_id, result["id"], result.get("status"))

    return result


@router.post("/void")
def void(
    request: Optional[VoidRequest] = None,
    paypal: PayPalService = Depends(get_paypal),
    store: Optional[TransactionStore] = Depends(get_store),
):
    authorization_id = require_id(request.authorizationId if request else None, "authorizationId")

    result = paypal.void_authorization(authorization_id)

    if result is None:
        if store is not None:
            persist({"message": VOID_MESSAGE}, store.record_voided, authorization_id)
        return {"message": VOID_MESSAGE}

    if store is not None and result.get("status") == VOIDED:
        persist(result, store.record_voided, authorization_id)
    return result
