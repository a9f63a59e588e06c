from typing import Any, Dict, Optional

import requests
import structlog

from app.config import CaptureMode, Settings
from app.errors import AuthError, UpstreamError
from app.logging_config import Events

log = structlog.get_logger(__name__)

DEFAULT_AMOUNT = "10.00"
DEFAULT_CURRENCY = "USD"


class PayPalService:
    """Thin client for the PayPal OAuth, Orders and Payments endpoints.

    Every operation fetches a fresh access token and then makes exactly one
    call to PayPal. Nothing is cached or retried.
    """

    def __init__(
        self,
        client_id: str,
        secret: str,
        base_url: str,
        capture_mode: CaptureMode = CaptureMode.FINAL,
    ):
        self.client_id = client_id
        self.secret = secret
        self.base_url = base_url.rstrip("/")
        self.capture_mode = capture_mode

    @classmethod
    def from_settings(cls, settings: Settings) -> "PayPalService":
        return cls(
            settings.paypal_client_id,
            settings.paypal_client_secret,
            settings.paypal_base_url,
            settings.capture_mode,
        )

    def get_access_token(self) -> str:
        try:
            r = requests.post(
                f"{self.base_url}/v1/oauth2/token",
                auth=(self.client_id, self.secret),
                data={"grant_type": "client_credentials"},
                headers={"Accept": "application/json"},
            )
        except requests.RequestException as e:
            log.error(Events.TOKEN_FAILED, error=str(e))
            raise AuthError("Failed to get access token") from e

        try:
            data = r.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if data.get("error") or r.status_code >= 400 or not data.get("access_token"):
            log.error(
                Events.TOKEN_FAILED,
                status=r.status_code,
                error=data.get("error"),
                error_description=data.get("error_description"),
            )
            raise AuthError(data.get("error_description") or "Failed to get access token")

        log.info(Events.TOKEN_FETCHED)
        return data["access_token"]

    def _post(
        self,
        path: str,
        operation: str,
        reference: Optional[str] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """POST to PayPal; returns the parsed body, or None on an empty success."""
        token = self.get_access_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        log.info(Events.PROCESSOR_CALL, operation=operation, reference=reference)
        try:
            r = requests.post(f"{self.base_url}{path}", json=body, headers=headers)
        except requests.RequestException as e:
            log.error(
                Events.PROCESSOR_FAILED,
                operation=operation,
                reference=reference,
                error=str(e),
            )
            raise UpstreamError(f"PayPal {operation} request failed") from e

        if r.status_code < 400 and (r.status_code == 204 or not r.content):
            return None

        try:
            data = r.json()
        except ValueError:
            data = None

        if r.status_code >= 400 or not isinstance(data, dict):
            log.error(
                Events.PROCESSOR_FAILED,
                operation=operation,
                reference=reference,
                status=r.status_code,
                response=data if data is not None else r.text,
            )
            raise UpstreamError(
                f"PayPal {operation} failed",
                processor_status=r.status_code,
                body=data if data is not None else r.text,
            )

        return data

    def create_order(self, amount: str = DEFAULT_AMOUNT, currency: str = DEFAULT_CURRENCY) -> Dict[str, Any]:
        body = {
            "intent": "AUTHORIZE",
            "purchase_units": [
                {"amount": {"currency_code": currency, "value": amount}}
            ],
        }
        return self._post("/v2/checkout/orders", "create-order", body=body) or {}

    def authorize_order(self, order_id: str) -> Dict[str, Any]:
        return self._post(
            f"/v2/checkout/orders/{order_id}/authorize",
            "authorize-order",
            reference=order_id,
        ) or {}

    def capture_authorization(
        self,
        authorization_id: str,
        amount: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> Dict[str, Any]:
        if self.capture_mode == CaptureMode.AMOUNT:
            body = {
                "amount": {
                    "value": amount or DEFAULT_AMOUNT,
                    "currency_code": currency or DEFAULT_CURRENCY,
                },
                "final_capture": True,
            }
        else:
            if amount or currency:
                log.warning(
                    "capture.amount_ignored",
                    reference=authorization_id,
                    capture_mode=self.capture_mode.value,
                )
            body = {"final_capture": True}

        return self._post(
            f"/v2/payments/authorizations/{authorization_id}/capture",
            "capture",
            reference=authorization_id,
            body=body,
        ) or {}

    def void_authorization(self, authorization_id: str) -> Optional[Dict[str, Any]]:
        # PayPal answers a successful void with 204 No Content
        return self._post(
            f"/v2/payments/authorizations/{authorization_id}/void",
            "void",
            reference=authorization_id,
        )


def first_authorization(order: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Return the first authorization nested in an authorized order, if any."""
    for unit in order.get("purchase_units") or []:
        authorizations = (unit.get("payments") or {}).get("authorizations") or []
        if authorizations:
            return authorizations[0]
    return None
