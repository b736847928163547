"""Stripe REST client for fetching disputes and account details"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from dispute_reporter.config import settings
from dispute_reporter.domain.exceptions import FetchError
from dispute_reporter.domain.models import ChargeRecord, DisputeRecord, PaymentMethod, ReportWindow
from dispute_reporter.utils.date_utils import from_unix_seconds, to_unix_seconds

logger = logging.getLogger(__name__)

UNKNOWN_ACCOUNT = "Unknown Account"


def parse_payment_method(details: Optional[Dict[str, Any]]) -> PaymentMethod:
    if not details:
        return PaymentMethod()
    card = details.get("card") or {}
    return PaymentMethod(
        type=details.get("type"),
        brand=card.get("brand"),
        funding=card.get("funding"),
        country=card.get("country"),
    )


def parse_charge(charge: Any) -> Optional[ChargeRecord]:
    """Expanded charge object → ChargeRecord; a bare charge id yields None"""
    if not isinstance(charge, dict):
        return None

    customer = charge.get("customer")
    if isinstance(customer, dict):
        customer_ref = customer.get("id")
    else:
        customer_ref = customer

    billing_details = charge.get("billing_details") or {}
    return ChargeRecord(
        id=charge["id"],
        created_at=from_unix_seconds(charge["created"]),
        payment_method=parse_payment_method(charge.get("payment_method_details")),
        billing_email=billing_details.get("email") or charge.get("receipt_email"),
        customer_ref=customer_ref,
    )


def parse_dispute(data: Dict[str, Any]) -> DisputeRecord:
    return DisputeRecord(
        id=data["id"],
        amount=int(data["amount"]),
        currency=str(data["currency"]).lower(),
        reason=data.get("reason"),
        status=data.get("status"),
        created_at=from_unix_seconds(data["created"]),
        charge=parse_charge(data.get("charge")),
    )


def account_label(account: Dict[str, Any]) -> str:
    """Display name, then business profile name, then email"""
    business_profile = account.get("business_profile") or {}
    dashboard = (account.get("settings") or {}).get("dashboard") or {}
    return (
        account.get("display_name")
        or dashboard.get("display_name")
        or business_profile.get("name")
        or account.get("email")
        or UNKNOWN_ACCOUNT
    )


class StripeClient:
    """Client for the Stripe disputes and account APIs"""

    def __init__(
        self,
        secret_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        page_size: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.secret_key = secret_key or settings.stripe_secret_key
        self.base_url = base_url or settings.stripe_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.page_size = page_size or settings.stripe_page_size
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.secret_key}"},
            timeout=self.timeout,
            transport=self.transport,
        )

    async def list_disputes(self, window: ReportWindow) -> List[DisputeRecord]:
        """
        Fetch every dispute created inside the window, charge and customer expanded.

        Follows `has_more`/`starting_after` until the listing is exhausted.

        Raises:
            FetchError: On timeout, HTTP errors, or invalid response
        """
        params: Dict[str, Any] = {
            "created[gte]": to_unix_seconds(window.start),
            "created[lte]": to_unix_seconds(window.end),
            "expand[]": ["data.charge", "data.charge.customer"],
            "limit": self.page_size,
        }
        disputes: List[DisputeRecord] = []

        async with self._client() as client:
            try:
                while True:
                    response = await client.get("/disputes", params=params)
                    response.raise_for_status()
                    page = response.json()
                    if not isinstance(page, dict):
                        raise TypeError(f"expected a list object, got {type(page).__name__}")

                    data = page.get("data") or []
                    disputes.extend(parse_dispute(item) for item in data)

                    if not page.get("has_more") or not data:
                        break
                    params["starting_after"] = data[-1]["id"]

            except httpx.TimeoutException as e:
                raise FetchError(f"Stripe API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise FetchError(f"Stripe API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise FetchError(f"Stripe API unreachable: {e}") from e
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                raise FetchError(f"Invalid dispute data from Stripe: {e}") from e

        logger.info("Fetched disputes", extra={"dispute_count": len(disputes)})
        return disputes

    async def get_account_label(self) -> str:
        """
        Human-readable name of the connected account.

        Raises:
            FetchError: If the account cannot be retrieved
        """
        async with self._client() as client:
            try:
                response = await client.get("/account")
                response.raise_for_status()
                account = response.json()
                if not isinstance(account, dict):
                    raise TypeError(f"expected an account object, got {type(account).__name__}")
                return account_label(account)
            except httpx.HTTPError as e:
                raise FetchError(f"Could not retrieve Stripe account: {e}") from e
            except (ValueError, TypeError, AttributeError) as e:
                raise FetchError(f"Invalid account data from Stripe: {e}") from e
