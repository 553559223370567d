import logging
from functools import lru_cache
from typing import Any, Dict, Optional

import razorpay

from app.config import settings
from app.errors import GatewayError

logger = logging.getLogger(__name__)


class RazorpayGateway:
    """Razorpay order creation and payment-signature checks.

    ``client`` may be any object exposing ``order.create(dict)`` and
    ``utility.verify_payment_signature(dict)``; when omitted a ``razorpay.Client``
    is built from the keys on first use.
    """

    def __init__(self, key_id: Optional[str], key_secret: Optional[str], client=None):
        self.key_id = key_id
        self.key_secret = key_secret
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.key_id or not self.key_secret:
                raise GatewayError(
                    "Missing Razorpay keys: set RAZORPAY_KEY_ID and RAZORPAY_KEY_SECRET",
                    reason="gateway_not_configured",
                )
            self._client = razorpay.Client(auth=(self.key_id, self.key_secret))
        return self._client

    def open_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Optional[Dict[str, Any]] = None,
    ) -> str:
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
        }
        if notes:
            payload["notes"] = notes

        client = self.client
        try:
            order = client.order.create(payload)
        except Exception as e:
            logger.error(f"Razorpay order creation failed for {receipt}: {e}")
            raise GatewayError("Order creation failed")

        order_id = order.get("id") if isinstance(order, dict) else None
        if not order_id:
            logger.error(f"Razorpay returned no order id for {receipt}: {order}")
            raise GatewayError("Order creation failed")

        logger.info(f"Razorpay order {order_id} created ({amount_minor} {currency})")
        return order_id

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Check the checkout callback signature with the key secret; never trusts the client."""
        try:
            self.client.utility.verify_payment_signature({
                "razorpay_order_id": order_id,
                "razorpay_payment_id": payment_id,
                "razorpay_signature": signature,
            })
        except razorpay.errors.SignatureVerificationError:
            logger.warning(f"Razorpay signature verification failed for order {order_id}")
            return False
        return True


@lru_cache()
def _default_gateway() -> RazorpayGateway:
    return RazorpayGateway(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)


def get_payment_gateway() -> RazorpayGateway:
    return _default_gateway()
