from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from ..core.constants import DEFAULT_PAYMENT_FAILURE_RATE
from ..core.enums import PaymentMethod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentReceipt:
    ok: bool
    transaction_id: Optional[str] = None
    message: str = ""


class PaymentGateway(Protocol):
    def charge(self, amount: float, method: PaymentMethod, reference: str) -> PaymentReceipt:
        raise NotImplementedError


class SimulatedPaymentGateway(PaymentGateway):
    """Stand-in for a real processor: fails with probability ``failure_rate``."""

    def __init__(
        self,
        failure_rate: float = DEFAULT_PAYMENT_FAILURE_RATE,
        *,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ):
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be between 0 and 1")
        self._failure_rate = failure_rate
        self._rng = rng or random.Random()
        self._clock = clock

    def charge(self, amount: float, method: PaymentMethod, reference: str) -> PaymentReceipt:
        if self._rng.random() < self._failure_rate:
            logger.info("Simulated %s payment of %.2f failed (%s)", method.value, amount, reference)
            return PaymentReceipt(ok=False, message="Payment declined")
        transaction_id = f"TXN{int(self._clock() * 1000)}"
        logger.info("Simulated %s payment of %.2f ok (%s, %s)", method.value, amount, reference, transaction_id)
        return PaymentReceipt(ok=True, transaction_id=transaction_id, message="Payment successful")
