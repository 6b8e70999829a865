"""
Mock SWIFT gateway.

There is no real network integration: a submission waits for a short
simulated round trip and then succeeds with probability ``success_rate``.
"""
import random
import time
import uuid
from dataclasses import dataclass
from typing import Optional

from .config import SWIFT_DELAY_SECONDS, SWIFT_SUCCESS_RATE
from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class SwiftResult:
    success: bool
    reference: Optional[str] = None
    message: str = ""


class MockSwiftGateway:
    def __init__(self, success_rate: float = SWIFT_SUCCESS_RATE,
                 delay_seconds: float = SWIFT_DELAY_SECONDS, rng: Optional[random.Random] = None):
        if not 0.0 <= success_rate <= 1.0:
            raise ValueError("success_rate must be between 0 and 1")
        self.success_rate = success_rate
        self.delay_seconds = delay_seconds
        self.rng = rng or random.Random()

    def submit(self, transaction, delay_seconds: Optional[float] = None) -> SwiftResult:
        delay = self.delay_seconds if delay_seconds is None else delay_seconds
        if delay > 0:
            time.sleep(delay)

        if self.rng.random() < self.success_rate:
            reference = "SWF" + uuid.uuid4().hex[:12].upper()
            logger.info("swift_accepted", transaction_id=transaction.id, reference=reference,
                        swift_code=transaction.swift_code)
            return SwiftResult(success=True, reference=reference, message="Submitted to SWIFT")

        logger.warning("swift_rejected", transaction_id=transaction.id, swift_code=transaction.swift_code)
        return SwiftResult(success=False, message="SWIFT network error")


_gateway: Optional[MockSwiftGateway] = None


def get_gateway() -> MockSwiftGateway:
    global _gateway
    if _gateway is None:
        _gateway = MockSwiftGateway()
    return _gateway
