"""
Payment Runner - Main Module.

Drives a single payment through PROCESSING to SUCCESS or FAILED,
retrying failed settlement calls under a fixed-delay policy.

Module Structure:
- retry_policy.py: Retry decision logic
- runner.py: Status state machine around the settlement call

Public Interface:
- PaymentRunner
- RetryPolicy
"""

from billpay.services.payment_runner.retry_policy import RetryPolicy
from billpay.services.payment_runner.runner import PaymentRunner

__all__ = ["PaymentRunner", "RetryPolicy"]
