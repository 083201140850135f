"""
BillPay - recurring bill and transfer settlement scheduler.

Tracks bills and transfers, selects the ones due today and submits them
to the settlement provider with bounded retry.
"""

__version__ = "0.1.0"
