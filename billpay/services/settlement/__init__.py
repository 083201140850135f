"""
Settlement provider clients.

Public Interface:
- SettlementClient: abstract provider interface
- HttpSettlementClient: provider HTTP API client
- DryRunSettlementClient: always-succeeding local client
- build_settlement_client: pick the client configured in settings
"""

from billpay.config.settings import Settings
from billpay.services.settlement.base import (
    ConnectionResult,
    ProviderCredentials,
    SettlementClient,
    SettlementResult,
)
from billpay.services.settlement.dry_run import DryRunSettlementClient
from billpay.services.settlement.http_client import HttpSettlementClient


def build_settlement_client(config: Settings) -> SettlementClient:
    """Create the settlement client selected by SETTLEMENT_PROVIDER."""
    if config.settlement_provider == "dry_run":
        return DryRunSettlementClient()

    credentials = ProviderCredentials(
        username=config.provider_username,
        password=config.provider_password,
        cert_path=config.provider_cert_path,
        cert_password=config.provider_cert_password,
    )
    return HttpSettlementClient(
        credentials,
        base_url=config.provider_base_url,
        timeout_seconds=config.provider_timeout_seconds,
    )


__all__ = [
    "ConnectionResult",
    "DryRunSettlementClient",
    "HttpSettlementClient",
    "ProviderCredentials",
    "SettlementClient",
    "SettlementResult",
    "build_settlement_client",
]
