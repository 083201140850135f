"""Operator HTTP API."""

from billpay.api.operator import create_app, start_api_server, stop_api_server

__all__ = ["create_app", "start_api_server", "stop_api_server"]
