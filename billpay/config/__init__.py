"""
Configuration package.

Exports the process-wide settings object.
"""

from billpay.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
