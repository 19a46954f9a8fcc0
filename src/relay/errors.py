"""Relay exceptions.

Kept free of third-party imports so configuration and API layers can use them.
"""

from __future__ import annotations


class RelayError(Exception):
    default_detail: str = "Relay error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class ConfigurationError(RelayError):
    default_detail = "Required configuration is missing."


class WebhookDeliveryError(RelayError):
    default_detail = "Transcript webhook delivery failed."
