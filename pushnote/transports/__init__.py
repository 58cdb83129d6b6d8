"""pushnote transports."""

from pushnote.transports.base import Transport
from pushnote.transports.slack import SlackWebhookTransport
from pushnote.transports.stdout import StdoutTransport

__all__ = [
    "Transport",
    "SlackWebhookTransport",
    "StdoutTransport",
]
