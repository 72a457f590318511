from .broadcaster import (
    WELCOME_MESSAGE,
    Broadcaster,
    reading_message,
    sample_message,
    status_message,
)
from .live_client import ClientChannel, LiveClient

__all__ = [
    "WELCOME_MESSAGE",
    "Broadcaster",
    "ClientChannel",
    "LiveClient",
    "reading_message",
    "sample_message",
    "status_message",
]
