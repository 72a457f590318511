"""Canal del dispositivo: parser de líneas, transporte pyserial y enlace con reconexión."""

from .device_link import DeviceLink, IllegalTransition
from .line_parser import (
    DecodeError,
    DeviceLineParser,
    MalformedPayload,
    SchemaViolation,
)
from .transport import (
    DeviceTransport,
    SerialTransport,
    TransportError,
    list_serial_ports,
    serial_transport_factory,
)

__all__ = [
    "DeviceLink",
    "IllegalTransition",
    "DecodeError",
    "DeviceLineParser",
    "MalformedPayload",
    "SchemaViolation",
    "DeviceTransport",
    "SerialTransport",
    "TransportError",
    "list_serial_ports",
    "serial_transport_factory",
]
