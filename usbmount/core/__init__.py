"""Core infrastructure: errors and logging."""

from usbmount.core.errors import UsbmountError
from usbmount.core.logging import setup_logging
from usbmount.core.structlog_logger import get_struct_logger


__all__ = ["UsbmountError", "get_struct_logger", "setup_logging"]
