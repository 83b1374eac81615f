"""Pydantic models for usbmount."""

from usbmount.models.base import UsbmountBaseModel
from usbmount.models.device import (
    Classification,
    ClassificationOutcome,
    PartitionDevice,
    UnmountResult,
    UserIdentity,
)


__all__ = [
    "Classification",
    "ClassificationOutcome",
    "PartitionDevice",
    "UnmountResult",
    "UserIdentity",
    "UsbmountBaseModel",
]
