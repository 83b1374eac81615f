"""Device classification, mount table correlation and mount orchestration."""

from .classifier import DeviceClassifier, create_device_classifier, find_device
from .mountinfo import MountInfoEntry, MountTableIndex, parse_mountinfo_line
from .orchestrator import MountOrchestrator
from .paths import MountPathAllocator


__all__ = [
    "DeviceClassifier",
    "MountInfoEntry",
    "MountOrchestrator",
    "MountPathAllocator",
    "MountTableIndex",
    "create_device_classifier",
    "find_device",
    "parse_mountinfo_line",
]
