"""usbmount - mount and unmount USB storage devices."""

from importlib.metadata import distribution

from .models.device import ClassificationOutcome, PartitionDevice, UnmountResult


__version__ = distribution(__package__ or "usbmount").version

__all__ = [
    "ClassificationOutcome",
    "PartitionDevice",
    "UnmountResult",
    "__version__",
]

# Import CLI after setting __version__ to avoid circular imports
from .cli import app, main


__all__ += ["app", "main"]
