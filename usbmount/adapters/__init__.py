"""Adapters over the operating system."""

from .identity_adapter import EnvironmentIdentityProvider, create_identity_provider
from .mount_adapter import LibcMounter, UnmountFlags, create_mounter


__all__ = [
    "EnvironmentIdentityProvider",
    "LibcMounter",
    "UnmountFlags",
    "create_identity_provider",
    "create_mounter",
]
