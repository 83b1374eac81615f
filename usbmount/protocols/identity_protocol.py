"""Protocol for resolving the identity that owns a mount."""

from typing import Protocol, runtime_checkable

from usbmount.models.device import UserIdentity


@runtime_checkable
class IdentityProviderProtocol(Protocol):
    """Protocol for resolving the invoking user's identity."""

    def current_user_identity(self) -> UserIdentity:
        """Return the user that should own mounts and mount directories.

        When the process runs escalated, this is the user who invoked sudo
        rather than root.
        """
        ...
