"""Identity adapter resolving the user behind an escalated process."""

import os
import pwd
from collections.abc import Mapping

from usbmount.core.structlog_logger import get_struct_logger
from usbmount.models.device import UserIdentity


logger = get_struct_logger(__name__)

# Set by sudo on the re-executed process
ORIGINAL_USER_ENV = "SUDO_USER"
ORIGINAL_UID_ENV = "SUDO_UID"
ORIGINAL_GID_ENV = "SUDO_GID"


class EnvironmentIdentityProvider:
    """Resolve identity from the sudo environment, else from the process."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def _numeric_override(self, name: str, fallback: int) -> int:
        value = self._environ.get(name)
        if value is None:
            return fallback
        try:
            return int(value)
        except ValueError:
            logger.warning("invalid_identity_override", variable=name, value=value)
            return fallback

    def _username(self) -> str:
        username = self._environ.get(ORIGINAL_USER_ENV)
        if username:
            return username
        euid = os.geteuid()
        try:
            return pwd.getpwuid(euid).pw_name
        except KeyError:
            # Containers may run with a uid that has no passwd entry
            return str(euid)

    def current_user_identity(self) -> UserIdentity:
        return UserIdentity(
            username=self._username(),
            uid=self._numeric_override(ORIGINAL_UID_ENV, os.geteuid()),
            gid=self._numeric_override(ORIGINAL_GID_ENV, os.getegid()),
        )


def create_identity_provider() -> EnvironmentIdentityProvider:
    """Factory function to create the default identity provider."""
    return EnvironmentIdentityProvider()
