"""Protocol definitions for usbmount adapters.

The protocols use ``typing.Protocol`` with ``@runtime_checkable`` so that they
serve both static type checking and ``isinstance()`` checks, and so that tests
can substitute the OS facing pieces.
"""

from .identity_protocol import IdentityProviderProtocol
from .mounter_protocol import MounterProtocol


__all__ = ["IdentityProviderProtocol", "MounterProtocol"]
