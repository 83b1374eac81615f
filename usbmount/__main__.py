"""Allow running usbmount as ``python -m usbmount``."""

import sys

from usbmount.cli import main


if __name__ == "__main__":
    sys.exit(main())
