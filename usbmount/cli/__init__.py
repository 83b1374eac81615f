"""Command-line interface for usbmount."""

from usbmount.cli.app import AppContext, app, main


__all__ = ["AppContext", "app", "main"]
