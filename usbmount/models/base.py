"""Base model for all usbmount Pydantic models."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class UsbmountBaseModel(BaseModel):
    """Base model class for all usbmount Pydantic models.

    Models are read-only snapshots: they are built once from the host state
    and never mutated afterwards.
    """

    model_config = ConfigDict(
        frozen=True,
        # Labels and mount points may legitimately carry whitespace
        str_strip_whitespace=False,
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert model to a JSON-compatible dictionary."""
        return self.model_dump(by_alias=True, mode="json")
