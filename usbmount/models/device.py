"""Device and mount models."""

from enum import Enum

from pydantic import Field, computed_field

from usbmount.models.base import UsbmountBaseModel


class ClassificationOutcome(str, Enum):
    """Why a block device was, or was not, accepted as a candidate."""

    USB = "usb"
    DEVICE_MAPPER = "device_mapper"
    NO_FILESYSTEM = "no_filesystem"
    NOT_USB = "not_usb"
    NO_SLAVE = "no_slave"
    SLAVE_NOT_USB = "slave_not_usb"
    AMBIGUOUS_TOPOLOGY = "ambiguous_topology"

    @property
    def accepted(self) -> bool:
        return self in (ClassificationOutcome.USB, ClassificationOutcome.DEVICE_MAPPER)


class PartitionDevice(UsbmountBaseModel):
    """A block device partition eligible for mount/unmount."""

    dev_path: str = Field(description="Block special file, e.g. /dev/sdb1")
    filesystem: str = Field(description="Filesystem type reported by udev")
    size_bytes: int = Field(ge=0, description="Sector count times 512")
    label: str | None = None
    usb_model_name: str | None = None
    mounted_points: tuple[str, ...] = ()
    device_id: str = Field(default="", description="major:minor identifier")
    sys_path: str = ""

    @property
    def is_mounted(self) -> bool:
        return bool(self.mounted_points)


class Classification(UsbmountBaseModel):
    """Result of classifying one block device."""

    sys_path: str
    outcome: ClassificationOutcome
    device: PartitionDevice | None = None


class UserIdentity(UsbmountBaseModel):
    """Identity that owns mounts and mount directories."""

    username: str
    uid: int
    gid: int


class UnmountResult(UsbmountBaseModel):
    """Outcome of unmounting a single mount point."""

    mount_point: str
    error: str | None = None
    directory_removed: bool = False
    cleanup_error: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return self.error is None
