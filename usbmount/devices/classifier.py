"""Block device classification using pyudev.

A block device is a mount candidate when it carries a filesystem and is
attached through USB, either directly or as a device-mapper target (LUKS, LVM)
whose backing slave is a USB partition.
"""

import os
from collections.abc import Callable, Iterable
from pathlib import Path

import pyudev

from usbmount.core.errors import DeviceAttributeError
from usbmount.core.structlog_logger import get_struct_logger
from usbmount.devices.mountinfo import MountTableIndex
from usbmount.models.device import (
    Classification,
    ClassificationOutcome,
    PartitionDevice,
)


logger = get_struct_logger(__name__)

SECTOR_SIZE = 512

# udev properties read for each device
# ID_FS_TYPE: vfat
# ID_FS_LABEL: GLV80RHBOOT
# ID_MODEL: nRF_UF2
# DM_NAME: luks-0042-0042
PROP_FS_TYPE = "ID_FS_TYPE"
PROP_FS_LABEL = "ID_FS_LABEL"
PROP_MODEL = "ID_MODEL"
PROP_DM_NAME = "DM_NAME"


def is_usb_device(device: pyudev.Device) -> bool:
    """Check if a device has a USB ancestor."""
    return any(parent.subsystem == "usb" for parent in device.ancestors)


def _attribute(device: pyudev.Device, name: str) -> str | None:
    value = device.attributes.get(name)
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace").strip()
    return str(value).strip()


def _optional_property(device: pyudev.Device, name: str) -> str | None:
    value = device.properties.get(name)
    return value if value else None


class DeviceClassifier:
    """Builds the inventory of USB-backed partitions."""

    def __init__(
        self,
        mount_table: MountTableIndex,
        context: pyudev.Context | None = None,
        device_loader: Callable[[str], pyudev.Device] | None = None,
    ) -> None:
        self.mount_table = mount_table
        self._context = context
        self._device_loader = device_loader

    @property
    def context(self) -> pyudev.Context:
        """Get or create the udev context."""
        if self._context is None:
            self._context = pyudev.Context()
        return self._context

    def _load_device(self, sys_path: str) -> pyudev.Device:
        if self._device_loader is not None:
            return self._device_loader(sys_path)
        return pyudev.Devices.from_sys_path(self.context, sys_path)

    def list_block_devices(self) -> Iterable[pyudev.Device]:
        return self.context.list_devices(subsystem="block")

    def enumerate(self) -> list[PartitionDevice]:
        """Classify every block device and return the accepted ones."""
        devices = []
        for device in self.list_block_devices():
            classification = self.classify(device)
            if classification.device is not None:
                devices.append(classification.device)
        logger.debug("devices_enumerated", count=len(devices))
        return devices

    def list_slaves(self, device: pyudev.Device) -> list[str]:
        """Resolved sysfs paths of the devices backing a device-mapper device."""
        slaves_dir = Path(device.sys_path) / "slaves"
        try:
            names = sorted(os.listdir(slaves_dir))
        except FileNotFoundError:
            return []
        return [os.path.realpath(slaves_dir / name) for name in names]

    def classify(self, device: pyudev.Device) -> Classification:
        """Decide whether ``device`` is a mount candidate.

        Raises:
            DeviceAttributeError: If an accepted device lacks its devnode,
                ``size`` or ``dev`` attribute
        """
        sys_path = str(device.sys_path)

        if not device.properties.get(PROP_FS_TYPE):
            return self._excluded(sys_path, ClassificationOutcome.NO_FILESYSTEM)

        if is_usb_device(device):
            return Classification(
                sys_path=sys_path,
                outcome=ClassificationOutcome.USB,
                device=self._build_device(
                    device, model=_optional_property(device, PROP_MODEL)
                ),
            )

        if not device.properties.get(PROP_DM_NAME):
            return self._excluded(sys_path, ClassificationOutcome.NOT_USB)

        slaves = self.list_slaves(device)
        if not slaves:
            return self._excluded(sys_path, ClassificationOutcome.NO_SLAVE)
        if len(slaves) > 1:
            # Which slaves must be USB-backed is undecided, so refuse to guess
            logger.warning(
                "ambiguous_device_mapper_topology",
                sys_path=sys_path,
                dm_name=device.properties.get(PROP_DM_NAME),
                slaves=slaves,
            )
            return Classification(
                sys_path=sys_path, outcome=ClassificationOutcome.AMBIGUOUS_TOPOLOGY
            )

        try:
            slave = self._load_device(slaves[0])
        except pyudev.DeviceNotFoundError as e:
            logger.debug("slave_not_resolvable", sys_path=sys_path, error=str(e))
            return self._excluded(sys_path, ClassificationOutcome.NO_SLAVE)

        if not is_usb_device(slave):
            return self._excluded(sys_path, ClassificationOutcome.SLAVE_NOT_USB)

        return Classification(
            sys_path=sys_path,
            outcome=ClassificationOutcome.DEVICE_MAPPER,
            device=self._build_device(
                device, model=_optional_property(slave, PROP_MODEL)
            ),
        )

    def _excluded(
        self, sys_path: str, outcome: ClassificationOutcome
    ) -> Classification:
        logger.debug("device_excluded", sys_path=sys_path, outcome=outcome.value)
        return Classification(sys_path=sys_path, outcome=outcome)

    def _build_device(
        self, device: pyudev.Device, model: str | None
    ) -> PartitionDevice:
        sys_path = str(device.sys_path)

        dev_path = device.device_node
        if not dev_path:
            raise DeviceAttributeError(sys_path, "DEVNAME")

        size = _attribute(device, "size")
        if size is None:
            raise DeviceAttributeError(sys_path, "size")
        try:
            sectors = int(size)
        except ValueError:
            raise DeviceAttributeError(sys_path, "size") from None

        device_id = _attribute(device, "dev")
        if not device_id:
            raise DeviceAttributeError(sys_path, "device id")

        return PartitionDevice(
            dev_path=str(dev_path),
            filesystem=device.properties[PROP_FS_TYPE],
            size_bytes=sectors * SECTOR_SIZE,
            label=_optional_property(device, PROP_FS_LABEL),
            usb_model_name=model,
            mounted_points=self.mount_table.lookup(device_id),
            device_id=device_id,
            sys_path=sys_path,
        )


def find_device(
    devices: Iterable[PartitionDevice], dev_path: str
) -> PartitionDevice | None:
    """Find a device by path, following symlinks such as /dev/mapper/<name>."""
    wanted = os.path.realpath(dev_path)
    for device in devices:
        if device.dev_path == dev_path or os.path.realpath(device.dev_path) == wanted:
            return device
    return None


def create_device_classifier(mount_table: MountTableIndex) -> DeviceClassifier:
    """Factory function to create a DeviceClassifier."""
    return DeviceClassifier(mount_table)
