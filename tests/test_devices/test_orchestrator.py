"""Tests for MountOrchestrator."""

import errno
from pathlib import Path

import pytest

from usbmount.core.errors import (
    AlreadyMountedError,
    DeviceBusyError,
    MountFailedError,
    MountPathCleanupError,
    MountPathError,
    NotMountedError,
)
from usbmount.devices.lock import device_lock
from usbmount.devices.orchestrator import MountOrchestrator, failed_points
from usbmount.devices.paths import MountPathAllocator
from usbmount.models.device import UnmountResult


MARKER = ".create_by_usbmount"


@pytest.fixture
def allocator(mock_identity_provider):
    return MountPathAllocator(mock_identity_provider)


@pytest.fixture
def orchestrator(mock_mounter, allocator, mock_identity_provider, settings):
    return MountOrchestrator(
        mounter=mock_mounter,
        allocator=allocator,
        identity_provider=mock_identity_provider,
        settings=settings,
    )


def make_marked_dir(path: Path) -> Path:
    path.mkdir(parents=True)
    (path / MARKER).touch()
    return path


class TestDefaultOptions:
    """Test options injected when none are given."""

    @pytest.mark.parametrize("filesystem", ["vfat", "exfat", "ntfs"])
    def test_ownerless_filesystems_get_uid_gid(
        self, orchestrator, partition_factory, filesystem
    ):
        """Test filesystems without ownership are mounted for the user."""
        device = partition_factory(filesystem=filesystem)

        assert orchestrator.default_options(device) == "uid=1000,gid=1000"

    def test_posix_filesystem_gets_no_options(self, orchestrator, partition_factory):
        """Test ext4 keeps its on-disk ownership."""
        assert orchestrator.default_options(partition_factory(filesystem="ext4")) == ""

    def test_configured_filesystem_list(
        self, mock_mounter, allocator, mock_identity_provider, partition_factory
    ):
        """Test the allow-list comes from settings."""
        from usbmount.config.models import UserConfigData

        orchestrator = MountOrchestrator(
            mock_mounter,
            allocator,
            mock_identity_provider,
            settings=UserConfigData(default_option_filesystems="ext4"),
        )

        assert orchestrator.default_options(partition_factory(filesystem="vfat")) == ""
        assert (
            orchestrator.default_options(partition_factory(filesystem="ext4"))
            == "uid=1000,gid=1000"
        )


class TestFilesystemCandidates:
    """Test filesystem type ordering."""

    def test_reported_type_first(self, orchestrator, mock_mounter, partition_factory):
        """Test the udev type is tried before the kernel list, without repeats."""
        mock_mounter.supported_filesystems.return_value = ["ext4", "vfat", "xfs"]

        assert orchestrator.filesystem_candidates(partition_factory()) == [
            "vfat",
            "ext4",
            "xfs",
        ]

    def test_unknown_kernel_list(self, orchestrator, mock_mounter, partition_factory):
        """Test only the reported type is tried when the kernel list is empty."""
        mock_mounter.supported_filesystems.return_value = []

        assert orchestrator.filesystem_candidates(partition_factory()) == ["vfat"]


class TestMount:
    """Test MountOrchestrator.mount."""

    def test_mount_auto_path(
        self, orchestrator, mock_mounter, partition_factory, settings
    ):
        """Test mounting into an allocated directory."""
        device = partition_factory()

        target = orchestrator.mount(device)

        expected = settings.auto_mount_dir / "alice" / "BOOT"
        assert target == expected
        assert (expected / MARKER).is_file()
        mock_mounter.mount.assert_called_once_with(
            "/dev/sdb1",
            expected,
            ["vfat", "ext4", "exfat"],
            "uid=1000,gid=1000",
        )

    def test_mount_explicit_root(self, orchestrator, partition_factory, tmp_path):
        """Test the auto-mount root can be overridden per call."""
        target = orchestrator.mount(partition_factory(), auto_mount_root=tmp_path / "x")

        assert target == tmp_path / "x" / "alice" / "BOOT"

    def test_mount_explicit_path_is_not_marked(
        self, orchestrator, mock_mounter, partition_factory, tmp_path
    ):
        """Test an explicit mount path is used as is."""
        mount_path = tmp_path / "mnt"
        mount_path.mkdir()

        target = orchestrator.mount(partition_factory(), mount_path=str(mount_path))

        assert target == mount_path
        assert not (mount_path / MARKER).exists()
        assert mock_mounter.mount.call_args.args[1] == mount_path

    def test_mount_explicit_options(
        self, orchestrator, mock_mounter, partition_factory
    ):
        """Test caller options replace the defaults."""
        orchestrator.mount(partition_factory(), options="ro,utf8")

        assert mock_mounter.mount.call_args.args[3] == "ro,utf8"

    def test_mount_empty_options_are_respected(
        self, orchestrator, mock_mounter, partition_factory
    ):
        """Test an explicitly empty option string disables the defaults."""
        orchestrator.mount(partition_factory(), options="")

        assert mock_mounter.mount.call_args.args[3] == ""

    def test_already_mounted_raises_without_side_effects(
        self, orchestrator, mock_mounter, partition_factory, settings
    ):
        """Test a mounted device is refused before anything is touched."""
        device = partition_factory(mounted_points=("/mnt/a", "/mnt/b"))

        with pytest.raises(AlreadyMountedError) as exc_info:
            orchestrator.mount(device)

        assert exc_info.value.mount_point == "/mnt/a"
        assert "already mounted at `/mnt/a`" in str(exc_info.value)
        mock_mounter.mount.assert_not_called()
        assert not settings.auto_mount_dir.exists()
        assert not settings.lock_dir.exists()

    def test_mount_failure_removes_allocated_directory(
        self, orchestrator, mock_mounter, partition_factory, settings
    ):
        """Test a failed mount does not leave an empty directory behind."""
        mock_mounter.mount.side_effect = OSError(errno.EPERM, "Operation not permitted")

        with pytest.raises(MountFailedError) as exc_info:
            orchestrator.mount(partition_factory())

        assert "Operation not permitted" in exc_info.value.reason
        assert not (settings.auto_mount_dir / "alice" / "BOOT").exists()

    def test_mount_failure_with_unremovable_directory(
        self, orchestrator, mock_mounter, allocator, partition_factory, monkeypatch
    ):
        """Test the mount error is reported even when rollback cannot clean up."""
        mock_mounter.mount.side_effect = OSError(errno.EINVAL, "Invalid argument")

        def refuse(path):
            raise MountPathCleanupError(str(path), "busy")

        monkeypatch.setattr(allocator, "release", refuse)

        with pytest.raises(MountFailedError, match="Invalid argument"):
            orchestrator.mount(partition_factory())

    def test_mount_failure_keeps_explicit_directory(
        self, orchestrator, mock_mounter, partition_factory, tmp_path
    ):
        """Test a caller-provided directory is never removed."""
        mock_mounter.mount.side_effect = OSError(errno.EINVAL, "Invalid argument")
        mount_path = tmp_path / "mnt"
        mount_path.mkdir()

        with pytest.raises(MountFailedError):
            orchestrator.mount(partition_factory(), mount_path=mount_path)

        assert mount_path.is_dir()

    def test_mount_allocation_failure(
        self,
        mock_mounter,
        allocator,
        mock_identity_provider,
        partition_factory,
        tmp_path,
    ):
        """Test an uncreatable mount directory is fatal."""
        from usbmount.config.models import UserConfigData

        root = tmp_path / "file"
        root.touch()
        orchestrator = MountOrchestrator(
            mock_mounter,
            allocator,
            mock_identity_provider,
            settings=UserConfigData(auto_mount_dir=root, use_device_lock=False),
        )

        with pytest.raises(MountPathError):
            orchestrator.mount(partition_factory())

        mock_mounter.mount.assert_not_called()

    def test_mount_refused_while_device_locked(
        self, orchestrator, mock_mounter, partition_factory, settings
    ):
        """Test a concurrent run on the same device is refused."""
        with (
            device_lock("/dev/sdb1", settings.lock_dir),
            pytest.raises(DeviceBusyError),
        ):
            orchestrator.mount(partition_factory())

        mock_mounter.mount.assert_not_called()
        assert not (settings.auto_mount_dir / "alice" / "BOOT").exists()

    def test_mount_without_lock(
        self,
        mock_mounter,
        allocator,
        mock_identity_provider,
        partition_factory,
        tmp_path,
    ):
        """Test the lock can be disabled."""
        from usbmount.config.models import UserConfigData

        settings = UserConfigData(
            auto_mount_dir=tmp_path / "media",
            lock_dir=tmp_path / "lock",
            use_device_lock=False,
        )
        orchestrator = MountOrchestrator(
            mock_mounter, allocator, mock_identity_provider, settings=settings
        )

        orchestrator.mount(partition_factory())

        assert not settings.lock_dir.exists()


class TestUnmount:
    """Test MountOrchestrator.unmount."""

    def test_unmount_not_mounted_raises(
        self, orchestrator, mock_mounter, partition_factory
    ):
        """Test a device without mount points is refused."""
        with pytest.raises(NotMountedError, match="don't have any mount point"):
            orchestrator.unmount(partition_factory())

        mock_mounter.unmount.assert_not_called()

    def test_unmount_all_points(
        self, orchestrator, mock_mounter, partition_factory, tmp_path
    ):
        """Test every mount point is unmounted and marked directories removed."""
        first = make_marked_dir(tmp_path / "media" / "alice" / "BOOT")
        second = make_marked_dir(tmp_path / "media" / "alice" / "BOOT-0")
        device = partition_factory(mounted_points=(str(first), str(second)))

        results = orchestrator.unmount(device)

        assert [r.mount_point for r in results] == [str(first), str(second)]
        assert all(r.success and r.directory_removed for r in results)
        assert not first.exists()
        assert not second.exists()
        assert failed_points(results) == []

    def test_unmount_keeps_unmarked_directory(
        self, orchestrator, partition_factory, tmp_path
    ):
        """Test directories not created by usbmount survive."""
        mount_point = tmp_path / "mnt"
        mount_point.mkdir()
        device = partition_factory(mounted_points=(str(mount_point),))

        results = orchestrator.unmount(device)

        assert results == [UnmountResult(mount_point=str(mount_point))]
        assert mount_point.is_dir()

    def test_unmount_partial_failure(
        self, orchestrator, mock_mounter, partition_factory, tmp_path
    ):
        """Test a failing point is reported and the next one still unmounted."""
        first = make_marked_dir(tmp_path / "media" / "alice" / "BOOT")
        second = make_marked_dir(tmp_path / "media" / "alice" / "BOOT-0")
        mock_mounter.unmount.side_effect = [
            OSError(errno.EBUSY, "Device or resource busy"),
            None,
        ]
        device = partition_factory(mounted_points=(str(first), str(second)))

        results = orchestrator.unmount(device)

        assert len(results) == 2
        assert not results[0].success
        assert "busy" in results[0].error
        assert results[0].directory_removed is False
        assert results[1].success
        assert results[1].directory_removed is True
        assert first.is_dir()
        assert (first / MARKER).is_file()
        assert not second.exists()
        assert failed_points(results) == [results[0]]

    def test_unmount_cleanup_failure_continues(
        self, orchestrator, mock_mounter, partition_factory, tmp_path
    ):
        """Test a directory that cannot be removed does not stop later points."""
        cluttered = make_marked_dir(tmp_path / "media" / "alice" / "BOOT")
        (cluttered / "stray.txt").write_text("left behind")
        plain = tmp_path / "mnt"
        plain.mkdir()
        device = partition_factory(mounted_points=(str(cluttered), str(plain)))

        results = orchestrator.unmount(device)

        assert mock_mounter.unmount.call_count == 2
        assert [r.mount_point for r in results] == [str(cluttered), str(plain)]
        assert results[0].success
        assert results[0].directory_removed is False
        assert "not empty" in results[0].cleanup_error
        assert (cluttered / MARKER).is_file()
        assert results[1] == UnmountResult(mount_point=str(plain))
        assert failed_points(results) == []

    def test_unmount_refused_while_device_locked(
        self, orchestrator, mock_mounter, partition_factory, settings
    ):
        """Test unmount takes the device lock too."""
        device = partition_factory(mounted_points=("/mnt/a",))

        with (
            device_lock("/dev/sdb1", settings.lock_dir),
            pytest.raises(DeviceBusyError),
        ):
            orchestrator.unmount(device)

        mock_mounter.unmount.assert_not_called()
