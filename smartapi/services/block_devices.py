import logging
from pathlib import Path
from typing import List, Union

from smartapi.models.drive import BlockDevice, StorageController

logger = logging.getLogger(__name__)

# Kernel name prefixes that identify the controller on their own
_NAME_PREFIXES = (
    ("nvme", StorageController.NVME),
    ("vd", StorageController.VIRTIO),
    ("mmcblk", StorageController.MMC),
)

_SUBSYSTEMS = {
    "scsi": StorageController.SCSI,
    "nvme": StorageController.NVME,
    "virtio": StorageController.VIRTIO,
    "mmc": StorageController.MMC,
    "ide": StorageController.IDE,
}

_VIRTIO_DRIVERS = {"virtio_blk"}


class EnumerationError(RuntimeError):
    """The block devices of the host could not be listed."""


def _link_name(path: Path) -> str:
    """Return the basename of the target of a sysfs symlink, or ''."""
    try:
        return path.resolve(strict=True).name
    except OSError:
        return ""


def classify_controller(entry: Path) -> StorageController:
    """
    Classify the storage controller behind a /sys/block/<name> entry.

    The kernel name is checked first (nvme*, vd*, mmcblk*), then the driver
    bound to the backing device, then the bus subsystem it sits on.
    """
    for prefix, controller in _NAME_PREFIXES:
        if entry.name.startswith(prefix):
            return controller

    device = entry / "device"
    if _link_name(device / "driver") in _VIRTIO_DRIVERS:
        return StorageController.VIRTIO

    return _SUBSYSTEMS.get(_link_name(device / "subsystem"), StorageController.UNKNOWN)


def list_block_devices(sys_block: Union[str, Path] = "/sys/block") -> List[BlockDevice]:
    """
    List the physical block devices of the host, sorted by name.

    Entries without a backing device (loop, ram, zram, dm-*, md*) are purely
    kernel-side and are not returned. Raises EnumerationError if the sysfs
    block directory cannot be read.
    """
    sys_block = Path(sys_block)
    try:
        entries = sorted(sys_block.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        raise EnumerationError(
            f"cannot read {sys_block}: {exc.strerror or exc}"
        ) from exc

    devices: List[BlockDevice] = []
    for entry in entries:
        if not (entry / "device").exists():
            continue
        device = BlockDevice(name=entry.name, controller=classify_controller(entry))
        logger.debug("Found block device %s (%s)", device.name, device.controller.value)
        devices.append(device)

    return devices
