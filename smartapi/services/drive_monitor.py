import logging
from typing import Iterable, List

from smartapi.config import get_settings
from smartapi.models.drive import BlockDevice, DriveResult, StorageController
from smartapi.services.block_devices import list_block_devices
from smartapi.services.smart_reader import SmartError, open_device

logger = logging.getLogger(__name__)


class DriveNotFoundError(LookupError):
    """The requested drive is unknown or not eligible for SMART queries."""


def eligible_devices(devices: Iterable[BlockDevice]) -> List[BlockDevice]:
    """
    Drop virtio devices; they have no real SMART telemetry.

    Every other device is kept once, in the given order.
    """
    return [d for d in devices if d.controller is not StorageController.VIRTIO]


def _enumerate() -> List[BlockDevice]:
    settings = get_settings()
    return eligible_devices(list_block_devices(settings.sys_block_path))


def query_drive(name: str) -> DriveResult:
    """
    Open a single drive, read its generic SMART attributes and release it.

    Open and read failures are returned as DriveResult.error instead of
    being raised, so one broken drive never hides the others.
    """
    path = get_settings().device_prefix + name
    try:
        with open_device(path) as device:
            attributes = device.read_generic_attributes()
    except SmartError as exc:
        logger.warning("SMART query failed for %s: %s", name, exc)
        return DriveResult(device=name, error=str(exc))

    return DriveResult(device=name, data=attributes)


def get_all_drives() -> List[DriveResult]:
    """
    Collect SMART results for every eligible drive, in enumeration order.

    EnumerationError is propagated; per-drive failures are not.
    """
    return [query_drive(device.name) for device in _enumerate()]


def get_drive(name: str) -> DriveResult:
    """
    Collect the SMART result for one drive.

    Raises DriveNotFoundError if name is empty, unknown or virtual; in that
    case the device is never opened.
    """
    known = {device.name for device in _enumerate()}
    if not name or name not in known:
        raise DriveNotFoundError(name)
    return query_drive(name)
