import logging
import os
import re
import subprocess
from typing import Optional

from pySMART import Device

from smartapi.models.drive import SmartAttributes

logger = logging.getLogger(__name__)

# ATA SMART attribute ids making up the generic counter set
_ATA_POWER_ON_HOURS = 9
_ATA_POWER_CYCLES = 12
_ATA_TOTAL_LBAS_WRITTEN = 241
_ATA_TOTAL_LBAS_READ = 242

# One NVMe "data unit" is 1000 units of 512 bytes
_NVME_BLOCKS_PER_DATA_UNIT = 1000

# Leading integer of a raw value such as "35 (Min/Max 20/45)" or "1234h+05m"
_RAW_INT_PATTERN = re.compile(r"^\s*(\d+)")


class SmartError(RuntimeError):
    """A device could not be opened or its SMART data could not be read."""


def _raw_int(device: Device, attr_id: int) -> int:
    """Return the raw value of an ATA attribute as int, 0 if not reported."""
    attributes = device.attributes or []
    if attr_id >= len(attributes) or attributes[attr_id] is None:
        return 0
    match = _RAW_INT_PATTERN.match(str(attributes[attr_id].raw))
    return int(match.group(1)) if match else 0


def _counter(value: Optional[int]) -> int:
    return int(value) if value is not None else 0


def _is_ata(interface: str) -> bool:
    """ATA and SAT interfaces, including SAT behind a MegaRAID (sat+megaraid,N)."""
    return interface in ("ata", "sat", "usbsat") or interface.startswith("sat+megaraid")


class SmartDevice:
    """
    Handle on an opened device node.

    The open descriptor is only an access check: permission and presence
    problems surface at open time, but it is never used for the read.
    pySMART runs smartctl, which opens the device again by path. Use as a
    context manager, or call close() explicitly; closing twice is harmless.
    """

    def __init__(self, path: str, fd: int):
        self.path = path
        self._fd: Optional[int] = fd

    @classmethod
    def open(cls, path: str) -> "SmartDevice":
        try:
            fd = os.open(path, os.O_RDONLY | os.O_NONBLOCK)
        except OSError as exc:
            raise SmartError(f"open {path}: {exc.strerror or exc}") from exc
        return cls(path, fd)

    @property
    def closed(self) -> bool:
        return self._fd is None

    def close(self) -> None:
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        os.close(fd)

    def __enter__(self) -> "SmartDevice":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _query(self) -> Device:
        try:
            device = Device(self.path)
        except (OSError, subprocess.SubprocessError) as exc:
            raise SmartError(f"smartctl failed for {self.path}: {exc}") from exc
        except Exception as exc:
            # pySMART's output parser raises IndexError, KeyError and the like
            # on smartctl output it does not understand
            logger.exception("pySMART could not parse smartctl output for %s", self.path)
            raise SmartError(
                f"unreadable smartctl output for {self.path}: {type(exc).__name__}: {exc}"
            ) from exc

        if device.interface is None:
            raise SmartError(f"{self.path}: device type not supported by smartctl")
        if not device.smart_capable:
            raise SmartError(f"{self.path}: SMART is not supported by the device")
        return device

    def read_generic_attributes(self) -> SmartAttributes:
        """
        Read temperature, blocks read/written, power-on hours and power cycles.

        Raises SmartError if the handle is closed, smartctl cannot identify
        the device, the device lacks SMART support or reports no temperature.
        """
        if self.closed:
            raise SmartError(f"{self.path}: device is closed")

        device = self._query()
        if device.temperature is None:
            raise SmartError(f"{self.path}: temperature not reported")

        if device.interface == "nvme":
            health = device.if_attributes
            return SmartAttributes(
                temperature_celsius=device.temperature,
                read_blocks=_counter(getattr(health, "dataUnitsRead", None))
                * _NVME_BLOCKS_PER_DATA_UNIT,
                written_blocks=_counter(getattr(health, "dataUnitsWritten", None))
                * _NVME_BLOCKS_PER_DATA_UNIT,
                power_on_hours=_counter(getattr(health, "powerOnHours", None)),
                power_cycles=_counter(getattr(health, "powerCycles", None)),
            )

        if _is_ata(device.interface):
            return SmartAttributes(
                temperature_celsius=device.temperature,
                read_blocks=_raw_int(device, _ATA_TOTAL_LBAS_READ),
                written_blocks=_raw_int(device, _ATA_TOTAL_LBAS_WRITTEN),
                power_on_hours=_raw_int(device, _ATA_POWER_ON_HOURS),
                power_cycles=_raw_int(device, _ATA_POWER_CYCLES),
            )

        # SCSI/SAS: counters come from the log pages pySMART collects as diagnostics
        diagnostics = getattr(device, "diagnostics", None)
        if diagnostics is None:
            logger.debug("No generic counters for %s (interface %s)", self.path, device.interface)
        return SmartAttributes(
            temperature_celsius=device.temperature,
            read_blocks=_counter(getattr(diagnostics, "_Reads_count", None)),
            written_blocks=_counter(getattr(diagnostics, "_Writes_count", None)),
            power_on_hours=_counter(getattr(diagnostics, "Power_On_Hours", None)),
            power_cycles=_counter(getattr(diagnostics, "Start_Stop_Cycles", None)),
        )


def open_device(path: str) -> SmartDevice:
    """Open the device node at path, raising SmartError on failure."""
    return SmartDevice.open(path)
