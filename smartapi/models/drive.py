from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class StorageController(str, Enum):
    """Storage controller a block device is attached to."""

    IDE = "ide"
    MMC = "mmc"
    NVME = "nvme"
    SCSI = "scsi"
    VIRTIO = "virtio"
    UNKNOWN = "unknown"


class BlockDevice(BaseModel):
    """A physical block device as reported by sysfs."""

    name: str = Field(
        ...,
        description="Short kernel device name, e.g. sda or nvme0n1",
    )
    controller: StorageController = Field(
        StorageController.UNKNOWN,
        description="Storage controller classification of the device",
    )


class SmartAttributes(BaseModel):
    """Generic SMART counters shared by ATA, NVMe and SCSI drives."""

    temperature_celsius: float = Field(
        ...,
        description="Current drive temperature in degrees Celsius",
    )
    read_blocks: int = Field(
        ...,
        ge=0,
        description="Cumulative number of 512-byte blocks read",
    )
    written_blocks: int = Field(
        ...,
        ge=0,
        description="Cumulative number of 512-byte blocks written",
    )
    power_on_hours: int = Field(
        ...,
        ge=0,
        description="Number of hours the drive has been powered on",
    )
    power_cycles: int = Field(
        ...,
        ge=0,
        description="Number of power on/off cycles",
    )


class DriveResult(BaseModel):
    """
    SMART report for a single drive.

    Exactly one of data and error is set: data when the drive could be
    queried, error with the failure message otherwise.
    """

    device: str = Field(
        ...,
        description="Short device name, e.g. sda",
    )
    data: Optional[SmartAttributes] = Field(
        None,
        description="Generic SMART attributes, present on success only.",
    )
    error: Optional[str] = Field(
        None,
        description="Error message if opening or reading the drive failed.",
    )

    @model_validator(mode="after")
    def check_data_or_error(self) -> "DriveResult":
        if (self.data is None) == (self.error is None):
            raise ValueError("exactly one of 'data' or 'error' must be set")
        return self
