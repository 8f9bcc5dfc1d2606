from typing import Optional
from pydantic import BaseModel, Field
import os
from functools import lru_cache


class Settings(BaseModel):
    # HTTP listener
    host: str = Field(
        default="0.0.0.0",
        description="Interface the API server binds to",
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="TCP port the API server listens on",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level, e.g. DEBUG, INFO, WARNING",
    )

    # Block devices
    device_prefix: str = Field(
        default="/dev/",
        description="Prefix turning a short device name into its device node path",
    )
    sys_block_path: str = Field(
        default="/sys/block",
        description="sysfs directory listing the block devices of the host",
    )

    @classmethod
    def from_env(cls) -> "Settings":
        values = {
            "host": os.getenv("SMART_API_HOST"),
            "port": os.getenv("SMART_API_PORT"),
            "log_level": _upper(os.getenv("SMART_API_LOG_LEVEL")),
            "device_prefix": os.getenv("SMART_DEVICE_PREFIX"),
            "sys_block_path": os.getenv("SMART_SYS_BLOCK"),
        }
        # unset or blank variables fall back to the field defaults
        return cls(**{key: value for key, value in values.items() if value})


def _upper(value: Optional[str]) -> Optional[str]:
    return value.strip().upper() if value else value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
