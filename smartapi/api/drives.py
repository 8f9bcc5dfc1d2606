from typing import List

from fastapi import APIRouter, HTTPException

from smartapi.models.drive import DriveResult
from smartapi.services import drive_monitor
from smartapi.services.block_devices import EnumerationError

router = APIRouter()


def _enumeration_failed(exc: EnumerationError) -> HTTPException:
    return HTTPException(
        status_code=500,
        detail=f"Failed to enumerate block devices: {exc}",
    )


@router.get(
    "",
    response_model=List[DriveResult],
    response_model_exclude_none=True,
    summary="SMART attributes of all drives",
)
def list_drives() -> List[DriveResult]:
    """
    Return generic SMART attributes for every non-virtual drive of the host.

    A drive that cannot be opened or read is reported with an error message
    instead of data; the response status stays 200. If the block devices
    cannot be enumerated at all, a HTTP 500 is returned.
    """
    try:
        return drive_monitor.get_all_drives()
    except EnumerationError as exc:
        raise _enumeration_failed(exc) from exc


@router.get(
    "/{name:path}",
    response_model=DriveResult,
    response_model_exclude_none=True,
    summary="SMART attributes of a single drive",
)
def get_drive(name: str) -> DriveResult:
    """
    Return generic SMART attributes for one drive, e.g. /drives/sda.

    Unknown and virtual drives yield a HTTP 404.
    """
    try:
        return drive_monitor.get_drive(name)
    except EnumerationError as exc:
        raise _enumeration_failed(exc) from exc
    except drive_monitor.DriveNotFoundError as exc:
        raise HTTPException(
            status_code=404,
            detail="Unknown or virtual drive",
        ) from exc
