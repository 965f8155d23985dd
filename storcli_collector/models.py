"""Typed model of the StorCLI controller summary and the drive detail decoder.

The controller payload (``/cALL show all J``) decodes into frozen
dataclasses. The drive detail payload (``/cALL/eALL/sALL show all J``) keys
its entries by strings built from each drive's location, so it is kept as
plain dictionaries, indexed by controller.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Any, Iterator

from storcli_collector.config import STATUS_CHECK_ALL, STATUS_CHECK_FIRST
from storcli_collector.errors import ControllerStatusError, DecodeError
from storcli_collector.normalize import SENTINEL
from storcli_collector.schema import CONTROLLERS_SCHEMA, validate_payload

SUCCESS = "Success"
NO_GROUP_LABEL = "-1"

logger = logging.getLogger(__name__)


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _items(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = data.get(key)
    return value if isinstance(value, list) else []


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return value if value is not None else ""


def _int(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    return int(value) if value is not None else 0


def _controller_index(basics: dict[str, Any], command_status: dict[str, Any], position: int) -> int:
    """``Basics.Controller``, else ``Command Status.Controller``, else the list position.

    A controller whose command failed carries no ``Response Data``, so only
    its command status can say which controller it is.
    """
    for value in (basics.get("Controller"), command_status.get("Controller")):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return position


def split_drive_group(dg_vd: str) -> tuple[str, str]:
    """Split a ``DG/VD`` composite like ``"5/12"`` into its two labels."""
    if not dg_vd:
        return NO_GROUP_LABEL, NO_GROUP_LABEL
    parts = dg_vd.split("/", 1)
    if len(parts) == 1:
        return parts[0], NO_GROUP_LABEL
    return parts[0], parts[1]


@dataclass(frozen=True)
class VirtualDriveSummary:
    drive_group: str
    volume_group: str
    name: str
    cache: str
    raid_type: str
    state: str

    @classmethod
    def from_payload(cls, item: dict[str, Any]) -> "VirtualDriveSummary":
        drive_group, volume_group = split_drive_group(_text(item, "DG/VD"))
        return cls(
            drive_group=drive_group,
            volume_group=volume_group,
            name=_text(item, "Name"),
            cache=_text(item, "Cache"),
            raid_type=_text(item, "TYPE"),
            state=_text(item, "State"),
        )


@dataclass(frozen=True)
class PhysicalDriveSummary:
    eid_slot: str
    disk_id: int
    interface: str
    media: str
    model: str
    drive_group: int
    state: str

    @classmethod
    def from_payload(cls, item: dict[str, Any]) -> "PhysicalDriveSummary":
        return cls(
            eid_slot=_text(item, "EID:Slt"),
            disk_id=_int(item, "DID"),
            interface=_text(item, "Intf"),
            media=_text(item, "Med"),
            model=_text(item, "Model"),
            drive_group=_int(item, "DG"),
            state=_text(item, "State"),
        )

    @property
    def drive_group_label(self) -> str:
        if self.drive_group == SENTINEL:
            return "-"
        return str(self.drive_group)


@dataclass(frozen=True)
class PhysicalDriveDetail:
    controller: str
    enclosure: str
    slot: str
    shield_counter: float
    media_errors: float
    other_errors: float
    predictive_errors: float
    smart_alerted: int
    link_speed_gbps: float
    device_speed_gbps: float
    firmware: str
    serial: str
    commissioned_spare: int
    emergency_spare: int


@dataclass(frozen=True)
class Controller:
    index: int
    command_status: str
    model: str
    serial: str
    controller_time: str
    system_time: str
    driver_name: str
    firmware_version: str
    status: str
    bbu_status: int
    port_count: int
    # Both spellings occur in the wild; at most one is populated.
    roc_temp_celcius: int
    roc_temp_celsius: int
    patrol_read_reoccurrence: str
    drive_group_count: int
    virtual_drive_count: int
    physical_drive_count: int
    virtual_drives: tuple[VirtualDriveSummary, ...]
    physical_drives: tuple[PhysicalDriveSummary, ...]
    cachevault_temps: tuple[str, ...]
    bbu_temps: tuple[str, ...]

    @classmethod
    def from_payload(cls, item: dict[str, Any], position: int = 0) -> "Controller":
        response = _section(item, "Response Data")
        basics = _section(response, "Basics")
        command_status = _section(item, "Command Status")
        version = _section(response, "Version")
        status = _section(response, "Status")
        hwcfg = _section(response, "HwCfg")
        tasks = _section(response, "Scheduled Tasks")
        return cls(
            index=_controller_index(basics, command_status, position),
            command_status=_text(command_status, "Status"),
            model=_text(basics, "Model"),
            serial=_text(basics, "Serial Number"),
            controller_time=_text(basics, "Current Controller Date/Time"),
            system_time=_text(basics, "Current System Date/time"),
            driver_name=_text(version, "Driver Name"),
            firmware_version=_text(version, "Firmware Version"),
            status=_text(status, "Controller Status"),
            bbu_status=_int(status, "BBU Status"),
            port_count=_int(hwcfg, "Backend Port Count"),
            roc_temp_celcius=_int(hwcfg, "ROC temperature(Degree Celcius)"),
            roc_temp_celsius=_int(hwcfg, "ROC temperature(Degree Celsius)"),
            patrol_read_reoccurrence=_text(tasks, "Patrol Read Reoccurrence"),
            drive_group_count=_int(response, "Drive Groups"),
            virtual_drive_count=_int(response, "Virtual Drives"),
            physical_drive_count=_int(response, "Physical Drives"),
            virtual_drives=tuple(
                VirtualDriveSummary.from_payload(vd) for vd in _items(response, "VD LIST")
            ),
            physical_drives=tuple(
                PhysicalDriveSummary.from_payload(pd) for pd in _items(response, "PD LIST")
            ),
            cachevault_temps=tuple(_text(cv, "Temp") for cv in _items(response, "Cachevault_Info")),
            bbu_temps=tuple(_text(bbu, "Temp") for bbu in _items(response, "BBU_Info")),
        )


@dataclass(frozen=True)
class ControllerSet:
    controllers: tuple[Controller, ...]

    def __iter__(self) -> Iterator[Controller]:
        return iter(self.controllers)

    def __len__(self) -> int:
        return len(self.controllers)

    def __getitem__(self, position: int) -> Controller:
        return self.controllers[position]


def _load_json(raw: bytes, what: str) -> Any:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeError(f"Failed to parse {what} JSON: {exc}") from exc


def check_command_status(controllers: ControllerSet, policy: str = STATUS_CHECK_FIRST) -> None:
    """Raise unless the controllers selected by ``policy`` report success.

    StorCLI's own exporter only ever looked at the first controller and
    returned the others regardless of their status; that stays the default.
    """
    if policy == STATUS_CHECK_ALL:
        checked = list(controllers)
    else:
        checked = list(controllers)[:1]
    for position, controller in enumerate(checked):
        if controller.command_status != SUCCESS:
            raise ControllerStatusError(
                f"Controller at position {position} reported command status "
                f"{controller.command_status!r}",
                context={"position": position, "status": controller.command_status},
            )


def decode_controllers(raw: bytes, status_check: str = STATUS_CHECK_FIRST) -> ControllerSet:
    """Decode normalized controller JSON into a ``ControllerSet``."""
    payload = _load_json(raw, "controller")
    if not isinstance(payload, dict) or not payload.get("Controllers"):
        raise DecodeError("Could not find controllers in output.")
    errors = validate_payload(payload, CONTROLLERS_SCHEMA)
    if errors:
        logger.debug("Controller schema errors: %s", errors)
        raise DecodeError(
            f"Controller JSON does not match the expected structure: {errors[0]}",
            context={"errors": errors},
        )
    controllers = ControllerSet(
        tuple(
            Controller.from_payload(item, position)
            for position, item in enumerate(payload["Controllers"])
        )
    )
    check_command_status(controllers, status_check)
    logger.debug("Decoded %s controller(s).", len(controllers))
    return controllers


def decode_drive_details(raw: bytes) -> dict[int, dict[str, Any]]:
    """Index each controller's ``Response Data`` from the drive detail payload.

    Entries are keyed by ``Command Status.Controller`` when StorCLI reports
    it, otherwise by their position in the list.
    """
    payload = _load_json(raw, "drive detail")
    if not isinstance(payload, dict):
        raise DecodeError("Drive detail JSON is not an object.")
    details: dict[int, dict[str, Any]] = {}
    for position, item in enumerate(_items(payload, "Controllers")):
        if not isinstance(item, dict):
            continue
        index = _section(item, "Command Status").get("Controller")
        if not isinstance(index, int) or isinstance(index, bool):
            index = position
        details[index] = _section(item, "Response Data")
    return details
