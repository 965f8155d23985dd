"""Resolution of per-drive detailed information.

StorCLI nests each drive's details under keys built from the drive's
location, e.g. ``Drive /c0/e252/s3 - Detailed Information``. Drives without
an enclosure report ``" "`` as their enclosure id and drop the ``/e``
segment.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable

from storcli_collector.errors import DriveDetailError
from storcli_collector.models import PhysicalDriveDetail, PhysicalDriveSummary, decode_drive_details
from storcli_collector.schema import invalid_fields

NO_ENCLOSURE = " "
YES = "Yes"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DriveLocation:
    controller: str
    enclosure: str
    slot: str

    @classmethod
    def from_summary(cls, controller: str, summary: PhysicalDriveSummary) -> "DriveLocation":
        enclosure, sep, slot = summary.eid_slot.partition(":")
        if not sep:
            raise DriveDetailError(
                f"Malformed EID:Slt {summary.eid_slot!r} on controller {controller}",
                context={"controller": controller, "eid_slot": summary.eid_slot},
            )
        if enclosure == NO_ENCLOSURE:
            enclosure = ""
        return cls(controller=controller, enclosure=enclosure, slot=slot)

    @property
    def identifier(self) -> str:
        if not self.enclosure:
            return f"Drive /c{self.controller}/s{self.slot}"
        return f"Drive /c{self.controller}/e{self.enclosure}/s{self.slot}"

    @property
    def detail_key(self) -> str:
        return f"{self.identifier} - Detailed Information"


def parse_float(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return 0.0


def parse_speed(value: str) -> float:
    """Parse a speed like ``"12.0 Gb/s"``; only the part before the first dot counts."""
    return parse_float(value.split(".", 1)[0])


def strip_whitespace(value: str) -> str:
    return "".join(value.split())


class DetailSection:
    """Typed field access to one detail sub-map.

    Fields that are missing or fail their schema type read as the default
    for their kind: ``0.0`` for numbers and ``""`` for text.
    """

    def __init__(self, name: str, definition: str, data: dict[str, Any]) -> None:
        self.name = name
        self.data = data
        self.invalid = invalid_fields(definition, data)

    def _usable(self, key: str) -> bool:
        if key in self.invalid:
            logger.debug("%s: %r has an unexpected type; using default.", self.name, key)
            return False
        if key not in self.data:
            logger.debug("%s: %r is missing; using default.", self.name, key)
            return False
        return True

    def number(self, key: str) -> float:
        return float(self.data[key]) if self._usable(key) else 0.0

    def text(self, key: str) -> str:
        return self.data[key] if self._usable(key) else ""

    def flag(self, key: str) -> int:
        return 1 if self.text(key) == YES else 0


def _sub_section(info: dict[str, Any], key: str, definition: str) -> DetailSection:
    data = info.get(key)
    if not isinstance(data, dict):
        raise DriveDetailError(f"{key} not found", context={"key": key})
    return DetailSection(key, definition, data)


def resolve_drive_detail(
    controller: str, summary: PhysicalDriveSummary, details: dict[str, Any]
) -> PhysicalDriveDetail:
    """Build the detail record for one drive from its controller's detail map."""
    location = DriveLocation.from_summary(controller, summary)
    identifier = location.identifier
    info = details.get(location.detail_key)
    if not isinstance(info, dict):
        raise DriveDetailError(
            f"{location.detail_key} not found", context={"key": location.detail_key}
        )

    state = _sub_section(info, f"{identifier} State", "state")
    attributes = _sub_section(info, f"{identifier} Device attributes", "attributes")
    settings = _sub_section(info, f"{identifier} Policies/Settings", "settings")

    return PhysicalDriveDetail(
        controller=location.controller,
        enclosure=location.enclosure,
        slot=location.slot,
        shield_counter=state.number("Shield Counter"),
        media_errors=state.number("Media Error Count"),
        other_errors=state.number("Other Error Count"),
        predictive_errors=state.number("Predictive Failure Count"),
        smart_alerted=state.flag("S.M.A.R.T alert flagged by drive"),
        link_speed_gbps=parse_speed(attributes.text("Link Speed")),
        device_speed_gbps=parse_speed(attributes.text("Device Speed")),
        firmware=strip_whitespace(attributes.text("Firmware Revision")),
        serial=strip_whitespace(attributes.text("SN")),
        commissioned_spare=settings.flag("Commissioned Spare"),
        emergency_spare=settings.flag("Emergency Spare"),
    )


class DriveDetailCache:
    """Fetches the drive detail payload at most once per run, on first use."""

    def __init__(self, fetch: Callable[[], bytes]) -> None:
        self._fetch = fetch
        self._details: dict[int, dict[str, Any]] | None = None
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def fetched(self) -> bool:
        return self._details is not None

    def detail_for(self, controller_index: int) -> dict[str, Any]:
        if self._details is None:
            self.logger.debug("Fetching drive detail payload.")
            self._details = decode_drive_details(self._fetch())
        try:
            return self._details[controller_index]
        except KeyError:
            raise DriveDetailError(
                f"No drive details for controller {controller_index}",
                context={"controller": controller_index},
            ) from None
