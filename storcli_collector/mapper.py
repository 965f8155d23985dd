from __future__ import annotations

from datetime import datetime
import logging

from storcli_collector.drives import DriveDetailCache, parse_float, resolve_drive_detail, strip_whitespace
from storcli_collector.errors import DriveDetailError
from storcli_collector.metrics import MetricRegistry
from storcli_collector.models import Controller, ControllerSet, PhysicalDriveDetail, PhysicalDriveSummary

MEGARAID_DRIVER = "megaraid_sas"

HEALTHY_BBU_CODES = frozenset({0, 8, 4096})

# Controller Status value -> gauge set to 1
HEALTH_GAUGES = {
    "Optimal": "ctrl_healthy",
    "Degraded": "ctrl_degraded",
    "Failed": "ctrl_failed",
}

PATROL_READ_HOURS = "hrs"
TIMESTAMP_FORMAT = "%m/%d/%Y, %H:%M:%S"


def controller_temperature(controller: Controller) -> float:
    """ROC temperature; the "Celcius" spelling takes precedence when both are set."""
    if controller.roc_temp_celcius > 0:
        return float(controller.roc_temp_celcius)
    if controller.roc_temp_celsius > 0:
        return float(controller.roc_temp_celsius)
    return 0.0


def bbu_healthy(bbu_status: int) -> int:
    return 1 if bbu_status in HEALTHY_BBU_CODES else 0


def parse_temperature(value: str) -> float:
    return parse_float(value.replace("C", "", 1))


def time_difference(controller_time: str, system_time: str) -> int | None:
    """System time minus controller time in whole seconds.

    Returns None when either timestamp is empty or neither parses. When only
    one side parses, the other counts as ``datetime.min``.
    """
    if not controller_time or not system_time:
        return None
    parsed = []
    for value in (controller_time, system_time):
        try:
            parsed.append(datetime.strptime(value, TIMESTAMP_FORMAT))
        except ValueError:
            parsed.append(None)
    if parsed[0] is None and parsed[1] is None:
        return None
    controller_dt, system_dt = (value or datetime.min for value in parsed)
    return int((system_dt - controller_dt).total_seconds())


class MetricMapper:
    """Projects decoded controllers onto the gauge registry."""

    def __init__(self, registry: MetricRegistry, drive_details: DriveDetailCache) -> None:
        self.registry = registry
        self.drive_details = drive_details
        self.logger = logging.getLogger(self.__class__.__name__)

    def map_controllers(self, controllers: ControllerSet) -> None:
        for controller in controllers:
            self.map_common(controller)
            if controller.driver_name == MEGARAID_DRIVER:
                self.map_megaraid(controller)
            else:
                self.logger.debug(
                    "Controller %s uses driver %r; exporting common metrics only.",
                    controller.index,
                    controller.driver_name,
                )

    def map_common(self, controller: Controller) -> None:
        index = str(controller.index)
        self.registry.set(
            "ctrl_info",
            {
                "controller": index,
                "model": controller.model,
                "serial": controller.serial,
                "fwversion": controller.firmware_version,
            },
            1,
        )
        self.registry.set("ctrl_temperature", {"controller": index}, controller_temperature(controller))

    def map_megaraid(self, controller: Controller) -> None:
        index = str(controller.index)
        labels = {"controller": index}

        self.registry.set("bbu_healthy", labels, bbu_healthy(controller.bbu_status))

        for key in HEALTH_GAUGES.values():
            self.registry.set(key, labels, 0)
        health_key = HEALTH_GAUGES.get(controller.status)
        if health_key is not None:
            self.registry.set(health_key, labels, 1)
        else:
            self.logger.debug("Controller %s has unrecognized status %r.", index, controller.status)

        self.registry.set("ctrl_ports", labels, controller.port_count)
        self.registry.set(
            "ctrl_sched_patrol_read",
            labels,
            1 if PATROL_READ_HOURS in controller.patrol_read_reoccurrence else 0,
        )

        for cvidx, temp in enumerate(controller.cachevault_temps):
            self.registry.set(
                "cv_temperature", {"controller": index, "cvidx": str(cvidx)}, parse_temperature(temp)
            )
        for bbuidx, temp in enumerate(controller.bbu_temps):
            self.registry.set(
                "bbu_temperature", {"controller": index, "bbuidx": str(bbuidx)}, parse_temperature(temp)
            )

        skew = time_difference(controller.controller_time, controller.system_time)
        if skew is not None:
            self.registry.set("ctrl_time_difference", labels, skew)

        if controller.drive_group_count > 0:
            self.map_virtual_drives(controller)

        self.registry.set("ctrl_physical_drives", labels, controller.physical_drive_count)
        if controller.physical_drive_count > 0:
            self.map_physical_drives(controller)

    def map_virtual_drives(self, controller: Controller) -> None:
        index = str(controller.index)
        self.registry.set("ctrl_drive_groups", {"controller": index}, controller.drive_group_count)
        self.registry.set("ctrl_virtual_drives", {"controller": index}, controller.virtual_drive_count)
        for vd in controller.virtual_drives:
            self.registry.set(
                "vd_info",
                {
                    "controller": index,
                    "DG": vd.drive_group,
                    "VG": vd.volume_group,
                    "name": vd.name,
                    "cache": vd.cache,
                    "type": vd.raid_type,
                    "state": vd.state,
                },
                1,
            )

    def map_physical_drives(self, controller: Controller) -> None:
        index = str(controller.index)
        try:
            details = self.drive_details.detail_for(controller.index)
        except DriveDetailError as exc:
            self.logger.warning("Skipping drive details for controller %s: %s", index, exc)
            return
        for summary in controller.physical_drives:
            try:
                detail = resolve_drive_detail(index, summary, details)
            except DriveDetailError as exc:
                self.logger.warning("Skipping drive %r: %s", summary.eid_slot, exc)
                continue
            self.map_physical_drive(summary, detail)

    def map_physical_drive(self, summary: PhysicalDriveSummary, detail: PhysicalDriveDetail) -> None:
        labels = {
            "controller": detail.controller,
            "enclosure": detail.enclosure,
            "slot": detail.slot,
        }
        self.registry.set("pd_shield_counter", labels, detail.shield_counter)
        self.registry.set("pd_media_errors", labels, detail.media_errors)
        self.registry.set("pd_other_errors", labels, detail.other_errors)
        self.registry.set("pd_predictive_errors", labels, detail.predictive_errors)
        self.registry.set("pd_smart_alerted", labels, detail.smart_alerted)
        self.registry.set("pd_link_speed", labels, detail.link_speed_gbps)
        self.registry.set("pd_device_speed", labels, detail.device_speed_gbps)
        self.registry.set("pd_commissioned_spare", labels, detail.commissioned_spare)
        self.registry.set("pd_emergency_spare", labels, detail.emergency_spare)
        self.registry.set(
            "pd_info",
            {
                **labels,
                "disk_id": str(summary.disk_id),
                "interface": summary.interface,
                "media": summary.media,
                "model": strip_whitespace(summary.model),
                "DG": summary.drive_group_label,
                "state": summary.state,
                "firmware": detail.firmware,
                "serial": detail.serial,
            },
            1,
        )
