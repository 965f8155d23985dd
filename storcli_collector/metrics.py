"""Gauge registry and exposition rendering.

Every metric is declared in ``METRIC_DEFINITIONS`` and registered once when a
``MetricRegistry`` is built; the mapper can only set values on those.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from prometheus_client import CollectorRegistry, Gauge
from prometheus_client.exposition import generate_latest
from prometheus_client.metrics_core import Metric
from prometheus_client.openmetrics.exposition import generate_latest as generate_latest_openmetrics

from storcli_collector.config import FORMAT_OPENMETRICS, FORMAT_PROMETHEUS

NAMESPACE = "megaraid"

CONTROLLER_LABELS = ("controller",)
DRIVE_LABELS = ("controller", "enclosure", "slot")


@dataclass(frozen=True)
class MetricDefinition:
    name: str
    help_text: str
    labels: tuple[str, ...]


METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    "ctrl_info": MetricDefinition(
        "controller_info", "MegaRAID controller info",
        ("controller", "model", "serial", "fwversion"),
    ),
    "ctrl_temperature": MetricDefinition(
        "temperature", "MegaRAID controller temperature", CONTROLLER_LABELS
    ),
    "ctrl_healthy": MetricDefinition("healthy", "MegaRAID controller healthy", CONTROLLER_LABELS),
    "ctrl_degraded": MetricDefinition("degraded", "MegaRAID controller degraded", CONTROLLER_LABELS),
    "ctrl_failed": MetricDefinition("failed", "MegaRAID controller failed", CONTROLLER_LABELS),
    "ctrl_time_difference": MetricDefinition(
        "time_difference",
        "MegaRAID system time minus controller time in seconds",
        CONTROLLER_LABELS,
    ),
    "bbu_healthy": MetricDefinition(
        "battery_backup_healthy", "MegaRAID battery backup healthy", CONTROLLER_LABELS
    ),
    "bbu_temperature": MetricDefinition(
        "bbu_temperature", "MegaRAID battery backup temperature", ("controller", "bbuidx")
    ),
    "cv_temperature": MetricDefinition(
        "cv_temperature", "MegaRAID CacheVault temperature", ("controller", "cvidx")
    ),
    "ctrl_sched_patrol_read": MetricDefinition(
        "scheduled_patrol_read", "MegaRAID scheduled patrol read", CONTROLLER_LABELS
    ),
    "ctrl_ports": MetricDefinition("ports", "MegaRAID ports", CONTROLLER_LABELS),
    "ctrl_physical_drives": MetricDefinition(
        "physical_drives", "MegaRAID physical drives", CONTROLLER_LABELS
    ),
    "ctrl_drive_groups": MetricDefinition("drive_groups", "MegaRAID drive groups", CONTROLLER_LABELS),
    "ctrl_virtual_drives": MetricDefinition(
        "virtual_drives", "MegaRAID virtual drives", CONTROLLER_LABELS
    ),
    "vd_info": MetricDefinition(
        "vd_info", "MegaRAID virtual drive info",
        ("controller", "DG", "VG", "name", "cache", "type", "state"),
    ),
    "pd_shield_counter": MetricDefinition(
        "pd_shield_counter", "MegaRAID physical drive shield counter", DRIVE_LABELS
    ),
    "pd_media_errors": MetricDefinition(
        "pd_media_errors", "MegaRAID physical drive media errors", DRIVE_LABELS
    ),
    "pd_other_errors": MetricDefinition(
        "pd_other_errors", "MegaRAID physical drive other errors", DRIVE_LABELS
    ),
    "pd_predictive_errors": MetricDefinition(
        "pd_predictive_errors", "MegaRAID physical drive predictive errors", DRIVE_LABELS
    ),
    "pd_smart_alerted": MetricDefinition(
        "pd_smart_alerted", "MegaRAID physical drive SMART alerted", DRIVE_LABELS
    ),
    "pd_link_speed": MetricDefinition(
        "pd_link_speed_gbps", "MegaRAID physical drive link speed in Gbps", DRIVE_LABELS
    ),
    "pd_device_speed": MetricDefinition(
        "pd_device_speed_gbps", "MegaRAID physical drive device speed in Gbps", DRIVE_LABELS
    ),
    "pd_commissioned_spare": MetricDefinition(
        "pd_commissioned_spare", "MegaRAID physical drive commissioned spare", DRIVE_LABELS
    ),
    "pd_emergency_spare": MetricDefinition(
        "pd_emergency_spare", "MegaRAID physical drive emergency spare", DRIVE_LABELS
    ),
    "pd_info": MetricDefinition(
        "pd_info", "MegaRAID physical drive info",
        (
            "controller",
            "enclosure",
            "slot",
            "disk_id",
            "interface",
            "media",
            "model",
            "DG",
            "state",
            "firmware",
            "serial",
        ),
    ),
}


class _PopulatedFamilies:
    """Registry view that leaves out metric families with no samples."""

    def __init__(self, registry: CollectorRegistry) -> None:
        self.registry = registry

    def collect(self) -> Iterator[Metric]:
        return (family for family in self.registry.collect() if family.samples)


class MetricRegistry:
    """Per-run set of labeled gauges backed by a private ``CollectorRegistry``."""

    def __init__(self, namespace: str = NAMESPACE) -> None:
        self.namespace = namespace
        self.registry = CollectorRegistry()
        self.gauges: dict[str, Gauge] = {
            key: Gauge(
                definition.name,
                definition.help_text,
                list(definition.labels),
                namespace=namespace,
                registry=self.registry,
            )
            for key, definition in METRIC_DEFINITIONS.items()
        }

    def set(self, key: str, labels: dict[str, str], value: float) -> None:
        # KeyError for an undeclared metric is a programming error.
        gauge = self.gauges[key]
        gauge.labels(**labels).set(value)

    def get(self, key: str, labels: dict[str, str]) -> float | None:
        """Current sample value, or None when the label set was never set."""
        name = f"{self.namespace}_{METRIC_DEFINITIONS[key].name}"
        return self.registry.get_sample_value(name, labels)

    def render(self, fmt: str = FORMAT_PROMETHEUS) -> str:
        """Exposition text for every family that has at least one sample."""
        families = _PopulatedFamilies(self.registry)
        if fmt == FORMAT_OPENMETRICS:
            output = generate_latest_openmetrics(families)
        else:
            output = generate_latest(families)
        return output.decode("utf-8")
