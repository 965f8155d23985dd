from __future__ import annotations

import logging

from storcli_collector.config import STATUS_CHECK_FIRST
from storcli_collector.drives import DriveDetailCache
from storcli_collector.mapper import MetricMapper
from storcli_collector.metrics import MetricRegistry
from storcli_collector.models import ControllerSet, decode_controllers
from storcli_collector.normalize import normalize_controller_json
from storcli_collector.storcli import StorcliClient


class StorcliCollector:
    """One collection run: query StorCLI, decode, and fill a fresh registry."""

    def __init__(self, client: StorcliClient, status_check: str = STATUS_CHECK_FIRST) -> None:
        self.client = client
        self.status_check = status_check
        self.logger = logging.getLogger(self.__class__.__name__)

    def load_controllers(self) -> ControllerSet:
        raw = self.client.controllers()
        return decode_controllers(normalize_controller_json(raw), self.status_check)

    def collect(self) -> MetricRegistry:
        self.logger.debug("Collecting StorCLI metrics.")
        controllers = self.load_controllers()
        registry = MetricRegistry()
        drive_details = DriveDetailCache(self.client.drives)
        MetricMapper(registry, drive_details).map_controllers(controllers)
        self.logger.debug(
            "Completed collection for %s controller(s); drive details %s.",
            len(controllers),
            "fetched" if drive_details.fetched else "not needed",
        )
        return registry
