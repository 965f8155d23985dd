"""StorCLI MegaRAID metrics collector for the node_exporter textfile collector."""

__version__ = "0.1.0"

from storcli_collector.collector import StorcliCollector
from storcli_collector.config import AppConfig, load_config
from storcli_collector.metrics import MetricRegistry
from storcli_collector.storcli import StorcliClient

__all__ = [
    "AppConfig",
    "MetricRegistry",
    "StorcliClient",
    "StorcliCollector",
    "__version__",
    "load_config",
]
