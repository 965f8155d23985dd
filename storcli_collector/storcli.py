from __future__ import annotations

import logging
import os
import shutil
import subprocess

from storcli_collector.errors import StorcliCommandError, StorcliNotFoundError
from storcli_collector.logging_utils import TRACE_LEVEL

CONTROLLERS_COMMAND = ("/cALL", "show", "all", "J")
DRIVES_COMMAND = ("/cALL/eALL/sALL", "show", "all", "J")

# Names searched on PATH when the configured binary is missing.
FALLBACK_NAMES = ("storcli", "storcli64")

logger = logging.getLogger(__name__)


def resolve_storcli_path(configured: str, dont_failover: bool = False) -> str:
    """Return the StorCLI binary to run.

    The configured path wins when it exists. Otherwise PATH is searched,
    unless ``dont_failover`` is set.
    """
    if os.path.isfile(configured):
        return configured
    if dont_failover:
        raise StorcliNotFoundError(
            f"StorCLI not found at {configured}", context={"path": configured}
        )
    logger.debug("StorCLI not found at %s; searching PATH.", configured)
    for name in FALLBACK_NAMES:
        found = shutil.which(name)
        if found:
            logger.debug("Using StorCLI from PATH: %s", found)
            return found
    raise StorcliNotFoundError(
        "storcli not found.", context={"path": configured, "searched": list(FALLBACK_NAMES)}
    )


class StorcliClient:
    """Runs the StorCLI JSON queries and returns their raw stdout."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.logger = logging.getLogger(self.__class__.__name__)

    def controllers(self) -> bytes:
        return self._run_command([self.path, *CONTROLLERS_COMMAND])

    def drives(self) -> bytes:
        return self._run_command([self.path, *DRIVES_COMMAND])

    def _run_command(self, command: list[str]) -> bytes:
        self.logger.debug("Running %s", " ".join(command))
        try:
            result = subprocess.run(command, check=False, capture_output=True)
        except (FileNotFoundError, PermissionError) as exc:
            raise StorcliNotFoundError(
                f"Cannot execute {command[0]}: {exc}", context={"path": command[0]}
            ) from exc
        stderr = result.stderr.decode("utf-8", errors="replace").strip() if result.stderr else ""
        if stderr:
            self.logger.log(TRACE_LEVEL, "stderr: %s", stderr)
        if result.returncode != 0:
            raise StorcliCommandError(
                f"Command failed ({result.returncode}): {' '.join(command)}",
                returncode=result.returncode,
                stderr=stderr,
                context={"command": command},
            )
        if result.stdout:
            self.logger.log(
                TRACE_LEVEL, "stdout: %s", result.stdout.decode("utf-8", errors="replace").strip()
            )
        return result.stdout
