from __future__ import annotations

import logging
import os
import sys

from storcli_collector.errors import OutputError

FILE_MODE = 0o644

logger = logging.getLogger(__name__)


def write_output(text: str, outfile: str | None = None) -> None:
    """Write rendered metrics to ``outfile`` (truncated) or to stdout."""
    if not outfile:
        sys.stdout.write(text)
        sys.stdout.flush()
        return
    try:
        fd = os.open(outfile, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.chmod(outfile, FILE_MODE)
    except OSError as exc:
        raise OutputError(f"Failed to write {outfile}: {exc}", context={"path": outfile}) from exc
    logger.debug("Wrote %s bytes to %s.", len(text), outfile)
