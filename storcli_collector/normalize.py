"""Textual fixes applied to StorCLI controller JSON before it is decoded.

StorCLI output is not schema-stable across firmware and driver versions.
Some fields change type depending on the hardware present, so the known bad
literals are rewritten into parseable sentinels here and the decoder can
stay strict.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

# Out-of-domain placeholder for integer fields StorCLI reports as text.
SENTINEL = 9999

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Quirk:
    description: str
    literal: bytes
    replacement: bytes
    # -1 replaces every occurrence
    count: int


QUIRKS: tuple[Quirk, ...] = (
    Quirk(
        description="BBU Status is the string NA when no BBU is present",
        literal=b'"BBU Status" : "NA"',
        replacement=b'"BBU Status" : %d' % SENTINEL,
        count=1,
    ),
    Quirk(
        description="DG is a dash when the drive is not in any drive group",
        literal=b'"DG" : "-"',
        replacement=b'"DG" : %d' % SENTINEL,
        count=-1,
    ),
)


def normalize_controller_json(raw: bytes) -> bytes:
    for quirk in QUIRKS:
        found = raw.count(quirk.literal)
        if not found:
            continue
        applied = found if quirk.count < 0 else min(found, quirk.count)
        logger.debug("Normalizing %s occurrence(s): %s", applied, quirk.description)
        raw = raw.replace(quirk.literal, quirk.replacement, quirk.count)
    return raw
