"""
Sensor-log parser: read recorded GPS and accelerometer events from a JSON-Lines file.

Each line is one event:
    {"kind": "gps", "ts": 1700000000000, "lat": 48.85, "lon": 2.35, "accuracy": 8.0}
    {"kind": "accel", "ts": 1700000000050, "magnitude": 1.21}
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

from pydantic import ValidationError

from autoctx.engine.types import AccelSample, GpsFix
from autoctx.utils.log import get_logger
from autoctx.utils.validate import AccelRecord, GpsRecord

logger = get_logger(__name__)

SensorEvent = Union[GpsFix, AccelSample]

_RECORD_TYPES = {"gps": GpsRecord, "accel": AccelRecord}


@dataclass
class ParseStats:
    """
    Line counters for one parsed log.
    """
    lines: int = 0
    gps: int = 0
    accel: int = 0
    skipped: int = 0


def parse_line(line: str) -> SensorEvent:
    """
    Parse a single JSON line into a sensor event.

    Raises
    ------
    ValueError
        If the line is not JSON, has an unknown `kind`, or fails validation.
    """
    data = json.loads(line)
    if not isinstance(data, dict):
        raise ValueError("event must be a JSON object")
    record_type = _RECORD_TYPES.get(data.get("kind"))
    if record_type is None:
        raise ValueError(f"unknown event kind: {data.get('kind')!r}")
    record = record_type.model_validate(data)
    if isinstance(record, GpsRecord):
        return record.to_fix()
    return record.to_sample()


def parse_sensor_log(file_path: str | Path, stats: ParseStats | None = None) -> Iterator[SensorEvent]:
    """
    Yield GpsFix / AccelSample events from a JSON-Lines sensor log, in file order.

    Blank lines and lines starting with '#' are ignored. Invalid lines are
    skipped with a warning and counted in `stats`.

    Parameters
    ----------
    file_path
        Path to the `.jsonl` log.
    stats
        Optional counters filled in while iterating.
    """
    stats = stats if stats is not None else ParseStats()
    with open(file_path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            stats.lines += 1
            try:
                event = parse_line(line)
            except (ValueError, ValidationError) as e:
                stats.skipped += 1
                logger.warning("Skipping %s:%d: %s", file_path, lineno, e)
                continue
            if isinstance(event, GpsFix):
                stats.gps += 1
            else:
                stats.accel += 1
            yield event
