"""Driver name / license parsing for the ap kara command.

The command looks like:

    ap kara
    RAM KUMAR - 4521 <anything else>
    <more lines>

Line 2 carries the driver name and the last 4 digits of the license. Whatever
follows the license goes back through the field extractor.
"""
from dataclasses import dataclass, field
from typing import Optional

from apkara import patterns
from apkara.extractor import extract_whole_message, split_lines
from apkara.record import StructuredRecord

NAME_SEPARATOR = "-"


@dataclass
class DriverInfo:
    driver_name: Optional[str] = None
    driver_license: Optional[str] = None
    additional: StructuredRecord = field(default_factory=StructuredRecord)

    @property
    def found(self) -> bool:
        return bool(self.driver_name or self.driver_license)


def parse_driver_info(text: str) -> DriverInfo:
    """Recover driver name, license and trailing fields from a command."""
    info = DriverInfo()
    lines = split_lines(text)

    # Line 1 is the command itself
    if len(lines) < 2:
        return info

    driver_line = lines[1]
    license_match = patterns.DRIVER_LICENSE_RE.search(driver_line)
    if not license_match:
        return info

    info.driver_license = license_match.group(0)

    name = driver_line[:license_match.start()].strip()
    if name.endswith(NAME_SEPARATOR):
        name = name[:-len(NAME_SEPARATOR)].strip()
    info.driver_name = name or None

    trailing = driver_line[license_match.end():].strip()
    if len(lines) > 2:
        trailing += "\n" + "\n".join(lines[2:])

    if trailing.strip():
        info.additional = extract_whole_message(trailing)

    return info


def after_driver_text(text: str) -> str:
    """Lines after the driver line, used for the reply's product line."""
    lines = split_lines(text)
    if len(lines) <= 2:
        return ""
    return "\n".join(lines[2:])
