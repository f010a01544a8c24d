"""Field extraction from free-form chat text.

Two strategies read the same text:

- whole-message: every rule runs once against the full text
- per-line: the same rules run line by line, and the first line that yields
  a field keeps it

`extract()` merges them, preferring the whole-message result per field.
"""
from typing import Iterable, List, Optional, Tuple

from apkara import patterns
from apkara.record import EXTRACTED_FIELDS, StructuredRecord


def split_lines(text: str) -> List[str]:
    """Trimmed, non-empty lines."""
    return [line.strip() for line in (text or "").split("\n") if line.strip()]


def classify_ten_digit_numbers(tokens: Iterable[str]) -> Tuple[Optional[str], Optional[str]]:
    """Bucket 10-digit tokens by leading digit.

    Returns (phone_num, so_no). The first token per bucket wins.
    """
    phone_num = None
    so_no = None
    for token in tokens:
        leading = token[0]
        if leading in patterns.PHONE_LEADING_DIGITS:
            if phone_num is None:
                phone_num = token
        elif leading in patterns.SO_LEADING_DIGITS:
            if so_no is None:
                so_no = token
    return phone_num, so_no


def destination_from_line(line: str) -> Optional[str]:
    """Text before the weight expression, without a leading vehicle number."""
    destination = patterns.first_match("destination", line)
    if destination is None:
        return None

    destination = destination.strip()
    vehicle = patterns.first_match("vehicle_num", destination)
    if vehicle:
        destination = destination.replace(vehicle, "", 1).strip()
    return destination or None


def extract_whole_message(text: str) -> StructuredRecord:
    """Apply each field rule once to the entire text."""
    record = StructuredRecord()
    if not text:
        return record

    record.vehicle_num = patterns.first_match("vehicle_num", text)
    record.phone_num, record.so_no = classify_ten_digit_numbers(patterns.TEN_DIGIT_RE.findall(text))
    record.weight = patterns.first_match("weight", text)

    # Destination lives on the first weight line, even when nothing is left
    # after the vehicle number is stripped
    for line in text.split("\n"):
        if not patterns.WEIGHT_RE.search(line) or not patterns.DESTINATION_BEFORE_WEIGHT_RE.search(line):
            continue
        record.destination = destination_from_line(line)
        break

    return record


def extract_by_lines(text: str) -> StructuredRecord:
    """Apply the field rules line by line; an earlier line is never overwritten."""
    record = StructuredRecord()

    for line in split_lines(text):
        if not record.vehicle_num:
            record.vehicle_num = patterns.first_match("vehicle_num", line)

        phone_num, so_no = classify_ten_digit_numbers(patterns.TEN_DIGIT_RE.findall(line))
        if not record.phone_num:
            record.phone_num = phone_num
        if not record.so_no:
            record.so_no = so_no

        weight = patterns.first_match("weight", line)
        if weight and not record.weight:
            record.weight = weight
            if not record.destination:
                record.destination = destination_from_line(line)

    return record


def merge(primary: StructuredRecord, fallback: StructuredRecord) -> StructuredRecord:
    """Per field, keep `primary` when non-empty, otherwise take `fallback`."""
    merged = StructuredRecord()
    for name in StructuredRecord.field_names():
        setattr(merged, name, getattr(primary, name) or getattr(fallback, name) or None)
    return merged


def extract(text: str) -> StructuredRecord:
    """Whole-message extraction with per-line fallback."""
    return merge(extract_whole_message(text), extract_by_lines(text))


def overlay(base: StructuredRecord, updates: StructuredRecord, field_names=EXTRACTED_FIELDS) -> StructuredRecord:
    """Copy of `base` with every non-empty field of `updates` written over it."""
    result = merge(StructuredRecord(), base)
    for name in field_names:
        value = getattr(updates, name)
        if value:
            setattr(result, name, value)
    return result
