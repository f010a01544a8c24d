"""Product classification against the product catalog."""
from typing import List, Optional, Sequence

from apkara import patterns
from apkara.logging_conf import logger
from apkara.patterns import ProductMapping


def claimed_spans(text: str) -> List[str]:
    """Substrings already taken by vehicle, SO, phone and the weight expression."""
    spans = []
    for regex in (patterns.VEHICLE_RE, patterns.SO_NUMBER_RE, patterns.PHONE_NUMBER_RE, patterns.WEIGHT_RE):
        match = regex.search(text)
        if match:
            spans.append(match.group(0))
    return spans


def find_product_line(text: str) -> Optional[str]:
    """First unclaimed line that contains a digit."""
    if not text:
        return None

    spans = claimed_spans(text)
    has_weight = patterns.WEIGHT_RE.search(text) is not None

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue
        if any(span in line for span in spans):
            logger.debug(f"Skipping known field line: {line}")
            continue
        # Any other "<number> MT" line is a weight line too
        if has_weight and patterns.WEIGHT_EXPRESSION_RE.search(line):
            logger.debug(f"Skipping weight line: {line}")
            continue
        if any(ch.isdigit() for ch in line):
            return line

    return None


def match_product(line: str, catalog: Sequence[ProductMapping] = None) -> Optional[str]:
    """Canonical name of the first mapping with a matching pattern."""
    if not line:
        return None
    for mapping in catalog if catalog is not None else patterns.PRODUCT_MAPPINGS:
        pattern = mapping.matches(line)
        if pattern is not None:
            logger.debug(f"Matched pattern {pattern.pattern!r} -> {mapping.product_name}")
            return mapping.product_name
    return None


def classify_product(text: str) -> Optional[str]:
    """Isolate the product line in a message and map it to a product name."""
    line = find_product_line(text)
    if line is None:
        logger.debug("No product line found after skipping known fields")
        return None

    product = match_product(line)
    if product is None:
        logger.info(f"No product mapping matched for: {line}")
    return product
