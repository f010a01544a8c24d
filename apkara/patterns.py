"""Pattern catalog: field rules and product mappings.

Everything here is data. The extractor and the product classifier only walk
these tables, so the catalog can be checked on its own.
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple


@dataclass(frozen=True)
class PatternRule:
    """A field name plus one matcher. Lower precedence wins."""

    field: str
    pattern: Pattern
    precedence: int = 0
    group: int = 0  # capture group holding the value

    def search(self, text: str) -> Optional[str]:
        match = self.pattern.search(text)
        if not match:
            return None
        return match.group(self.group)


@dataclass(frozen=True)
class ProductMapping:
    """Canonical product name and the alternate ways people type it."""

    product_name: str
    patterns: Tuple[Pattern, ...]

    def matches(self, line: str) -> Optional[Pattern]:
        """Return the first pattern that matches the line, if any."""
        for pattern in self.patterns:
            if pattern.search(line):
                return pattern
        return None


# Unit marker for weight (metric tonnes)
WEIGHT_UNIT = "MT"

# 2 letters, 1-2 digits, 1-2 letters, 3-4 digits: MH12AB1234
VEHICLE_RE = re.compile(r"\b[A-Za-z]{2}\d{1,2}[A-Za-z]{1,2}\d{3,4}\b")

# Any 10-digit token; classified later by its leading digit
TEN_DIGIT_RE = re.compile(r"\b\d{10}\b")
SO_NUMBER_RE = re.compile(r"\b[0-3]\d{9}\b")
PHONE_NUMBER_RE = re.compile(r"\b[4-9]\d{9}\b")

WEIGHT_RE = re.compile(r"\b(\d+(?:\.\d+)?)\s*" + WEIGHT_UNIT + r"\b", re.IGNORECASE)
WEIGHT_EXPRESSION_RE = re.compile(r"\d+(?:\.\d+)?\s*" + WEIGHT_UNIT + r"\b", re.IGNORECASE)
DESTINATION_BEFORE_WEIGHT_RE = re.compile(
    r"^(.*?)\s+\d+(?:\.\d+)?\s*" + WEIGHT_UNIT + r"\b", re.IGNORECASE
)

DRIVER_LICENSE_RE = re.compile(r"\b\d{4}\b")

# Leading digit buckets for 10-digit tokens
PHONE_LEADING_DIGITS = frozenset("456789")
SO_LEADING_DIGITS = frozenset("0123")


FIELD_RULES: List[PatternRule] = [
    PatternRule("vehicle_num", VEHICLE_RE, precedence=0),
    PatternRule("so_no", SO_NUMBER_RE, precedence=0),
    PatternRule("phone_num", PHONE_NUMBER_RE, precedence=0),
    PatternRule("weight", WEIGHT_RE, precedence=0, group=1),
    PatternRule("destination", DESTINATION_BEFORE_WEIGHT_RE, precedence=0, group=1),
    PatternRule("driver_license", DRIVER_LICENSE_RE, precedence=0),
]


def rules_for(field: str) -> List[PatternRule]:
    """Rules for one field in precedence order (declaration order on ties)."""
    indexed = [(rule.precedence, i, rule) for i, rule in enumerate(FIELD_RULES) if rule.field == field]
    return [rule for _, _, rule in sorted(indexed, key=lambda t: (t[0], t[1]))]


def first_match(field: str, text: str) -> Optional[str]:
    """Value from the first rule for `field` that matches `text`."""
    for rule in rules_for(field):
        value = rule.search(text)
        if value is not None:
            return value
    return None


def _p(expr: str) -> Pattern:
    return re.compile(expr, re.IGNORECASE)


# Separator between grade numbers: ":", "-", "." or whitespace
_SEP = r"\s*[:\-.\s]\s*"

PRODUCT_MAPPINGS: List[ProductMapping] = [
    ProductMapping(
        "N 40 KG MAHADHAN CROPTEK 9:24:24",
        (
            _p(r"\b(n|c)\s*-?\s*9\b"),
            _p(r"\b(croptek\s*)?n\s*9\b"),
            _p(r"\b9" + _SEP + r"24" + _SEP + r"24\b"),
            _p(r"\b92424\b"),
            _p(r"\bc\s*-?\s*9\s*-?\s*24\s*-?\s*24\b"),
        ),
    ),
    ProductMapping(
        "N 50 KG MAHADHAN SMARTEK NPKS 20:20:0:13",
        (
            _p(r"\b(smartek\s*)?s\s*-?\s*20\b"),
            _p(r"\b20" + _SEP + r"20" + _SEP + r"0" + _SEP + r"13\b"),
            _p(r"\b2020013\b"),
            _p(r"\bs\s*-?\s*20\s*-?\s*20\s*-?\s*0\s*-?\s*13\b"),
        ),
    ),
    ProductMapping(
        "N 50 KG MAHADHAN 24:24:0",
        (
            _p(r"\b24" + _SEP + r"24" + _SEP + r"0\b"),
            _p(r"\b24240\b"),
        ),
    ),
    ProductMapping(
        "N 40 KG MAHADHAN CROPTEK NPK 11:30:14",
        (
            _p(r"\b(n|c)\s*-?\s*11\b"),
            _p(r"\b11" + _SEP + r"30" + _SEP + r"14\b"),
            _p(r"\b113014\b"),
        ),
    ),
    ProductMapping(
        "N 40 KG MAHADHAN CROPTEK NPK 8:21:21",
        (
            _p(r"\b(n|c)\s*-?\s*8\b"),
            _p(r"\b8" + _SEP + r"21" + _SEP + r"21\b"),
            _p(r"\b82121\b"),
            _p(r"\b(c|n)\s*-?\s*8\s*-?\s*21\s*-?\s*21\b"),
        ),
    ),
    ProductMapping(
        "N 50 KG MAHADHAN SMARTEK NPK 10:26:26",
        (
            _p(r"\b(smartek\s*)?s\s*-?\s*10\b"),
            _p(r"\b10" + _SEP + r"26" + _SEP + r"26\b"),
            _p(r"\b102626\b"),
            _p(r"\b1026\b"),
            _p(r"\b10\s*-?\s*26\b"),
        ),
    ),
    ProductMapping(
        "N 50 KG MAHADHAN SMARTEK NPKS 16:20:0:13",
        (
            _p(r"\b(smartek\s*)?s\s*-?\s*16\b"),
            _p(r"\b16" + _SEP + r"20" + _SEP + r"0" + _SEP + r"13\b"),
            _p(r"\b1620013\b"),
        ),
    ),
]

