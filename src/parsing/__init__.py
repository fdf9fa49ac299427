"""
Parsing of company detail pages.

- fields: pure value extractors and the label vocabulary
- detail_parser: HTML snapshot -> BusinessRecord
"""

from src.parsing.detail_parser import parse_business_detail, build_label_map
from src.parsing.fields import (
    LABELS,
    parse_integer,
    parse_gender_distribution,
    dedupe_non_empty,
    derive_city_region,
)

__all__ = [
    "parse_business_detail",
    "build_label_map",
    "LABELS",
    "parse_integer",
    "parse_gender_distribution",
    "dedupe_non_empty",
    "derive_city_region",
]
