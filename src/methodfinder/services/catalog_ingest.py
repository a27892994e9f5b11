"""
CSV ingestion.

Converts the methods spreadsheet (semicolon separated, exported from the
research team's sheet) into the catalog JSON consumed by MethodCatalog.

Sheet layout:
- First column: method name
- "Category - Option" columns: a truthy cell (true/yes/1/x) ticks the option
- Special columns: Link (or URL / Reference), Link2, Cost Tier,
  Connectivity, Type, Description
"""

import csv
import io
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from methodfinder.schemas.catalog import (
    DEFAULT_DESCRIPTION_SUFFIX,
    category_id_from_name,
    default_description,
)
from methodfinder.utils.logger import log


CSV_DELIMITER = ";"
DEFAULT_OUTPUT_FILE = "methods_data.json"

LINK_HEADERS = {"link", "url", "reference"}
LINK2_HEADER = "link2"
SCALAR_HEADERS = {
    "cost tier": "costTier",
    "connectivity": "connectivity",
    "type": "type",
}
DESCRIPTION_HEADER = "description"

TRUTHY_VALUES = {"true", "yes", "1", "x"}
NULL_PLACEHOLDER = "null"

CATEGORY_OPTION_PATTERN = re.compile(r"^(.+?)\s*-\s*(.+)$")


class CatalogIngestError(Exception):
    """Raised when a source sheet cannot be converted."""


@dataclass
class IngestReport:
    """Summary of a conversion run."""
    categories: int = 0
    methods: int = 0
    methods_with_links: int = 0
    methods_with_custom_descriptions: int = 0
    warnings: List[str] = field(default_factory=list)


def is_blank(value: Optional[str]) -> bool:
    """True for missing cells, whitespace and the literal "null" placeholder."""
    if value is None:
        return True
    stripped = value.strip()
    return not stripped or stripped.lower() == NULL_PLACEHOLDER


def normalize_link(value: Optional[str]) -> Optional[str]:
    """
    Normalize a link cell.

    http:// and https:// links pass through, bare "www." links and bare
    domains (a dot, no spaces) get an https:// prefix. Anything else,
    including blanks and "null", is treated as no link.
    """
    if not isinstance(value, str) or is_blank(value):
        return None

    link = value.strip()
    if link.startswith(("http://", "https://")):
        return link
    if link.startswith("www."):
        return f"https://{link}"
    if "." in link and " " not in link:
        return f"https://{link}"
    return None


def _is_special_header(header_lower: str) -> bool:
    return (
        header_lower in LINK_HEADERS
        or header_lower == LINK2_HEADER
        or header_lower in SCALAR_HEADERS
        or header_lower == DESCRIPTION_HEADER
    )


def _parse_category_header(header: str) -> Optional[Tuple[str, str, str]]:
    """Split "Category - Option" into (category_id, category_name, option)."""
    match = CATEGORY_OPTION_PATTERN.match(header.strip())
    if not match:
        return None
    category_name = match.group(1).strip()
    option_name = match.group(2).strip()
    return category_id_from_name(category_name), category_name, option_name


def _read_rows(text: str) -> List[List[str]]:
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line]
    return list(csv.reader(lines, delimiter=CSV_DELIMITER))


def convert_csv(text: str) -> Tuple[Dict[str, Any], IngestReport]:
    """
    Convert sheet text into the catalog structure.

    Args:
        text: Full CSV text

    Returns:
        Tuple of (catalog dict with "categories" and "methods", report)

    Raises:
        CatalogIngestError: If the text has no header row
    """
    rows = _read_rows(text)
    if not rows:
        raise CatalogIngestError("Input has no header row")

    headers = rows[0]
    report = IngestReport()
    log.debug(f"Found {len(headers)} columns in CSV")

    # Pass 1: categories and their options, in header order
    categories: List[Dict[str, Any]] = []
    category_map: Dict[str, Dict[str, Any]] = {}

    for header in headers[1:]:
        header_lower = header.strip().lower()
        if _is_special_header(header_lower):
            continue

        parsed = _parse_category_header(header)
        if parsed is None:
            warning = f"Header '{header}' doesn't match expected 'Category - Option' format"
            log.warning(warning)
            report.warnings.append(warning)
            continue

        category_id, category_name, option_name = parsed
        if category_id not in category_map:
            category_map[category_id] = {
                "id": category_id,
                "name": category_name,
                "multiValued": True,
                "options": [],
            }
            categories.append(category_map[category_id])

        options = category_map[category_id]["options"]
        if option_name not in options:
            options.append(option_name)

    # Pass 2: one method per data row
    methods: List[Dict[str, Any]] = []

    for values in rows[1:]:
        if not values:
            continue
        method_name = values[0].strip()
        if not method_name:
            continue

        method: Dict[str, Any] = {
            "name": method_name,
            "description": "",
            "attributes": {},
        }

        for header, raw_value in zip(headers[1:], values[1:]):
            value = raw_value.strip()
            if not value:
                continue

            header_lower = header.strip().lower()

            if header_lower in LINK_HEADERS:
                link = normalize_link(value)
                if link:
                    method["link"] = link
                continue

            if header_lower == LINK2_HEADER:
                link = normalize_link(value)
                if link:
                    method["link2"] = link
                continue

            if header_lower in SCALAR_HEADERS:
                if not is_blank(value):
                    method[SCALAR_HEADERS[header_lower]] = value
                continue

            if header_lower == DESCRIPTION_HEADER:
                if not is_blank(value):
                    method["description"] = value
                continue

            parsed = _parse_category_header(header)
            if parsed is None:
                continue

            category_id, _, option_name = parsed
            options = method["attributes"].setdefault(category_id, [])
            if value.lower() in TRUTHY_VALUES and option_name not in options:
                options.append(option_name)

        if not method["description"]:
            method["description"] = default_description(method_name)

        methods.append(method)

    report.categories = len(categories)
    report.methods = len(methods)
    report.methods_with_links = sum(1 for m in methods if m.get("link"))
    report.methods_with_custom_descriptions = sum(
        1 for m in methods if DEFAULT_DESCRIPTION_SUFFIX not in m["description"]
    )

    log.info(f"Processed {report.categories} categories and {report.methods} methods")
    return {"categories": categories, "methods": methods}, report


def convert_csv_file(
    input_path: Union[str, Path],
    output_path: Union[str, Path] = DEFAULT_OUTPUT_FILE,
) -> IngestReport:
    """
    Convert a CSV file and write the catalog JSON.

    Raises:
        CatalogIngestError: If the input cannot be read or has no header,
                            or the output cannot be written
    """
    input_path = Path(input_path)
    output_path = Path(output_path)

    try:
        text = input_path.read_text(encoding="utf-8-sig")
    except OSError as e:
        raise CatalogIngestError(f"Error reading file: {e}") from e

    catalog, report = convert_csv(text)

    try:
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(catalog, f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise CatalogIngestError(f"Error writing JSON file: {e}") from e

    log.info(f"Converted {input_path} to {output_path}")
    return report
