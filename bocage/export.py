"""Export functionality for prospects (CSV, JSON)."""

import csv
import io
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .constants import EXPORT_HEADER, STATUS_LABELS
from .models import EnrichedProspect

logger = logging.getLogger(__name__)

BOM = "\ufeff"

# Leading characters a spreadsheet may evaluate as a formula
FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")
NEUTRALIZER = "'"


def neutralize_formula(value: str) -> str:
    """Prefix a value that a spreadsheet would read as a formula."""
    if value.startswith(FORMULA_PREFIXES):
        return NEUTRALIZER + value
    return value


def safe_cell(value: Optional[object]) -> str:
    """
    Cell text with any formula prefix neutralised.

    Every cell goes through here, headers included, so a cell can never be
    exported as a live formula. Quoting is left to the csv writer.
    """
    text = "" if value is None else str(value)
    return neutralize_formula(text)


def _format_number(value: Optional[float]) -> str:
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def prospect_to_row(prospect: EnrichedProspect) -> list[str]:
    """Convert an enriched prospect to export cell values, in header order."""
    return [
        prospect.external_reference,
        prospect.name,
        prospect.city or "",
        prospect.department or "",
        prospect.zone or "",
        _format_number(prospect.estimated_area),
        str(prospect.relevance_score),
        STATUS_LABELS[prospect.status],
        prospect.phone or "",
    ]


def write_csv(f, prospects: Iterable[EnrichedProspect]) -> None:
    """Write header and rows: every field quoted, quotes doubled, "\\n" line ends."""
    writer = csv.writer(f, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([safe_cell(v) for v in EXPORT_HEADER])
    for p in prospects:
        writer.writerow([safe_cell(v) for v in prospect_to_row(p)])


def export_csv_string(prospects: Sequence[EnrichedProspect], bom: bool = True) -> str:
    """
    Export prospects to a CSV string (for download).

    Args:
        prospects: Prospects to export, typically the filtered set
        bom: Prefix a UTF-8 byte order mark so spreadsheets detect the encoding

    Returns:
        CSV content as string
    """
    output = io.StringIO()
    if bom:
        output.write(BOM)
    write_csv(output, prospects)
    return output.getvalue()


def export_to_csv(prospects: Sequence[EnrichedProspect], output_path: str) -> str:
    """
    Export prospects to CSV file.

    Args:
        prospects: List of prospects to export
        output_path: Path to output file

    Returns:
        Path to the created file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        f.write(export_csv_string(prospects))

    logger.info("Exported %d prospects to %s", len(prospects), output_path)
    return str(output_path)


def export_to_json(
    prospects: Sequence[EnrichedProspect],
    output_path: str,
    pretty: bool = True,
) -> str:
    """
    Export prospects to JSON file.

    Args:
        prospects: List of prospects to export
        output_path: Path to output file
        pretty: Whether to format JSON with indentation

    Returns:
        Path to the created file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "exported_at": datetime.now().isoformat(),
        "total_prospects": len(prospects),
        "prospects": [p.to_dict() for p in prospects],
    }

    with open(output_path, "w", encoding="utf-8") as f:
        if pretty:
            json.dump(data, f, indent=2, default=str, ensure_ascii=False)
        else:
            json.dump(data, f, default=str, ensure_ascii=False)

    logger.info("Exported %d prospects to %s", len(prospects), output_path)
    return str(output_path)


def export_prospects(
    prospects: Sequence[EnrichedProspect],
    output_path: str,
    format: str = "csv",
) -> str:
    """
    Export prospects to file in specified format.

    Args:
        prospects: List of prospects to export
        output_path: Path to output file
        format: Output format ("csv" or "json")

    Returns:
        Path to the created file
    """
    if format.lower() == "json":
        return export_to_json(prospects, output_path)
    return export_to_csv(prospects, output_path)
