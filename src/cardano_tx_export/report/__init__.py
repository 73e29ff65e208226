"""Report serialization."""

from cardano_tx_export.report.csv_writer import (
    CSV_HEADERS,
    escape_field,
    format_amount,
    generate_report,
    parse_amount,
    report_filename,
)

__all__ = [
    "CSV_HEADERS",
    "escape_field",
    "format_amount",
    "generate_report",
    "parse_amount",
    "report_filename",
]
