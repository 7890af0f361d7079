"""
CSV export of a project report.
"""

import csv
from pathlib import Path
from typing import Union

from site_ledger.core.report import ProjectReport

DELIMITER = ";"


def write_project_csv(report: ProjectReport, path: Union[str, Path]) -> Path:
    """Write a project report as semicolon-separated rows.

    One row per line item (kind, name, amount) followed by the summary rows
    without the subtotal.
    Amounts use two decimals.

    Args:
        report: Report to write
        path: Destination file, overwritten if present

    Returns:
        Path of the written file
    """
    out_path = Path(path)
    with open(out_path, 'w', encoding='utf-8', newline='') as f:
        writer = csv.writer(f, delimiter=DELIMITER)
        for line in report.lines:
            writer.writerow([line.kind, line.name, f"{line.amount:.2f}"])
        for label, amount in report.summary_rows(include_subtotal=False):
            writer.writerow([label, "", f"{amount:.2f}"])
    return out_path
