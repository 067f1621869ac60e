"""CSV export of a scope's projected results."""

from __future__ import annotations

import csv
from datetime import date
import io
import json
import re
from typing import Mapping, Optional

from .prize_assignment.projection import ProjectedResults

EXPORT_COLUMNS = (
    "Rank",
    "Participant ID",
    "Participant Name",
    "Final Score",
    "Jury Count",
    "Remarks",
)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9]")


def export_rows(
    projected: ProjectedResults,
    remarks: Optional[Mapping[str, Mapping[str, str]]] = None,
) -> list[dict[str, object]]:
    """Return one export record per result row, in display order."""
    remarks = remarks or {}
    records: list[dict[str, object]] = []
    for row in projected.rows:
        participant = row.participant
        participant_remarks = remarks.get(participant.id) or {}
        records.append(
            {
                "Rank": row.rank_label,
                "Participant ID": participant.id,
                "Participant Name": participant.name,
                "Final Score": (
                    f"{participant.average_score:.2f}"
                    if participant.has_score
                    else "No Score"
                ),
                "Jury Count": participant.score_count,
                "Remarks": (
                    json.dumps(dict(participant_remarks), ensure_ascii=False)
                    if participant_remarks
                    else ""
                ),
            }
        )
    return records


def export_results_csv(
    projected: ProjectedResults,
    remarks: Optional[Mapping[str, Mapping[str, str]]] = None,
) -> str:
    """Render ``projected`` as CSV text.

    Parameters
    ----------
    projected : ProjectedResults
        Output of :func:`~pianojury.prize_assignment.project_results`.
    remarks : Optional[Mapping[str, Mapping[str, str]]]
        Jury remarks keyed by participant id, then jury name. Written to
        the ``Remarks`` column as a JSON object.

    Raises
    ------
    ValueError
        If there is nothing to export.
    """
    records = export_rows(projected, remarks)
    if not records:
        raise ValueError("No results available to export.")

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS, lineterminator="\n")
    writer.writeheader()
    writer.writerows(records)
    return buffer.getvalue()


def export_filename(event_title: str, category_name: str, on: date) -> str:
    """Return ``<event>_<category>_Results_<YYYY-MM-DD>.csv`` with safe characters."""
    event_part = _UNSAFE_FILENAME_CHARS.sub("_", event_title or "Event")
    category_part = _UNSAFE_FILENAME_CHARS.sub("_", category_name or "Unknown Category")
    return f"{event_part}_{category_part}_Results_{on.isoformat()}.csv"


__all__ = [
    "EXPORT_COLUMNS",
    "export_filename",
    "export_results_csv",
    "export_rows",
]
