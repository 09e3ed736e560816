"""
csv_export.py
-------------
The one CSV rendering used by both the API export and the dashboard download.

Header is written as-is; every non-null value is quoted with embedded quotes
doubled, null becomes an empty unquoted field. Rows are joined with "\\n" and
the document has no trailing newline.
"""

import csv
import io
from typing import Any, Iterable, Mapping

from feedback_dashboard.models.feedback import RECORD_FIELDS


def render_csv(records: Iterable[Mapping[str, Any]], fields: tuple[str, ...] = RECORD_FIELDS) -> str:
    output = io.StringIO()
    output.write(",".join(fields) + "\n")

    writer = csv.writer(output, quoting=csv.QUOTE_NOTNULL, lineterminator="\n")
    writer.writerows([record.get(name) for name in fields] for record in records)

    # drop the terminator of the last line
    return output.getvalue()[:-1]
