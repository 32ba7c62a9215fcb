"""
CSV export utilities
"""
import csv
import io
from typing import Iterable, Dict, List
from fastapi.responses import StreamingResponse

# Lets spreadsheet apps detect UTF-8 (Vietnamese names and headers)
UTF8_BOM = "\ufeff"


def stream_csv(
    headers: List[str],
    rows: Iterable[Dict],
    filename: str = "export.csv",
    bom: bool = True,
) -> StreamingResponse:
    """
    Stream CSV data as HTTP response

    Args:
        headers: List of column headers
        rows: Iterable of dictionaries keyed by header
        filename: Filename for Content-Disposition header
        bom: Prefix the body with a UTF-8 byte order mark

    Returns:
        StreamingResponse with CSV content
    """
    def generate():
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=headers, quoting=csv.QUOTE_MINIMAL)

        if bom:
            output.write(UTF8_BOM)
        writer.writeheader()
        yield _drain(output)

        for row in rows:
            # Missing columns are written as empty cells
            writer.writerow({header: str(row.get(header, "")) for header in headers})
            yield _drain(output)

    return StreamingResponse(
        generate(),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"'
        }
    )


def _drain(output: io.StringIO) -> str:
    content = output.getvalue()
    output.seek(0)
    output.truncate(0)
    return content
