"""
Table export helpers.

CSV output keeps the source row's columns as-is: the header comes from the
first row, ``None`` becomes an empty cell, strings containing a comma, quote
or line break are quoted with doubled quotes, and nested values are written
as JSON.
"""
import io
import json
import logging
import re
import zipfile
from datetime import date, datetime
from decimal import Decimal

from .models import Issue, Program, Session, Parent, Attendance

logger = logging.getLogger(__name__)

# Export order used by "export all"
TABLES = {
    'parents': Parent,
    'issues': Issue,
    'programs': Program,
    'sessions': Session,
    'attendance': Attendance,
}

_NEEDS_QUOTES = re.compile(r'[,\n\r"]')


def _csv_cell(value) -> str:
    if value is None:
        return ''
    if isinstance(value, (dict, list, tuple)):
        encoded = json.dumps(value, default=str).replace('"', '""')
        return f'"{encoded}"'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    text = str(value)
    if _NEEDS_QUOTES.search(text):
        return '"' + text.replace('"', '""') + '"'
    return text


def rows_to_csv(rows) -> str:
    """Serialize a list of dicts to CSV text. Empty input gives an empty string."""
    rows = list(rows)
    if not rows:
        return ''
    headers = list(rows[0].keys())
    lines = [','.join(headers)]
    for row in rows:
        lines.append(','.join(_csv_cell(row.get(h)) for h in headers))
    return '\n'.join(lines)


def table_rows(table: str):
    """Return every row of ``table`` as a dict of its concrete columns."""
    model = TABLES[table]
    return list(model.objects.order_by('id').values())


def export_filename(table: str, today: date, ext: str = 'csv') -> str:
    return f"{table}_{today.isoformat()}.{ext}"


def build_zip(today: date) -> bytes:
    """One CSV per table, bundled into a ZIP archive. Empty tables are skipped."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
        for table in TABLES:
            rows = table_rows(table)
            if not rows:
                logger.warning("No data found in %s; skipping", table)
                continue
            zf.writestr(export_filename(table, today), rows_to_csv(rows))
    return buf.getvalue()


def build_workbook(today: date) -> bytes:
    """All tables in a single workbook, one sheet per table with a bold header row."""
    import openpyxl
    from openpyxl.styles import Alignment, Font
    from openpyxl.utils import get_column_letter

    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for table in TABLES:
        ws = wb.create_sheet(title=table)
        model = TABLES[table]
        headers = [f.attname for f in model._meta.concrete_fields]
        for c, h in enumerate(headers, 1):
            cell = ws.cell(row=1, column=c, value=h)
            cell.font = Font(bold=True)
            cell.alignment = Alignment(horizontal='center')
        for r, row in enumerate(table_rows(table), 2):
            for c, h in enumerate(headers, 1):
                value = row.get(h)
                # Excel cannot store tz-aware datetimes
                if isinstance(value, datetime) and value.tzinfo is not None:
                    value = value.replace(tzinfo=None)
                ws.cell(row=r, column=c, value=value)
        for c, h in enumerate(headers, 1):
            ws.column_dimensions[get_column_letter(c)].width = max(12, len(h) + 2)
    ws_info = wb.create_sheet(title='export_info', index=0)
    ws_info['A1'] = 'Exported'
    ws_info['B1'] = today.isoformat()
    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()
