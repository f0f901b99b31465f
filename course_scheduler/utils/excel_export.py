from __future__ import annotations
from typing import Iterable
from io import BytesIO
from datetime import datetime

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.styles import Font, Alignment

from course_scheduler.utils.timeslots import MINUTES_PER_DAY, parse_time_to_minutes

HEADERS = ["Slot ID", "Day", "Start", "End", "Minutes", "Overnight"]


def slot_row(slot) -> list:
    start = parse_time_to_minutes(slot.start_time)
    end = parse_time_to_minutes(slot.end_time)
    overnight = end < start
    minutes = (end + MINUTES_PER_DAY - start) if overnight else (end - start)
    return [slot.id, slot.day_of_week, slot.start_time, slot.end_time, minutes, "yes" if overnight else None]


def timetable_to_xlsx_bytes(slots: Iterable, sheet_name: str = "Timetable") -> bytes:
    """
    slots: Timetable rows of one course, already in weekday order
    """
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name[:31]

    ws.append(HEADERS)
    header_font = Font(bold=True)
    for col_idx in range(1, len(HEADERS) + 1):
        cell = ws.cell(row=1, column=col_idx)
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center")

    for s in slots:
        ws.append(slot_row(s))

    # autosize columns
    for col_idx, h in enumerate(HEADERS, start=1):
        max_len = len(h)
        for row_idx in range(2, ws.max_row + 1):
            v = ws.cell(row=row_idx, column=col_idx).value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[get_column_letter(col_idx)].width = min(max_len + 2, 40)

    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def make_filename(prefix: str = "timetable") -> str:
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{prefix}_{ts}.xlsx"
