"""Seat-availability grids: one column per day, one row per half hour.

Rows cover 5:00 AM through 7:30 PM. A cell shows the remaining seats for the
session starting at that time: green when seats are left, red when full,
grey when the temple has no session in that slot. Sessions outside the
window are not shown.
"""

import html
from datetime import time
from pathlib import Path
from typing import Sequence

import xlsxwriter

from src.portal.logging import get_logger
from src.portal.models import Day, Temple, format_clock

log = get_logger(__name__)

START_HOUR = 5
END_HOUR = 20
SUBTITLE = "Available slots for endowment"
DAY_HEADER_FORMAT = "%a %b %d"


def slot_times() -> list[time]:
    return [time(hour, minute) for hour in range(START_HOUR, END_HOUR) for minute in (0, 30)]


def seats_by_slot(day: Day) -> dict[tuple[int, int], int]:
    """Map (hour, minute) to clamped remaining seats for a day's sessions."""
    return {
        (session.time.hour, session.time.minute): session.remaining_seats
        for session in day.sessions
    }


_HTML_HEAD = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<link href="https://cdn.jsdelivr.net/npm/bootstrap@5.1.3/dist/css/bootstrap.min.css" rel="stylesheet">
<style>
    body {{ padding: 20px; }}
    .grid-container {{
        display: grid;
        grid-template-columns: repeat({num_columns}, 1fr);
        grid-template-rows: repeat({num_rows}, 1fr);
        grid-auto-flow: column;
        width: 300%;
    }}
    .grid-item {{
        border: 1px solid rgba(0, 0, 0, 0.8);
        padding: 5px;
        font-size: 15px;
        text-align: center;
    }}
</style>
</head>
<body>
<h1>{title}</h1>
<p>{subtitle}</p>
<div class="grid-container">"""

_HTML_TAIL = """</div>
</body>
</html>
"""


class HtmlGridRenderer:
    suffix = ".html"

    def render(self, days: Sequence[Day], temple: Temple, destination: Path) -> Path:
        slots = slot_times()
        lines = [
            _HTML_HEAD.format(
                title=html.escape(temple.name),
                subtitle=SUBTITLE,
                num_columns=len(days) + 1,
                num_rows=len(slots) + 1,
            ),
            '<div class="grid-item"></div>',
        ]
        lines.extend(f'<div class="grid-item">{format_clock(slot)}</div>' for slot in slots)

        for day in days:
            lines.append(f'<div class="grid-item">{day.date.strftime(DAY_HEADER_FORMAT)}</div>')
            seats = seats_by_slot(day)
            for slot in slots:
                remaining = seats.get((slot.hour, slot.minute))
                if remaining is None:
                    lines.append('<div class="grid-item bg-secondary"></div>')
                else:
                    color = "bg-success" if remaining > 0 else "bg-danger"
                    lines.append(f'<div class="grid-item text-white {color}">{remaining}</div>')

        lines.append(_HTML_TAIL)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text("\n".join(lines), encoding="utf-8")
        log.info("grid_written", format="html", path=str(destination), days=len(days))
        return destination


class XlsxGridRenderer:
    suffix = ".xlsx"

    def render(self, days: Sequence[Day], temple: Temple, destination: Path) -> Path:
        destination.parent.mkdir(parents=True, exist_ok=True)
        workbook = xlsxwriter.Workbook(str(destination))
        try:
            title_format = workbook.add_format({"bold": True})
            green_format = workbook.add_format({"bg_color": "green", "align": "center"})
            red_format = workbook.add_format({"bg_color": "red", "align": "center"})
            blank_format = workbook.add_format({"bg_color": "gray", "align": "center"})

            sheet = workbook.add_worksheet()
            last_col = len(days) + 1
            sheet.merge_range(0, 0, 0, last_col, temple.name, title_format)
            sheet.merge_range(1, 0, 1, last_col, SUBTITLE)

            slots = slot_times()
            for offset, slot in enumerate(slots):
                sheet.write_string(3 + offset, 0, format_clock(slot))

            for col, day in enumerate(days, start=1):
                sheet.write_string(2, col, day.date.strftime(DAY_HEADER_FORMAT))
                seats = seats_by_slot(day)
                for offset, slot in enumerate(slots):
                    row = 3 + offset
                    remaining = seats.get((slot.hour, slot.minute))
                    if remaining is None:
                        sheet.write_blank(row, col, None, blank_format)
                    else:
                        fmt = green_format if remaining > 0 else red_format
                        sheet.write_number(row, col, remaining, fmt)
        finally:
            workbook.close()

        log.info("grid_written", format="xlsx", path=str(destination), days=len(days))
        return destination
