"""
services/calendar_export.py

Serializes calendar events to iCalendar (RFC 5545) or CSV text.
"""

from __future__ import annotations

import csv
import io
from datetime import datetime, timedelta
from typing import Iterable, List, Tuple

from app.core.config import settings
from app.services.calendar_service import CalendarEvent

ICS_DATETIME = "%Y%m%dT%H%M%SZ"
EVENT_DURATION = timedelta(hours=1)

CSV_HEADER = ["Title", "Date", "Time", "Type", "Case Number", "Description"]

EXPORT_FORMATS = {
    "ics": ("text/calendar;charset=utf-8", "ics"),
    "csv": ("text/csv;charset=utf-8", "csv"),
}


def ical_escape(text: str) -> str:
    """Escape TEXT property values per RFC 5545."""
    if not text:
        return ""
    return (
        text.replace("\\", "\\\\")
        .replace(",", "\\,")
        .replace(";", "\\;")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def _vevent(event: CalendarEvent) -> List[str]:
    start = event.date
    return [
        "BEGIN:VEVENT",
        f"UID:{event.id}@{settings.CALENDAR_UID_DOMAIN}",
        f"DTSTART:{start.strftime(ICS_DATETIME)}",
        f"DTEND:{(start + EVENT_DURATION).strftime(ICS_DATETIME)}",
        f"SUMMARY:{ical_escape(event.title)}",
        f"DESCRIPTION:{ical_escape(event.description or event.type)}",
        f"LOCATION:{ical_escape(event.location or '')}",
        "STATUS:CONFIRMED",
        "SEQUENCE:0",
        "END:VEVENT",
    ]


def to_ics(events: Iterable[CalendarEvent]) -> str:
    """VCALENDAR with a UTC VTIMEZONE and one-hour VEVENTs, CRLF line endings."""
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{settings.CALENDAR_PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{settings.CALENDAR_NAME}",
        "X-WR-TIMEZONE:UTC",
        "BEGIN:VTIMEZONE",
        "TZID:UTC",
        "BEGIN:STANDARD",
        "DTSTART:19700101T000000",
        "TZOFFSETFROM:+0000",
        "TZOFFSETTO:+0000",
        "END:STANDARD",
        "END:VTIMEZONE",
    ]
    for event in events:
        if event.date is None:
            continue
        lines.extend(_vevent(event))
    lines.append("END:VCALENDAR")
    return "\r\n".join(lines) + "\r\n"


def to_csv(events: Iterable[CalendarEvent]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for event in events:
        if event.date is None:
            continue
        writer.writerow([
            event.title,
            event.date.strftime("%Y-%m-%d"),
            event.date.strftime("%H:%M"),
            event.type,
            event.case_number or "",
            event.description or "",
        ])
    return buf.getvalue()


def render_export(events: List[CalendarEvent], fmt: str, today: datetime = None) -> Tuple[str, str, str]:
    """
    Returns ``(content, content_type, filename)``. Unknown formats fall
    back to ICS.
    """
    content_type, ext = EXPORT_FORMATS.get(fmt, EXPORT_FORMATS["ics"])
    content = to_csv(events) if ext == "csv" else to_ics(events)
    stamp = (today or datetime.utcnow()).strftime("%Y-%m-%d")
    return content, content_type, f"calendar-{stamp}.{ext}"
