# src/mamatrack/report.py
from datetime import date
from typing import Iterable, Optional, Sequence

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from mamatrack.export_utils import schedule_rows
from mamatrack.models import Child, GeneratedVisit, ProgressSummary, Vaccination

LINE = 15
MARGIN = 50


def build_vaccination_card(path: str, child: Child, schedule: Sequence[GeneratedVisit],
                           vaccinations: Iterable[Vaccination], progress: ProgressSummary,
                           chart_png: Optional[str] = None, today: Optional[date] = None) -> str:
    """Write a printable vaccination card for one child to `path` and return the path."""
    c = canvas.Canvas(path, pagesize=A4)
    w, h = A4
    y = h - MARGIN

    c.setFont('Helvetica-Bold', 16)
    c.drawString(MARGIN, y, 'MamaTrack Vaccination Card')
    y -= 30
    c.setFont('Helvetica', 11)
    c.drawString(MARGIN, y, f"Child: {child.first_name} {child.last_name}")
    y -= LINE
    c.drawString(MARGIN, y, f"Date of birth: {child.date_of_birth.isoformat()}")
    y -= LINE
    if today is not None:
        c.drawString(MARGIN, y, f"Printed: {today.isoformat()}")
        y -= LINE
    y -= 10

    c.setFont('Helvetica-Bold', 12)
    c.drawString(MARGIN, y, 'Progress:')
    y -= 20
    c.setFont('Helvetica', 10)
    c.drawString(MARGIN + 10, y, f"Due so far: {progress.due_count}")
    y -= LINE
    c.drawString(MARGIN + 10, y, f"Given: {progress.completed_count} ({progress.percentage}%)")
    y -= LINE
    nxt = progress.next_pending
    if nxt:
        c.drawString(MARGIN + 10, y, f"Next: {nxt.name} dose {nxt.dose} on "
                                     f"{nxt.scheduled_date.isoformat()} ({nxt.status})")
    else:
        c.drawString(MARGIN + 10, y, "Next: schedule complete")
    y -= 30

    if chart_png:
        size = 180
        c.drawImage(chart_png, w - MARGIN - size, h - MARGIN - size - 20, width=size, height=size)

    c.setFont('Helvetica-Bold', 12)
    c.drawString(MARGIN, y, 'Schedule:')
    y -= 20
    c.setFont('Courier', 9)
    for row in schedule_rows(schedule, vaccinations):
        if y < MARGIN:
            c.showPage()
            y = h - MARGIN
            c.setFont('Courier', 9)
        c.drawString(MARGIN, y, row)
        y -= LINE - 3

    c.save()
    return path
