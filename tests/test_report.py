from datetime import date

import pytest

pytest.importorskip('matplotlib')
pytest.importorskip('reportlab')

from mamatrack.charts import create_pie_chart, create_progress_chart  # noqa: E402
from mamatrack.kepi import calculate_vaccination_progress, generate_vaccination_schedule  # noqa: E402
from mamatrack.models import Child, Vaccination  # noqa: E402
from mamatrack.report import build_vaccination_card  # noqa: E402
from mamatrack.statistics import summarize_vaccinations  # noqa: E402

PNG_MAGIC = b'\x89PNG'


def test_pie_chart(tmp_path):
    out = tmp_path / "pie.png"
    assert create_pie_chart([3, 1], ["Given", "Outstanding"], str(out), subtitle="Amani: 75%") == 2
    assert out.read_bytes().startswith(PNG_MAGIC)


def test_pie_chart_without_data(tmp_path):
    out = tmp_path / "empty.png"
    assert create_pie_chart([0, 0], ["Given", "Outstanding"], str(out)) == 0
    assert out.read_bytes().startswith(PNG_MAGIC)


def test_vaccination_card(tmp_path):
    child = Child(1, 'Amani', 'Kamau', '2024-01-01', 'male')
    child.id = 1
    sched = generate_vaccination_schedule(child.date_of_birth)
    vacs = [Vaccination(1, v.name, v.dose, v.date) for v in sched]
    vacs[0].status, vacs[0].administered_date = 'administered', date(2024, 1, 1)
    progress = calculate_vaccination_progress(child.date_of_birth,
                                              [v.as_completion() for v in vacs], date(2024, 3, 1))
    chart = tmp_path / 'progress.png'
    assert create_progress_chart(summarize_vaccinations(vacs), str(chart), subtitle='Amani: 50%') == 2

    pdf = tmp_path / 'card.pdf'
    assert build_vaccination_card(str(pdf), child, sched, vacs, progress,
                                  chart_png=str(chart), today=date(2024, 3, 1)) == str(pdf)
    assert pdf.read_bytes().startswith(b'%PDF')
