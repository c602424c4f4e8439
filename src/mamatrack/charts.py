# src/mamatrack/charts.py

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

GIVEN_COLOR = "#4caf50"
OUTSTANDING_COLOR = "#ff9800"


def create_pie_chart(values: list[int], labels: list[str], filename: str,
                     colors: list[str] = None, subtitle: str = None) -> int:
    """
    Save a pie chart PNG to `filename` and return the number of drawn segments.
    All-zero values give a "No data" placeholder image and 0 segments.
    """
    fig, ax = plt.subplots()
    drawn = 0
    if sum(values) == 0:
        ax.text(0.5, 0.5, "No data", ha="center", va="center", fontsize=14)
        ax.axis("off")
    else:
        wedges, _, _ = ax.pie(values, labels=labels, autopct="%1.0f%%", colors=colors,
                              startangle=90, counterclock=False)
        ax.axis("equal")
        drawn = len(wedges)
    if subtitle:
        fig.text(0.5, 0.02, subtitle, ha="center", va="bottom", fontsize=16, fontweight='bold')
    try:
        fig.savefig(filename, bbox_inches="tight")
    finally:
        plt.close(fig)
    return drawn


def create_progress_chart(summary: dict, filename: str, subtitle: str = None) -> int:
    """Given vs. outstanding doses, from statistics.summarize_vaccinations()."""
    return create_pie_chart(
        [summary['administered'], summary['outstanding']],
        ["Given", "Outstanding"],
        filename,
        colors=[GIVEN_COLOR, OUTSTANDING_COLOR],
        subtitle=subtitle,
    )
