# src/mamatrack/kepi.py
"""
Kenya Expanded Programme on Immunisation (KEPI), 2024 schedule.

Offsets are weeks from the date of birth; 9 and 18 months are approximated
as 39 and 78 weeks.
"""
from typing import Iterable, List, Optional, Tuple

from .dates import DateLike
from .models import (CompletionRecord, GeneratedVisit, NextPending,
                     ProgressSummary, ScheduleEntry)
from .schedule_logic import compute_progress, find_next_pending, generate_schedule

KEPI_SCHEDULE: Tuple[ScheduleEntry, ...] = (
    # At birth
    ScheduleEntry(
        "BCG", 1, 0, age_days=0,
        method="0.05ml intradermal injection, left forearm",
        purpose="Protects against tuberculosis (TB)",
        pre_tips=("Ensure baby is healthy", "No fever or illness"),
        post_tips=("Small scar is normal", "Keep injection site clean",
                   "Avoid tight clothing on arm"),
    ),
    ScheduleEntry(
        "OPV", 1, 0, age_days=0,
        method="2 oral drops",
        purpose="Protects against polio",
        pre_tips=("Baby should not be sick", "No diarrhea or vomiting"),
        post_tips=("Continue breastfeeding normally", "Watch for any unusual symptoms"),
    ),

    # 6 weeks
    ScheduleEntry(
        "Pentavalent", 1, 6,
        method="0.5ml intramuscular, outer thigh",
        purpose="Protects against diphtheria, pertussis (whooping cough), tetanus, "
                "hepatitis B, and Haemophilus influenzae type b",
        side_effects=("Mild fever", "Swelling at injection site", "Fussiness"),
        pre_tips=("Ensure baby is well", "Bring vaccination card"),
        post_tips=("Give paracetamol if fever develops",
                   "Apply cool compress to injection site", "Continue normal feeding"),
    ),
    ScheduleEntry(
        "OPV", 2, 6,
        method="Oral drops",
        purpose="Booster protection against polio",
        post_tips=("Do not give other oral medications for 1 hour",),
    ),
    ScheduleEntry(
        "PCV", 1, 6,
        method="0.5ml intramuscular",
        purpose="Protects against pneumonia and meningitis",
        side_effects=("Mild fever", "Injection site tenderness"),
        post_tips=("Monitor for fever", "Seek medical care if breathing difficulties occur"),
    ),
    ScheduleEntry(
        "Rotavirus", 1, 6,
        method="1.5ml oral",
        purpose="Protects against severe diarrhea",
        pre_tips=("Baby should not have diarrhea or vomiting",),
        post_tips=("Continue breastfeeding", "Watch for signs of intussusception (rare)"),
    ),

    # 10 weeks
    ScheduleEntry(
        "Pentavalent", 2, 10,
        method="0.5ml intramuscular",
        purpose="Second dose for continued protection",
        side_effects=("Similar to first dose, may be slightly more reaction",),
        post_tips=("Same care as first dose", "Complete rest for baby"),
    ),
    ScheduleEntry("OPV", 3, 10, method="Oral drops",
                  purpose="Third dose of polio protection"),
    ScheduleEntry("PCV", 2, 10, method="0.5ml intramuscular",
                  purpose="Second dose for pneumonia protection"),
    ScheduleEntry("Rotavirus", 2, 10, method="1.5ml oral",
                  purpose="Second dose for rotavirus protection"),

    # 14 weeks
    ScheduleEntry(
        "Pentavalent", 3, 14,
        method="0.5ml intramuscular",
        purpose="Final dose of pentavalent series",
        post_tips=("This completes the pentavalent series",
                   "Important milestone in protection"),
    ),
    ScheduleEntry("OPV", 4, 14, method="Oral drops",
                  purpose="Fourth dose of polio protection"),
    ScheduleEntry("PCV", 3, 14, method="0.5ml intramuscular",
                  purpose="Third dose completes primary PCV series"),
    ScheduleEntry(
        "IPV", 1, 14,
        method="0.5ml injection",
        purpose="Inactivated polio vaccine for additional protection",
        pre_tips=("This is an injection, not oral drops",),
        post_tips=("Provides stronger immunity than oral vaccine alone",),
    ),

    # 9 months
    ScheduleEntry(
        "Measles-Rubella", 1, 39,
        method="0.5ml injection",
        purpose="Protects against measles and rubella",
        side_effects=("Mild fever 7-12 days after vaccination", "Mild rash"),
        pre_tips=("Very important vaccine", "Child should be healthy"),
        post_tips=("Fever after 1 week is normal", "Give paracetamol for fever",
                   "Avoid crowded places for few days"),
    ),
    ScheduleEntry(
        "Vitamin A", 1, 39,
        method="200,000 IU oral",
        purpose="Supports immune system and vision",
        post_tips=("Given every 6 months until age 5", "Very safe and important"),
    ),

    # 18 months
    ScheduleEntry(
        "Measles-Rubella", 2, 78,
        method="0.5ml injection",
        purpose="Booster dose for measles and rubella protection",
        pre_tips=("Second dose ensures full protection", "Critical for community immunity"),
        post_tips=("This completes measles vaccination series",
                   "Child now has strong protection"),
    ),
    ScheduleEntry("Vitamin A", 2, 78, method="200,000 IU oral",
                  purpose="Continued vitamin A supplementation"),
)

# a vaccine counts as age-appropriate up to this many weeks after its slot
AGE_WINDOW_WEEKS = 2


def get_kepi_schedule() -> Tuple[ScheduleEntry, ...]:
    return KEPI_SCHEDULE


def generate_vaccination_schedule(date_of_birth: DateLike) -> List[GeneratedVisit]:
    return generate_schedule(date_of_birth, KEPI_SCHEDULE, start_label="At birth")


def get_next_vaccination(
    date_of_birth: DateLike,
    completions: Iterable[CompletionRecord],
    today: DateLike,
) -> Optional[NextPending]:
    return find_next_pending(generate_vaccination_schedule(date_of_birth), completions, today)


def calculate_vaccination_progress(
    date_of_birth: DateLike,
    completions: Iterable[CompletionRecord],
    today: DateLike,
) -> ProgressSummary:
    return compute_progress(generate_vaccination_schedule(date_of_birth), completions, today)


def get_vaccine_info(name: str, dose: int) -> Optional[ScheduleEntry]:
    for entry in KEPI_SCHEDULE:
        if entry.name == name and entry.dose == dose:
            return entry
    return None


def get_age_appropriate_vaccines(age_in_weeks: int) -> List[ScheduleEntry]:
    """Entries whose slot is at most AGE_WINDOW_WEEKS behind the child's age."""
    return [
        e for e in KEPI_SCHEDULE
        if e.age_weeks <= age_in_weeks <= e.age_weeks + AGE_WINDOW_WEEKS
    ]
