# src/mamatrack/anc.py
"""
Kenya antenatal care (ANC) guidelines, 2024 (Ministry of Health / WHO).

Visit offsets are gestational weeks counted from the last menstrual period.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from .dates import DateLike, parse_date, parse_optional_date
from .models import ANC_VISIT_NAME, RiskAssessment, ScheduleEntry
from .schedule_logic import generate_schedule

PREGNANCY_DAYS = 280
VISITS_MAX = 4
WEEKS_PER_EXPECTED_VISIT = 8
TETANUS_WINDOW = (27, 36)


@dataclass(frozen=True)
class AncGuideline:
    category: str                 # tetanus | ifas | visits | screening | nutrition
    title: str
    description: str
    timing: str
    purpose: str
    tips: Tuple[str, ...]
    importance: str               # critical | important | recommended
    dosage: Optional[str] = None
    side_effects: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AncVisitTemplate:
    visit_number: int
    gestational_weeks: int
    purposes: Tuple[str, ...]
    tests: Tuple[str, ...]

    def as_entry(self) -> ScheduleEntry:
        return ScheduleEntry(
            name=ANC_VISIT_NAME,
            dose=self.visit_number,
            age_weeks=self.gestational_weeks,
            method="Health facility visit",
            purpose="; ".join(self.purposes),
        )


@dataclass(frozen=True)
class AncVisitPlan:
    visit_number: int
    gestational_weeks: int
    date: date
    purposes: Tuple[str, ...]
    tests: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            "visit_number": self.visit_number,
            "gestational_weeks": self.gestational_weeks,
            "date": self.date.isoformat(),
            "purposes": list(self.purposes),
            "tests": list(self.tests),
        }


@dataclass(frozen=True)
class GestationalAge:
    weeks: int
    days: int
    trimester: int


@dataclass(frozen=True)
class TetanusTiming:
    can_receive: bool
    recommended: bool
    message: str


@dataclass(frozen=True)
class IfasCompliance:
    should_start: bool
    duration_days: int
    message: str


@dataclass(frozen=True)
class AncCompliance:
    on_track: bool
    missed_visits: int
    next_visit_due: Optional[date]
    message: str


ANC_GUIDELINES: Tuple[AncGuideline, ...] = (
    AncGuideline(
        category="tetanus",
        title="Tetanus Vaccination During Pregnancy",
        description="Tetanus vaccination protects both mother and baby from tetanus infection",
        timing="27-36 weeks gestation (ideally as early as possible in that window)",
        purpose="Prevents tetanus in mother and provides passive immunity to newborn "
                "for first 2 months",
        tips=(
            "Can be given at any time during pregnancy if needed",
            "Safe for both mother and baby",
            "Free at all public health facilities",
            "Bring vaccination card to every visit",
            "If previous tetanus vaccination unknown, start 3-dose series",
        ),
        importance="critical",
    ),
    AncGuideline(
        category="ifas",
        title="Iron-Folic Acid Supplementation (IFAS)",
        description="Daily iron and folic acid supplements prevent anemia and support "
                    "baby development",
        timing="Throughout pregnancy, starting as early as possible",
        dosage="30-60mg elemental iron + 400μg (0.4mg) folic acid daily",
        purpose="Prevents iron deficiency anemia in mother and supports baby brain and "
                "spinal cord development",
        side_effects=("Nausea (take with food)", "Constipation (increase fluids)",
                      "Dark colored stool (normal)", "Stomach upset"),
        tips=(
            "Take with Vitamin C foods (oranges, tomatoes) for better absorption",
            "Avoid tea or coffee within 2 hours of taking IFAS",
            "Take with meals if stomach upset occurs",
            "Free distribution at all ANC visits",
            "Continue throughout breastfeeding",
            "Report severe side effects to healthcare provider",
        ),
        importance="critical",
    ),
    AncGuideline(
        category="visits",
        title="ANC Visit Schedule",
        description="Regular antenatal visits ensure healthy pregnancy and early problem "
                    "detection",
        timing="Minimum 4 visits for low-risk pregnancies, more if complications",
        purpose="Monitor maternal and fetal health, prevent complications, provide education",
        tips=(
            "First visit before 16 weeks (ideally 8-12 weeks)",
            "Bring urine sample to each visit",
            "Ask questions about any concerns",
            "Follow all recommendations from healthcare provider",
            "Attend all scheduled visits even if feeling well",
        ),
        importance="critical",
    ),
    AncGuideline(
        category="screening",
        title="Essential ANC Screening Tests",
        description="Laboratory tests to detect and prevent pregnancy complications",
        timing="Various tests at different gestational ages",
        purpose="Early detection of conditions that could affect mother or baby",
        tips=(
            "Blood type and Rh factor testing",
            "Hemoglobin levels for anemia",
            "HIV, syphilis, and hepatitis B screening",
            "Urine testing for protein and infection",
            "Blood pressure monitoring",
            "All tests are confidential and important",
        ),
        importance="critical",
    ),
    AncGuideline(
        category="nutrition",
        title="Pregnancy Nutrition Guidelines",
        description="Proper nutrition supports healthy pregnancy and baby development",
        timing="Throughout pregnancy",
        purpose="Ensure adequate nutrients for mother and growing baby",
        tips=(
            "Eat variety of foods from all food groups",
            "Include iron-rich foods: green leafy vegetables, beans, meat",
            "Consume calcium-rich foods: milk, yogurt, sardines",
            "Eat fruits rich in Vitamin C: oranges, guavas, mangoes",
            "Avoid alcohol and limit caffeine",
            "Stay hydrated with clean water",
            "Small frequent meals help with nausea",
        ),
        importance="important",
    ),
)

ANC_VISITS: Tuple[AncVisitTemplate, ...] = (
    AncVisitTemplate(
        1, 12,
        ("Initial assessment", "Risk evaluation", "Health education"),
        ("Blood type & Rh", "Hemoglobin", "HIV/Syphilis/HepB", "Urine analysis", "Weight & BP"),
    ),
    AncVisitTemplate(
        2, 20,
        ("Fetal development check", "IFAS compliance", "Nutritional counseling"),
        ("Hemoglobin", "Urine analysis", "Weight & BP", "Fetal heart rate"),
    ),
    AncVisitTemplate(
        3, 28,
        ("Third trimester assessment", "Tetanus vaccination", "Birth preparedness"),
        ("Hemoglobin", "Urine analysis", "Weight & BP", "Fetal position"),
    ),
    AncVisitTemplate(
        4, 36,
        ("Pre-delivery assessment", "Birth plan discussion", "Newborn care education"),
        ("Hemoglobin", "Urine analysis", "Weight & BP", "Fetal presentation"),
    ),
)

ANC_TABLE: Tuple[ScheduleEntry, ...] = tuple(v.as_entry() for v in ANC_VISITS)

_SEVERITY = {"low": 0, "medium": 1, "high": 2}


def get_anc_guidelines() -> Tuple[AncGuideline, ...]:
    return ANC_GUIDELINES


def calculate_pregnancy_weeks(lmp_date: DateLike, today: DateLike) -> GestationalAge:
    days_total = abs((parse_date(today) - parse_date(lmp_date)).days)
    weeks, days = divmod(days_total, 7)
    if weeks >= 28:
        trimester = 3
    elif weeks >= 14:
        trimester = 2
    else:
        trimester = 1
    return GestationalAge(weeks, days, trimester)


def calculate_due_date(lmp_date: DateLike) -> date:
    return parse_date(lmp_date) + timedelta(days=PREGNANCY_DAYS)


def generate_anc_schedule(lmp_date: DateLike) -> List[AncVisitPlan]:
    templates: Dict[int, AncVisitTemplate] = {v.visit_number: v for v in ANC_VISITS}
    plans = []
    for visit in generate_schedule(lmp_date, ANC_TABLE, start_label="At start"):
        tpl = templates[visit.dose]
        plans.append(AncVisitPlan(tpl.visit_number, tpl.gestational_weeks, visit.date,
                                  tpl.purposes, tpl.tests))
    return plans


def get_tetanus_timing(current_weeks: int) -> TetanusTiming:
    start, end = TETANUS_WINDOW
    if current_weeks < start:
        return TetanusTiming(True, False,
                             "Tetanus vaccination can be given anytime, but optimal "
                             f"timing is {start}-{end} weeks")
    if current_weeks <= end:
        return TetanusTiming(True, True,
                             f"This is the optimal time for tetanus vaccination ({start}-{end} weeks)")
    return TetanusTiming(True, True,
                         "Tetanus vaccination should be given soon - you are past the "
                         "optimal window")


def get_ifas_compliance(start_date: Optional[DateLike], today: DateLike) -> IfasCompliance:
    start = parse_optional_date(start_date)
    if start is None:
        return IfasCompliance(
            True, 0,
            "IFAS supplements should be started immediately. They are critical for "
            "preventing anemia and supporting baby development.",
        )
    days_on_ifas = (parse_date(today) - start).days
    return IfasCompliance(
        False, days_on_ifas,
        f"You have been taking IFAS for {days_on_ifas} days. Continue daily throughout "
        "pregnancy and breastfeeding.",
    )


def expected_visits(current_weeks: int) -> int:
    """Rough estimate: one visit per 8 weeks, capped at the 4 scheduled ones."""
    return min(current_weeks // WEEKS_PER_EXPECTED_VISIT, VISITS_MAX)


def get_anc_compliance_status(
    lmp_date: DateLike,
    completed_visits: int,
    current_weeks: int,
) -> AncCompliance:
    missed = max(0, expected_visits(current_weeks) - completed_visits)
    next_visit = next(
        (v for v in generate_anc_schedule(lmp_date) if v.gestational_weeks > current_weeks),
        None,
    )
    if missed > 0:
        message = (f"You have missed {missed} ANC visits. Please visit your health "
                   "facility soon.")
    else:
        message = "You are on track with your ANC visits. Keep up the good work!"
    return AncCompliance(missed == 0, missed, next_visit.date if next_visit else None, message)


def assess_pregnancy_risk(
    age: int,
    current_weeks: int,
    tetanus_vaccinated: bool,
    ifas_started: bool,
    anc_visits: int,
) -> RiskAssessment:
    """
    Flat rule table. Every rule is checked, each may add a factor and a
    recommendation; the tier is the highest severity any rule raised.
    """
    result = RiskAssessment()

    def flag(severity, factor, recommendation):
        result.factors.append(factor)
        result.recommendations.append(recommendation)
        if _SEVERITY[severity] > _SEVERITY[result.level]:
            result.level = severity

    if age < 18:
        flag("medium", "Young maternal age (under 18)", "Extra nutritional support needed")
    if age > 35:
        flag("medium", "Advanced maternal age (over 35)",
             "More frequent monitoring may be needed")

    if current_weeks > TETANUS_WINDOW[1] and not tetanus_vaccinated:
        flag("high", "Tetanus vaccination overdue", "Get tetanus vaccination immediately")

    if not ifas_started and current_weeks > 12:
        flag("medium", "IFAS supplements not started",
             "Start iron and folic acid supplements immediately")

    gap = expected_visits(current_weeks) - anc_visits
    if gap > 0:
        # a single missed visit is reported but does not raise the tier
        flag("high" if gap > 1 else "low", "Missed ANC visits",
             "Catch up on missed antenatal care visits")

    return result
