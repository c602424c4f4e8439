# src/mamatrack/models.py
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

from .dates import parse_date, parse_optional_date
from .errors import InvalidRecordError

VACCINATION_STATUSES = ("scheduled", "administered", "overdue", "missed")
ANC_VISIT_STATUSES = ("scheduled", "completed", "missed")
REMINDER_TYPES = ("vaccination", "anc_visit", "ifas_refill", "health_tip")
PRIORITIES = ("low", "normal", "high", "urgent")
POST_CATEGORIES = ("pregnancy", "childcare", "vaccination", "nutrition", "general")
FACILITY_TYPES = ("dispensary", "health_center", "hospital", "clinic", "maternity")
GENDERS = ("male", "female")

ANC_VISIT_NAME = "ANC Visit"


def _check_choice(value, choices, what):
    if value not in choices:
        raise InvalidRecordError(f"Unknown {what} {value!r}, expected one of {choices}")


# ---------------------------------------------------------------------------
# Schedule core
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScheduleEntry:
    """A row of a static schedule table (one vaccine dose, one ANC visit)."""
    name: str
    dose: int                     # ordinal within the series, 1-based
    age_weeks: int                # offset from anchor date in weeks
    method: str
    purpose: str
    age_days: Optional[int] = None   # day-level override for same-day events
    side_effects: Tuple[str, ...] = ()
    pre_tips: Tuple[str, ...] = ()
    post_tips: Tuple[str, ...] = ()

    @property
    def offset_days(self) -> int:
        if self.age_days is not None:
            return self.age_days
        return self.age_weeks * 7


@dataclass(frozen=True)
class GeneratedVisit:
    """A schedule entry pinned to a calendar date."""
    name: str
    dose: int
    date: date
    age_label: str
    method: str
    purpose: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "dose": self.dose,
            "date": self.date.isoformat(),
            "age_label": self.age_label,
            "method": self.method,
            "purpose": self.purpose,
        }


@dataclass(frozen=True)
class CompletionRecord:
    """What actually happened for a (name, dose) slot. Only read, never written."""
    name: str
    dose: int
    status: str
    actual_date: Optional[date] = None

    def __post_init__(self):
        _check_choice(self.status, VACCINATION_STATUSES, "completion status")

    @property
    def is_administered(self) -> bool:
        return self.status == "administered"

    @classmethod
    def from_dict(cls, raw: dict) -> "CompletionRecord":
        """Accepts both snake_case and the camelCase keys of the web API."""
        name = raw.get("name") or raw.get("vaccine_name") or raw.get("vaccineName")
        dose = raw.get("dose", raw.get("dose_number", raw.get("doseNumber")))
        if not name or dose is None:
            raise InvalidRecordError(f"Completion record needs name and dose: {raw!r}")
        try:
            dose = int(dose)
        except (TypeError, ValueError) as e:
            raise InvalidRecordError(f"Dose is not an integer: {dose!r}") from e
        actual = (raw.get("actual_date") or raw.get("administered_date")
                  or raw.get("administeredDate"))
        return cls(name, dose, raw.get("status", "scheduled"), parse_optional_date(actual))


@dataclass(frozen=True)
class NextPending:
    name: str
    dose: int
    scheduled_date: date
    status: str                   # 'overdue' | 'scheduled'
    method: str
    purpose: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "dose": self.dose,
            "scheduled_date": self.scheduled_date.isoformat(),
            "status": self.status,
            "method": self.method,
            "purpose": self.purpose,
        }


@dataclass(frozen=True)
class ProgressSummary:
    due_count: int
    completed_count: int
    percentage: int               # may exceed 100, see compute_progress
    next_pending: Optional[NextPending]

    def to_dict(self) -> dict:
        return {
            "due_count": self.due_count,
            "completed_count": self.completed_count,
            "percentage": self.percentage,
            "next_pending": self.next_pending.to_dict() if self.next_pending else None,
        }


@dataclass
class RiskAssessment:
    level: str = "low"
    factors: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------

@dataclass
class User:
    """A mother/caregiver. auth_uid is issued by the external identity provider."""
    id: Optional[int] = field(default=None, init=False)    # db primary key
    auth_uid: str
    email: str
    first_name: str = ""
    last_name: str = ""
    phone_number: Optional[str] = None
    county: Optional[str] = None
    sub_county: Optional[str] = None


@dataclass
class Child:
    id: Optional[int] = field(default=None, init=False)
    mother_id: int
    first_name: str
    last_name: str
    date_of_birth: date
    gender: str
    birth_weight: Optional[int] = None      # grams
    place_of_birth: Optional[str] = None

    def __post_init__(self):
        self.date_of_birth = parse_date(self.date_of_birth)
        _check_choice(self.gender, GENDERS, "gender")


@dataclass
class Pregnancy:
    id: Optional[int] = field(default=None, init=False)
    mother_id: int
    lmp_date: date
    expected_due_date: date
    is_active: bool = True
    tetanus_vaccinated: bool = False
    tetanus_vaccination_date: Optional[date] = None
    ifas_start_date: Optional[date] = None
    current_weeks: Optional[int] = None
    current_days: Optional[int] = None

    def __post_init__(self):
        self.lmp_date = parse_date(self.lmp_date)
        self.expected_due_date = parse_date(self.expected_due_date)
        self.tetanus_vaccination_date = parse_optional_date(self.tetanus_vaccination_date)
        self.ifas_start_date = parse_optional_date(self.ifas_start_date)


@dataclass
class Vaccination:
    """Materialized copy of a KEPI slot, tracked independently of the schedule."""
    id: Optional[int] = field(default=None, init=False)
    child_id: int
    vaccine_name: str
    dose_number: int
    scheduled_date: date
    administered_date: Optional[date] = None
    facility_name: Optional[str] = None
    status: str = "scheduled"
    notes: Optional[str] = None

    def __post_init__(self):
        self.scheduled_date = parse_date(self.scheduled_date)
        self.administered_date = parse_optional_date(self.administered_date)
        _check_choice(self.status, VACCINATION_STATUSES, "vaccination status")

    def as_completion(self) -> CompletionRecord:
        return CompletionRecord(self.vaccine_name, self.dose_number, self.status,
                                self.administered_date)


@dataclass
class AncVisit:
    id: Optional[int] = field(default=None, init=False)
    pregnancy_id: int
    visit_number: int
    scheduled_date: date
    actual_date: Optional[date] = None
    facility_name: Optional[str] = None
    gestational_weeks: Optional[int] = None
    weight: Optional[int] = None            # kg
    blood_pressure: Optional[str] = None
    hemoglobin_level: Optional[str] = None
    notes: Optional[str] = None
    status: str = "scheduled"

    def __post_init__(self):
        self.scheduled_date = parse_date(self.scheduled_date)
        self.actual_date = parse_optional_date(self.actual_date)
        _check_choice(self.status, ANC_VISIT_STATUSES, "ANC visit status")

    def as_completion(self) -> CompletionRecord:
        # a completed visit satisfies its slot the same way an administered dose does
        status = "administered" if self.status == "completed" else self.status
        return CompletionRecord(ANC_VISIT_NAME, self.visit_number, status, self.actual_date)


@dataclass
class HealthReminder:
    id: Optional[int] = field(default=None, init=False)
    user_id: int
    type: str
    title: str
    description: str
    due_date: date
    child_id: Optional[int] = None
    pregnancy_id: Optional[int] = None
    is_completed: bool = False
    priority: str = "normal"

    def __post_init__(self):
        self.due_date = parse_date(self.due_date)
        _check_choice(self.type, REMINDER_TYPES, "reminder type")
        _check_choice(self.priority, PRIORITIES, "priority")


@dataclass
class CommunityPost:
    id: Optional[int] = field(default=None, init=False)
    author_id: int
    content: str
    category: Optional[str] = None
    likes_count: int = 0
    comments_count: int = 0
    created_at: Optional[str] = None        # ISO timestamp, set by the database

    def __post_init__(self):
        if self.category is not None:
            _check_choice(self.category, POST_CATEGORIES, "post category")
        if not self.content or not self.content.strip():
            raise InvalidRecordError("Post content must not be empty")


@dataclass
class CommunityComment:
    id: Optional[int] = field(default=None, init=False)
    post_id: int
    author_id: int
    content: str
    created_at: Optional[str] = None


@dataclass
class HealthFacility:
    id: Optional[int] = field(default=None, init=False)
    name: str
    type: str
    county: str
    sub_county: Optional[str] = None
    ward: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phone_number: Optional[str] = None
    services: List[str] = field(default_factory=list)
    vaccines_available: List[str] = field(default_factory=list)
    operating_hours: Optional[str] = None

    def __post_init__(self):
        _check_choice(self.type, FACILITY_TYPES, "facility type")


__all__ = [
    "ScheduleEntry", "GeneratedVisit", "CompletionRecord", "NextPending",
    "ProgressSummary", "RiskAssessment", "User", "Child", "Pregnancy",
    "Vaccination", "AncVisit", "HealthReminder", "CommunityPost",
    "CommunityComment", "HealthFacility",
]
