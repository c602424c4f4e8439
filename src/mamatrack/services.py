# src/mamatrack/services.py
"""
HealthTracker: the application layer between callers (CLI, web handlers)
and the Database. Schedules are generated from the static tables and
materialized into rows so that actual vs. scheduled state can be tracked.
"""
import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple

from .anc import (AncCompliance, assess_pregnancy_risk, calculate_due_date,
                  calculate_pregnancy_weeks, generate_anc_schedule,
                  get_anc_compliance_status)
from .clock import Clock
from .config import DEFAULT_CONFIG
from .data import Database
from .dates import DateLike, format_child_age, parse_date, parse_optional_date
from .errors import InvalidRecordError
from .health_tips import HealthTip, TipContext, TipProvider, generate_health_tips
from .kepi import generate_vaccination_schedule
from .models import (AncVisit, Child, CommunityComment, CommunityPost,
                     HealthFacility, HealthReminder, NextPending, Pregnancy,
                     ProgressSummary, RiskAssessment, User, Vaccination)
from .schedule_logic import compute_progress, find_next_pending, upcoming_visits

EARTH_RADIUS_KM = 6371.0
NEARBY_LIMIT = 20


@dataclass
class ChildOverview:
    child: Child
    age: str
    next_vaccination: Optional[NextPending]
    progress: ProgressSummary


@dataclass
class PregnancyOverview:
    pregnancy: Pregnancy
    trimester: int
    next_anc_visit: Optional[AncVisit]


def vaccination_reminder_title(vaccine_name: str) -> str:
    return f"{vaccine_name} Vaccination Due"


def anc_reminder_title(visit_number: int) -> str:
    return f"ANC Visit {visit_number}"


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


class HealthTracker:
    def __init__(self, db: Database, config: dict = None,
                 tip_provider: Optional[TipProvider] = None, clock: Clock = None):
        self.db = db
        self.config = config or DEFAULT_CONFIG
        self.tip_provider = tip_provider
        self.clock = clock or date.today

    def today(self) -> date:
        return self.clock()

    def _reminder_setting(self, key: str) -> int:
        return self.config.get('reminders', {}).get(key, DEFAULT_CONFIG['reminders'][key])

    # Users
    def get_or_create_user(self, auth_uid: str, email: str, display_name: str = "") -> User:
        user = self.db.get_user_by_auth_uid(auth_uid)
        if user:
            return user
        first, _, last = (display_name or "").strip().partition(" ")
        user = self.db.save_user(User(auth_uid, email, first, last.strip()))
        logging.info(f"[MamaTrack] Created user id={user.id}")
        return user

    # Children / vaccinations
    def add_child(self, mother_id: int, first_name: str, last_name: str,
                  date_of_birth: DateLike, gender: str,
                  birth_weight: int = None, place_of_birth: str = None) -> Child:
        """Store the child, materialize the KEPI schedule and remind of the next slots."""
        self.db.get_user(mother_id)
        child = self.db.save_child(Child(mother_id, first_name, last_name, date_of_birth,
                                         gender, birth_weight, place_of_birth))
        schedule = generate_vaccination_schedule(child.date_of_birth)
        for visit in schedule:
            self.db.save_vaccination(Vaccination(child.id, visit.name, visit.dose, visit.date))

        lookahead = self._reminder_setting('vaccination_lookahead')
        for visit in upcoming_visits(schedule, self.today(), lookahead):
            self.db.save_reminder(HealthReminder(
                user_id=mother_id,
                child_id=child.id,
                type='vaccination',
                title=vaccination_reminder_title(visit.name),
                description=f"{child.first_name}'s {visit.name} vaccination (dose {visit.dose}) is due",
                due_date=visit.date,
            ))
        logging.info(f"[MamaTrack] Child id={child.id} added with {len(schedule)} vaccinations")
        return child

    def vaccination_progress(self, child_id: int) -> ProgressSummary:
        child = self.db.get_child(child_id)
        completions = [v.as_completion() for v in self.db.load_vaccinations(child_id)]
        return compute_progress(generate_vaccination_schedule(child.date_of_birth),
                                completions, self.today())

    def children_overview(self, mother_id: int) -> List[ChildOverview]:
        today = self.today()
        out = []
        for child in self.db.load_children(mother_id):
            schedule = generate_vaccination_schedule(child.date_of_birth)
            completions = [v.as_completion() for v in self.db.load_vaccinations(child.id)]
            out.append(ChildOverview(
                child=child,
                age=format_child_age(child.date_of_birth, today),
                next_vaccination=find_next_pending(schedule, completions, today),
                progress=compute_progress(schedule, completions, today),
            ))
        return out

    def record_vaccination(self, vaccination_id: int, administered_date: DateLike = None,
                           facility_name: str = None, notes: str = None) -> Vaccination:
        vac = self.db.get_vaccination(vaccination_id)
        vac.administered_date = parse_date(administered_date) if administered_date else self.today()
        vac.status = 'administered'
        if facility_name:
            vac.facility_name = facility_name
        if notes:
            vac.notes = notes
        self.db.save_vaccination(vac)
        self.db.complete_reminders('vaccination', vaccination_reminder_title(vac.vaccine_name),
                                   vac.scheduled_date, child_id=vac.child_id)
        logging.info(f"[MamaTrack] Vaccination id={vac.id} ({vac.vaccine_name} dose "
                     f"{vac.dose_number}) administered on {vac.administered_date}")
        return vac

    def refresh_overdue_vaccinations(self, child_id: int) -> int:
        """Flag scheduled rows whose date has passed as overdue."""
        today = self.today()
        changed = 0
        for vac in self.db.load_vaccinations(child_id):
            if vac.status == 'scheduled' and vac.scheduled_date < today:
                vac.status = 'overdue'
                self.db.save_vaccination(vac)
                changed += 1
        return changed

    # Pregnancy / ANC
    def add_pregnancy(self, mother_id: int, lmp_date: DateLike,
                      tetanus_vaccinated: bool = False,
                      ifas_start_date: DateLike = None) -> Pregnancy:
        self.db.get_user(mother_id)
        today = self.today()
        lmp = parse_date(lmp_date)
        age = calculate_pregnancy_weeks(lmp, today)
        preg = self.db.save_pregnancy(Pregnancy(
            mother_id, lmp, calculate_due_date(lmp),
            tetanus_vaccinated=tetanus_vaccinated,
            ifas_start_date=parse_optional_date(ifas_start_date),
            current_weeks=age.weeks, current_days=age.days,
        ))

        plan = generate_anc_schedule(lmp)
        for visit in plan:
            self.db.save_anc_visit(AncVisit(preg.id, visit.visit_number, visit.date,
                                            gestational_weeks=visit.gestational_weeks))

        for visit in plan[:self._reminder_setting('anc_visit_count')]:
            self.db.save_reminder(HealthReminder(
                user_id=mother_id,
                pregnancy_id=preg.id,
                type='anc_visit',
                title=anc_reminder_title(visit.visit_number),
                description=f"Your antenatal care visit {visit.visit_number} is scheduled",
                due_date=visit.date,
            ))
        self.db.save_reminder(HealthReminder(
            user_id=mother_id,
            pregnancy_id=preg.id,
            type='ifas_refill',
            title='IFAS Supplements',
            description='Remember to take your Iron and Folic Acid supplements daily',
            due_date=today + timedelta(days=self._reminder_setting('ifas_refill_days')),
        ))
        logging.info(f"[MamaTrack] Pregnancy id={preg.id} added, due {preg.expected_due_date}")
        return preg

    def active_pregnancy(self, mother_id: int) -> Optional[PregnancyOverview]:
        """Active pregnancy with refreshed gestational age, or None."""
        preg = self.db.get_active_pregnancy(mother_id)
        if preg is None:
            return None
        age = calculate_pregnancy_weeks(preg.lmp_date, self.today())
        preg.current_weeks, preg.current_days = age.weeks, age.days
        self.db.save_pregnancy(preg)
        next_visit = next((v for v in self.db.load_anc_visits(preg.id)
                           if v.status == 'scheduled'), None)
        return PregnancyOverview(preg, age.trimester, next_visit)

    def record_anc_visit(self, visit_id: int, actual_date: DateLike = None,
                         facility_name: str = None, weight: int = None,
                         blood_pressure: str = None, hemoglobin_level: str = None,
                         notes: str = None) -> AncVisit:
        visit = self.db.get_anc_visit(visit_id)
        visit.actual_date = parse_date(actual_date) if actual_date else self.today()
        visit.status = 'completed'
        for attr, value in (('facility_name', facility_name), ('weight', weight),
                            ('blood_pressure', blood_pressure),
                            ('hemoglobin_level', hemoglobin_level), ('notes', notes)):
            if value is not None:
                setattr(visit, attr, value)
        self.db.save_anc_visit(visit)
        self.db.complete_reminders('anc_visit', anc_reminder_title(visit.visit_number),
                                   visit.scheduled_date, pregnancy_id=visit.pregnancy_id)
        return visit

    def mark_tetanus_vaccinated(self, pregnancy_id: int, vaccination_date: DateLike = None) -> Pregnancy:
        preg = self.db.get_pregnancy(pregnancy_id)
        preg.tetanus_vaccinated = True
        preg.tetanus_vaccination_date = parse_date(vaccination_date) if vaccination_date else self.today()
        return self.db.save_pregnancy(preg)

    def start_ifas(self, pregnancy_id: int, start_date: DateLike = None) -> Pregnancy:
        preg = self.db.get_pregnancy(pregnancy_id)
        preg.ifas_start_date = parse_date(start_date) if start_date else self.today()
        return self.db.save_pregnancy(preg)

    def _completed_anc_visits(self, pregnancy_id: int) -> int:
        return sum(1 for v in self.db.load_anc_visits(pregnancy_id) if v.status == 'completed')

    def anc_compliance(self, pregnancy_id: int) -> AncCompliance:
        preg = self.db.get_pregnancy(pregnancy_id)
        weeks = calculate_pregnancy_weeks(preg.lmp_date, self.today()).weeks
        return get_anc_compliance_status(preg.lmp_date, self._completed_anc_visits(pregnancy_id), weeks)

    def pregnancy_risk(self, pregnancy_id: int, maternal_age: int) -> RiskAssessment:
        preg = self.db.get_pregnancy(pregnancy_id)
        weeks = calculate_pregnancy_weeks(preg.lmp_date, self.today()).weeks
        return assess_pregnancy_risk(
            maternal_age, weeks, preg.tetanus_vaccinated,
            preg.ifas_start_date is not None, self._completed_anc_visits(pregnancy_id),
        )

    # Reminders
    def upcoming_reminders(self, user_id: int, limit: int = 10) -> List[HealthReminder]:
        return self.db.load_upcoming_reminders(user_id, self.today(), limit)

    def complete_reminder(self, reminder_id: int) -> HealthReminder:
        rem = self.db.get_reminder(reminder_id)
        rem.is_completed = True
        return self.db.save_reminder(rem)

    # Health tips
    def tip_context(self, user_id: int) -> TipContext:
        user = self.db.get_user(user_id)
        today = self.today()
        ctx = TipContext(first_name=user.first_name,
                         children_ages=[format_child_age(c.date_of_birth, today)
                                        for c in self.db.load_children(user_id)])
        preg = self.db.get_active_pregnancy(user_id)
        if preg:
            ctx.pregnancy_weeks = calculate_pregnancy_weeks(preg.lmp_date, today).weeks
            ctx.tetanus_vaccinated = preg.tetanus_vaccinated
            ctx.ifas_started = preg.ifas_start_date is not None
        return ctx

    def health_tips(self, user_id: int) -> List[HealthTip]:
        return generate_health_tips(self.tip_context(user_id), self.tip_provider)

    # Community
    def create_post(self, author_id: int, content: str, category: str = 'general') -> CommunityPost:
        self.db.get_user(author_id)
        return self.db.save_post(CommunityPost(author_id, content, category))

    def community_posts(self, category: str = None, search: str = None, limit: int = 20) -> List[CommunityPost]:
        return self.db.load_posts(category, search, limit)

    def community_highlights(self, limit: int = 5) -> List[CommunityPost]:
        return self.db.load_highlights(limit)

    def like_post(self, post_id: int) -> CommunityPost:
        self.db.like_post(post_id)
        return self.db.get_post(post_id)

    def add_comment(self, post_id: int, author_id: int, content: str) -> CommunityComment:
        if not content or not content.strip():
            raise InvalidRecordError("Comment content must not be empty")
        self.db.get_user(author_id)
        return self.db.save_comment(CommunityComment(post_id, author_id, content))

    def comments(self, post_id: int) -> List[CommunityComment]:
        return self.db.load_comments(post_id)

    # Facilities
    def add_facility(self, facility: HealthFacility) -> HealthFacility:
        return self.db.save_facility(facility)

    def facilities(self, county: str = None, type: str = None) -> List[HealthFacility]:
        return self.db.load_facilities(county, type)

    def nearby_facilities(self, lat: float, lng: float,
                          radius_km: float = 10) -> List[Tuple[HealthFacility, float]]:
        """(facility, distance_km) within radius, closest first."""
        found = []
        for fac in self.db.load_facilities():
            if fac.latitude is None or fac.longitude is None:
                continue
            dist = haversine_km(lat, lng, fac.latitude, fac.longitude)
            if dist < radius_km:
                found.append((fac, dist))
        found.sort(key=lambda pair: pair[1])
        return found[:NEARBY_LIMIT]
