# src/mamatrack/main.py

import argparse
import logging
import os
import sys
import tempfile
from typing import List

from .anc import (calculate_due_date, calculate_pregnancy_weeks,
                  generate_anc_schedule, get_tetanus_timing)
from .charts import create_progress_chart
from .clock import make_clock
from .config import default_db_path, load_config
from .data import Database
from .dates import parse_date
from .errors import InvalidDateError, MamaTrackError
from .export_utils import format_reminder, schedule_rows
from .health_tips import provider_from_config
from .kepi import calculate_vaccination_progress, generate_vaccination_schedule
from .models import CompletionRecord
from .report import build_vaccination_card
from .services import HealthTracker
from .statistics import summarize_vaccinations


def _parse_done(items: List[str]) -> List[CompletionRecord]:
    """'BCG:1' -> administered completion for BCG dose 1."""
    done = []
    for item in items or []:
        name, _, dose = item.rpartition(':')
        if not name or not dose.isdigit():
            raise argparse.ArgumentTypeError(f"expected NAME:DOSE, got {item!r}")
        done.append(CompletionRecord(name, int(dose), 'administered'))
    return done


def cmd_kepi(args, tracker: HealthTracker):
    today = parse_date(args.today) if args.today else tracker.today()
    schedule = generate_vaccination_schedule(args.dob)
    for row in schedule_rows(schedule):
        print(" ", row)
    progress = calculate_vaccination_progress(args.dob, _parse_done(args.done), today)
    print(f"\nDue: {progress.due_count}  Given: {progress.completed_count}  "
          f"({progress.percentage}%)")
    nxt = progress.next_pending
    if nxt:
        print(f"Next: {nxt.name} dose {nxt.dose} on {nxt.scheduled_date.isoformat()} ({nxt.status})")
    else:
        print("✅ Schedule complete")


def cmd_anc(args, tracker: HealthTracker):
    today = parse_date(args.today) if args.today else tracker.today()
    age = calculate_pregnancy_weeks(args.lmp, today)
    print(f"Gestational age: {age.weeks} weeks {age.days} days (trimester {age.trimester})")
    print(f"Expected due date: {calculate_due_date(args.lmp).isoformat()}")
    for visit in generate_anc_schedule(args.lmp):
        print(f"  Visit {visit.visit_number}: {visit.date.isoformat()} (week {visit.gestational_weeks})")
    print(get_tetanus_timing(age.weeks).message)


def cmd_add_user(args, tracker: HealthTracker):
    user = tracker.get_or_create_user(args.auth_uid, args.email, args.name or "")
    print(f"User id={user.id} {user.first_name} {user.last_name}".rstrip())


def cmd_add_child(args, tracker: HealthTracker):
    child = tracker.add_child(args.mother_id, args.first_name, args.last_name, args.dob,
                              args.gender, args.birth_weight, args.place_of_birth)
    print(f"✅ Child id={child.id} added, vaccination schedule created")


def cmd_children(args, tracker: HealthTracker):
    overview = tracker.children_overview(args.mother_id)
    if not overview:
        print("No children registered.")
    for item in overview:
        line = f"[{item.child.id}] {item.child.first_name} ({item.age}) {item.progress.percentage}%"
        nxt = item.next_vaccination
        if nxt:
            line += f" next: {nxt.name} dose {nxt.dose} {nxt.scheduled_date.isoformat()} ({nxt.status})"
        print(line)


def cmd_vaccinate(args, tracker: HealthTracker):
    vac = tracker.record_vaccination(args.vaccination_id, args.date, args.facility)
    print(f"✅ {vac.vaccine_name} dose {vac.dose_number} recorded on {vac.administered_date.isoformat()}")


def cmd_add_pregnancy(args, tracker: HealthTracker):
    preg = tracker.add_pregnancy(args.mother_id, args.lmp, tetanus_vaccinated=args.tetanus)
    print(f"✅ Pregnancy id={preg.id} added, due {preg.expected_due_date.isoformat()}")


def cmd_pregnancy(args, tracker: HealthTracker):
    overview = tracker.active_pregnancy(args.mother_id)
    if overview is None:
        print("No active pregnancy.")
        return
    preg = overview.pregnancy
    print(f"Week {preg.current_weeks} day {preg.current_days} (trimester {overview.trimester}), "
          f"due {preg.expected_due_date.isoformat()}")
    if overview.next_anc_visit:
        print(f"Next ANC visit: {overview.next_anc_visit.visit_number} on "
              f"{overview.next_anc_visit.scheduled_date.isoformat()}")
    compliance = tracker.anc_compliance(preg.id)
    print(compliance.message)
    if args.age is not None:
        risk = tracker.pregnancy_risk(preg.id, args.age)
        print(f"Risk level: {risk.level}")
        for factor, rec in zip(risk.factors, risk.recommendations):
            print(f"  - {factor}: {rec}")


def cmd_reminders(args, tracker: HealthTracker):
    today = tracker.today()
    reminders = tracker.upcoming_reminders(args.user_id, args.limit)
    if not reminders:
        print("No upcoming reminders.")
    for rem in reminders:
        print(f"[{rem.id}] {format_reminder(rem, today)}")


def cmd_tips(args, tracker: HealthTracker):
    for tip in tracker.health_tips(args.user_id):
        print(f"* {tip.title} ({tip.priority})")
        print(f"  {tip.content}")


def cmd_report(args, tracker: HealthTracker):
    child = tracker.db.get_child(args.child_id)
    vaccinations = tracker.db.load_vaccinations(child.id)
    schedule = generate_vaccination_schedule(child.date_of_birth)
    progress = tracker.vaccination_progress(child.id)
    with tempfile.TemporaryDirectory() as tmp:
        chart = os.path.join(tmp, 'progress.png')
        create_progress_chart(summarize_vaccinations(vaccinations), chart,
                              subtitle=f"{child.first_name}: {progress.percentage}% of due doses")
        build_vaccination_card(args.output, child, schedule, vaccinations, progress,
                               chart_png=chart, today=tracker.today())
    print(f"✅ Report written to {args.output}")


def cmd_backup(args, tracker: HealthTracker):
    tracker.db.export_to_sql(args.file)
    print(f"✅ Backup written to {args.file}")


def cmd_restore(args, tracker: HealthTracker):
    backup = tracker.db.atomic_import_from_sql(args.file)
    if backup:
        print(f"Previous database saved as {backup}")
    print(f"✅ Restored from {args.file}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog='mamatrack', description='Maternal and child health tracker (Kenya)')
    p.add_argument('--db', help='SQLite database file (default from config)')
    p.add_argument('--config', help='JSON config file')
    p.add_argument('-v', '--verbose', action='store_true')
    sub = p.add_subparsers(dest='command', required=True)

    s = sub.add_parser('kepi', help='KEPI vaccination schedule for a date of birth')
    s.add_argument('dob')
    s.add_argument('--today')
    s.add_argument('--done', nargs='*', metavar='NAME:DOSE', default=[])
    s.set_defaults(func=cmd_kepi)

    s = sub.add_parser('anc', help='ANC schedule for a last menstrual period')
    s.add_argument('lmp')
    s.add_argument('--today')
    s.set_defaults(func=cmd_anc)

    s = sub.add_parser('add-user')
    s.add_argument('auth_uid')
    s.add_argument('email')
    s.add_argument('--name')
    s.set_defaults(func=cmd_add_user)

    s = sub.add_parser('add-child')
    s.add_argument('mother_id', type=int)
    s.add_argument('first_name')
    s.add_argument('last_name')
    s.add_argument('dob')
    s.add_argument('gender', choices=['male', 'female'])
    s.add_argument('--birth-weight', type=int)
    s.add_argument('--place-of-birth')
    s.set_defaults(func=cmd_add_child)

    s = sub.add_parser('children')
    s.add_argument('mother_id', type=int)
    s.set_defaults(func=cmd_children)

    s = sub.add_parser('vaccinate')
    s.add_argument('vaccination_id', type=int)
    s.add_argument('--date')
    s.add_argument('--facility')
    s.set_defaults(func=cmd_vaccinate)

    s = sub.add_parser('add-pregnancy')
    s.add_argument('mother_id', type=int)
    s.add_argument('lmp')
    s.add_argument('--tetanus', action='store_true')
    s.set_defaults(func=cmd_add_pregnancy)

    s = sub.add_parser('pregnancy')
    s.add_argument('mother_id', type=int)
    s.add_argument('--age', type=int, help='maternal age, enables the risk check')
    s.set_defaults(func=cmd_pregnancy)

    s = sub.add_parser('reminders')
    s.add_argument('user_id', type=int)
    s.add_argument('--limit', type=int, default=10)
    s.set_defaults(func=cmd_reminders)

    s = sub.add_parser('tips')
    s.add_argument('user_id', type=int)
    s.set_defaults(func=cmd_tips)

    s = sub.add_parser('report', help='PDF vaccination card')
    s.add_argument('child_id', type=int)
    s.add_argument('output')
    s.set_defaults(func=cmd_report)

    s = sub.add_parser('backup')
    s.add_argument('file')
    s.set_defaults(func=cmd_backup)

    s = sub.add_parser('restore')
    s.add_argument('file')
    s.set_defaults(func=cmd_restore)
    return p


def main(argv: List[str] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format='%(asctime)s %(levelname)s %(message)s')
    cfg = load_config(args.config)
    db = Database(args.db or default_db_path(cfg))
    tracker = HealthTracker(db, cfg, tip_provider=provider_from_config(cfg), clock=make_clock(cfg))
    try:
        args.func(args, tracker)
    except InvalidDateError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2
    except (MamaTrackError, argparse.ArgumentTypeError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
