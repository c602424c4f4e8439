import datetime
import json
import logging
import os
import shutil
import sqlite3
from datetime import date
from typing import Dict, List, Optional

from mamatrack.errors import RecordNotFoundError
from mamatrack.models import (AncVisit, Child, CommunityComment, CommunityPost,
                              HealthFacility, HealthReminder, Pregnancy, User,
                              Vaccination)

# children before parents, so DROP TABLE never trips a foreign key
_TABLES = (
    'community_comments', 'community_posts', 'health_reminders', 'vaccinations',
    'anc_visits', 'children', 'pregnancies', 'health_facilities', 'users',
)


def _now() -> str:
    return datetime.datetime.now(tz=datetime.timezone.utc).isoformat()


def _d(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


class Database:
    def __init__(self, db_path: str = None):
        try:
            self.db_path = db_path or os.path.join(os.path.expanduser("~"), ".mamatrack", "mamatrack.db")
            if self.db_path != ':memory:':
                os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
            self.conn = sqlite3.connect(self.db_path)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA foreign_keys = ON;")
            self._ensure_tables()
        except Exception as e:
            logging.error(f"Database connection error: {e}")
            raise

    def _ensure_tables(self):
        cur = self.conn.cursor()
        cur.executescript("""
        CREATE TABLE IF NOT EXISTS users (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          auth_uid TEXT NOT NULL UNIQUE,
          email TEXT NOT NULL,
          first_name TEXT NOT NULL DEFAULT '',
          last_name TEXT NOT NULL DEFAULT '',
          phone_number TEXT,
          county TEXT,
          sub_county TEXT,
          created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS children (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          mother_id INTEGER NOT NULL REFERENCES users(id),
          first_name TEXT NOT NULL,
          last_name TEXT NOT NULL,
          date_of_birth TEXT NOT NULL,
          gender TEXT NOT NULL,
          birth_weight INTEGER,
          place_of_birth TEXT,
          created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS pregnancies (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          mother_id INTEGER NOT NULL REFERENCES users(id),
          lmp_date TEXT NOT NULL,
          expected_due_date TEXT NOT NULL,
          is_active INTEGER NOT NULL DEFAULT 1,
          tetanus_vaccinated INTEGER NOT NULL DEFAULT 0,
          tetanus_vaccination_date TEXT,
          ifas_start_date TEXT,
          current_weeks INTEGER,
          current_days INTEGER,
          created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS vaccinations (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          child_id INTEGER NOT NULL REFERENCES children(id) ON DELETE CASCADE,
          vaccine_name TEXT NOT NULL,
          dose_number INTEGER NOT NULL,
          scheduled_date TEXT NOT NULL,
          administered_date TEXT,
          facility_name TEXT,
          status TEXT NOT NULL DEFAULT 'scheduled',
          notes TEXT,
          UNIQUE(child_id, vaccine_name, dose_number)
        );

        CREATE TABLE IF NOT EXISTS anc_visits (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          pregnancy_id INTEGER NOT NULL REFERENCES pregnancies(id) ON DELETE CASCADE,
          visit_number INTEGER NOT NULL,
          scheduled_date TEXT NOT NULL,
          actual_date TEXT,
          facility_name TEXT,
          gestational_weeks INTEGER,
          weight INTEGER,
          blood_pressure TEXT,
          hemoglobin_level TEXT,
          notes TEXT,
          status TEXT NOT NULL DEFAULT 'scheduled',
          UNIQUE(pregnancy_id, visit_number)
        );

        CREATE TABLE IF NOT EXISTS health_reminders (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          user_id INTEGER NOT NULL REFERENCES users(id),
          child_id INTEGER REFERENCES children(id) ON DELETE CASCADE,
          pregnancy_id INTEGER REFERENCES pregnancies(id) ON DELETE CASCADE,
          type TEXT NOT NULL,
          title TEXT NOT NULL,
          description TEXT NOT NULL,
          due_date TEXT NOT NULL,
          is_completed INTEGER NOT NULL DEFAULT 0,
          priority TEXT NOT NULL DEFAULT 'normal',
          created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS community_posts (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          author_id INTEGER NOT NULL REFERENCES users(id),
          content TEXT NOT NULL,
          category TEXT,
          likes_count INTEGER NOT NULL DEFAULT 0,
          comments_count INTEGER NOT NULL DEFAULT 0,
          created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS community_comments (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          post_id INTEGER NOT NULL REFERENCES community_posts(id) ON DELETE CASCADE,
          author_id INTEGER NOT NULL REFERENCES users(id),
          content TEXT NOT NULL,
          created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS health_facilities (
          id INTEGER PRIMARY KEY AUTOINCREMENT,
          name TEXT NOT NULL,
          type TEXT NOT NULL,
          county TEXT NOT NULL,
          sub_county TEXT,
          ward TEXT,
          latitude REAL,
          longitude REAL,
          phone_number TEXT,
          services TEXT,
          vaccines_available TEXT,
          operating_hours TEXT
        );
        """)
        self.conn.commit()

    def _save(self, table: str, record, values: Dict[str, object], stamp: bool = True):
        """INSERT if record.id is None, else UPDATE by id. Sets record.id."""
        cur = self.conn.cursor()
        if getattr(record, 'id', None) is not None:
            cols = ", ".join(f"{c}=?" for c in values)
            cur.execute(f"UPDATE {table} SET {cols} WHERE id=?", (*values.values(), record.id))
            if cur.rowcount == 0:
                raise RecordNotFoundError(table, record.id)
        else:
            if stamp:
                values = {**values, 'created_at': _now()}
            cols = ", ".join(values)
            marks = ",".join("?" for _ in values)
            cur.execute(f"INSERT INTO {table} ({cols}) VALUES ({marks})", tuple(values.values()))
            record.id = cur.lastrowid
            logging.info(f"[MamaTrack] Inserted {table} id={record.id}")
        self.conn.commit()
        return record

    def _fetch(self, table: str, record_id: int) -> sqlite3.Row:
        row = self.conn.execute(f"SELECT * FROM {table} WHERE id=?", (record_id,)).fetchone()
        if row is None:
            raise RecordNotFoundError(table, record_id)
        return row

    # Export/Import
    def export_to_sql(self, filename: str):
        """Dump all tables as SQL statements."""
        with open(filename, 'w', encoding='utf-8') as f:
            for line in self.conn.iterdump():
                f.write(f"{line}\n")

    def import_from_sql(self, filename: str):
        """Drop the existing tables, then run the dump."""
        with open(filename, 'r', encoding='utf-8') as f:
            script = f.read()
        cur = self.conn.cursor()
        # dumps list tables alphabetically, children may come before their parents
        cur.execute("PRAGMA foreign_keys = OFF;")
        try:
            for tbl in _TABLES:
                cur.execute(f"DROP TABLE IF EXISTS {tbl}")
            self.conn.commit()
            self.conn.executescript(script)
            self.conn.commit()
        finally:
            self.conn.execute("PRAGMA foreign_keys = ON;")
        self._ensure_tables()

    def atomic_import_from_sql(self, filename: str) -> Optional[str]:
        """
        Check the dump against a scratch in-memory database first, copy the
        current database file aside, then import. Returns the backup path
        (None for in-memory databases).
        """
        with open(filename, 'r', encoding='utf-8') as f:
            script = f.read()
        scratch = sqlite3.connect(':memory:')
        try:
            scratch.executescript(script)
        finally:
            scratch.close()

        backup = None
        if self.db_path != ':memory:' and os.path.exists(self.db_path):
            stamp = datetime.datetime.now().strftime('%Y%m%d_%H%M%S')
            backup = f"{self.db_path}.bak_before_restore_{stamp}"
            self.conn.commit()
            shutil.copy2(self.db_path, backup)
            logging.info(f"[MamaTrack] Backup of current database at {backup}")
        self.import_from_sql(filename)
        return backup

    # User methods
    def save_user(self, user: User) -> User:
        return self._save('users', user, {
            'auth_uid': user.auth_uid,
            'email': user.email,
            'first_name': user.first_name,
            'last_name': user.last_name,
            'phone_number': user.phone_number,
            'county': user.county,
            'sub_county': user.sub_county,
        })

    @staticmethod
    def _row_to_user(row) -> User:
        u = User(row['auth_uid'], row['email'], row['first_name'], row['last_name'],
                 row['phone_number'], row['county'], row['sub_county'])
        u.id = row['id']
        return u

    def get_user(self, user_id: int) -> User:
        return self._row_to_user(self._fetch('users', user_id))

    def get_user_by_auth_uid(self, auth_uid: str) -> Optional[User]:
        row = self.conn.execute("SELECT * FROM users WHERE auth_uid=?", (auth_uid,)).fetchone()
        return self._row_to_user(row) if row else None

    # Child methods
    def save_child(self, child: Child) -> Child:
        return self._save('children', child, {
            'mother_id': child.mother_id,
            'first_name': child.first_name,
            'last_name': child.last_name,
            'date_of_birth': child.date_of_birth.isoformat(),
            'gender': child.gender,
            'birth_weight': child.birth_weight,
            'place_of_birth': child.place_of_birth,
        })

    @staticmethod
    def _row_to_child(row) -> Child:
        c = Child(row['mother_id'], row['first_name'], row['last_name'],
                  row['date_of_birth'], row['gender'], row['birth_weight'], row['place_of_birth'])
        c.id = row['id']
        return c

    def get_child(self, child_id: int) -> Child:
        return self._row_to_child(self._fetch('children', child_id))

    def load_children(self, mother_id: int) -> List[Child]:
        cur = self.conn.execute(
            "SELECT * FROM children WHERE mother_id=? ORDER BY date_of_birth, id", (mother_id,))
        return [self._row_to_child(r) for r in cur.fetchall()]

    # Pregnancy methods
    def save_pregnancy(self, preg: Pregnancy) -> Pregnancy:
        return self._save('pregnancies', preg, {
            'mother_id': preg.mother_id,
            'lmp_date': preg.lmp_date.isoformat(),
            'expected_due_date': preg.expected_due_date.isoformat(),
            'is_active': int(preg.is_active),
            'tetanus_vaccinated': int(preg.tetanus_vaccinated),
            'tetanus_vaccination_date': _d(preg.tetanus_vaccination_date),
            'ifas_start_date': _d(preg.ifas_start_date),
            'current_weeks': preg.current_weeks,
            'current_days': preg.current_days,
        })

    @staticmethod
    def _row_to_pregnancy(row) -> Pregnancy:
        p = Pregnancy(row['mother_id'], row['lmp_date'], row['expected_due_date'],
                      bool(row['is_active']), bool(row['tetanus_vaccinated']),
                      row['tetanus_vaccination_date'], row['ifas_start_date'],
                      row['current_weeks'], row['current_days'])
        p.id = row['id']
        return p

    def get_pregnancy(self, pregnancy_id: int) -> Pregnancy:
        return self._row_to_pregnancy(self._fetch('pregnancies', pregnancy_id))

    def load_pregnancies(self, mother_id: int) -> List[Pregnancy]:
        cur = self.conn.execute(
            "SELECT * FROM pregnancies WHERE mother_id=? ORDER BY created_at DESC, id DESC",
            (mother_id,))
        return [self._row_to_pregnancy(r) for r in cur.fetchall()]

    def get_active_pregnancy(self, mother_id: int) -> Optional[Pregnancy]:
        row = self.conn.execute(
            "SELECT * FROM pregnancies WHERE mother_id=? AND is_active=1 "
            "ORDER BY created_at DESC, id DESC LIMIT 1", (mother_id,)).fetchone()
        return self._row_to_pregnancy(row) if row else None

    # Vaccination methods
    def save_vaccination(self, vac: Vaccination) -> Vaccination:
        return self._save('vaccinations', vac, {
            'child_id': vac.child_id,
            'vaccine_name': vac.vaccine_name,
            'dose_number': vac.dose_number,
            'scheduled_date': vac.scheduled_date.isoformat(),
            'administered_date': _d(vac.administered_date),
            'facility_name': vac.facility_name,
            'status': vac.status,
            'notes': vac.notes,
        }, stamp=False)

    @staticmethod
    def _row_to_vaccination(row) -> Vaccination:
        v = Vaccination(row['child_id'], row['vaccine_name'], row['dose_number'],
                        row['scheduled_date'], row['administered_date'],
                        row['facility_name'], row['status'], row['notes'])
        v.id = row['id']
        return v

    def get_vaccination(self, vaccination_id: int) -> Vaccination:
        return self._row_to_vaccination(self._fetch('vaccinations', vaccination_id))

    def load_vaccinations(self, child_id: int) -> List[Vaccination]:
        cur = self.conn.execute(
            "SELECT * FROM vaccinations WHERE child_id=? ORDER BY scheduled_date, id", (child_id,))
        return [self._row_to_vaccination(r) for r in cur.fetchall()]

    # ANC visit methods
    def save_anc_visit(self, visit: AncVisit) -> AncVisit:
        return self._save('anc_visits', visit, {
            'pregnancy_id': visit.pregnancy_id,
            'visit_number': visit.visit_number,
            'scheduled_date': visit.scheduled_date.isoformat(),
            'actual_date': _d(visit.actual_date),
            'facility_name': visit.facility_name,
            'gestational_weeks': visit.gestational_weeks,
            'weight': visit.weight,
            'blood_pressure': visit.blood_pressure,
            'hemoglobin_level': visit.hemoglobin_level,
            'notes': visit.notes,
            'status': visit.status,
        }, stamp=False)

    @staticmethod
    def _row_to_anc_visit(row) -> AncVisit:
        v = AncVisit(row['pregnancy_id'], row['visit_number'], row['scheduled_date'],
                     row['actual_date'], row['facility_name'], row['gestational_weeks'],
                     row['weight'], row['blood_pressure'], row['hemoglobin_level'],
                     row['notes'], row['status'])
        v.id = row['id']
        return v

    def get_anc_visit(self, visit_id: int) -> AncVisit:
        return self._row_to_anc_visit(self._fetch('anc_visits', visit_id))

    def load_anc_visits(self, pregnancy_id: int) -> List[AncVisit]:
        cur = self.conn.execute(
            "SELECT * FROM anc_visits WHERE pregnancy_id=? ORDER BY visit_number", (pregnancy_id,))
        return [self._row_to_anc_visit(r) for r in cur.fetchall()]

    # Reminder methods
    def save_reminder(self, rem: HealthReminder) -> HealthReminder:
        return self._save('health_reminders', rem, {
            'user_id': rem.user_id,
            'child_id': rem.child_id,
            'pregnancy_id': rem.pregnancy_id,
            'type': rem.type,
            'title': rem.title,
            'description': rem.description,
            'due_date': rem.due_date.isoformat(),
            'is_completed': int(rem.is_completed),
            'priority': rem.priority,
        })

    @staticmethod
    def _row_to_reminder(row) -> HealthReminder:
        r = HealthReminder(row['user_id'], row['type'], row['title'], row['description'],
                           row['due_date'], row['child_id'], row['pregnancy_id'],
                           bool(row['is_completed']), row['priority'])
        r.id = row['id']
        return r

    def get_reminder(self, reminder_id: int) -> HealthReminder:
        return self._row_to_reminder(self._fetch('health_reminders', reminder_id))

    def load_reminders(self, user_id: int) -> List[HealthReminder]:
        cur = self.conn.execute(
            "SELECT * FROM health_reminders WHERE user_id=? ORDER BY due_date, id", (user_id,))
        return [self._row_to_reminder(r) for r in cur.fetchall()]

    def load_upcoming_reminders(self, user_id: int, today: date, limit: int = 10) -> List[HealthReminder]:
        cur = self.conn.execute(
            "SELECT * FROM health_reminders WHERE user_id=? AND is_completed=0 AND due_date >= ? "
            "ORDER BY due_date, id LIMIT ?",
            (user_id, today.isoformat(), limit))
        return [self._row_to_reminder(r) for r in cur.fetchall()]

    def complete_reminders(self, type: str, title: str, due_date: date,
                           child_id: int = None, pregnancy_id: int = None) -> int:
        """Mark open reminders for one schedule slot done, returns how many."""
        cur = self.conn.execute(
            "UPDATE health_reminders SET is_completed=1 "
            "WHERE is_completed=0 AND type=? AND title=? AND due_date=? "
            "AND child_id IS ? AND pregnancy_id IS ?",
            (type, title, due_date.isoformat(), child_id, pregnancy_id))
        self.conn.commit()
        return cur.rowcount

    # Community methods
    def save_post(self, post: CommunityPost) -> CommunityPost:
        self._save('community_posts', post, {
            'author_id': post.author_id,
            'content': post.content,
            'category': post.category,
            'likes_count': post.likes_count,
            'comments_count': post.comments_count,
        })
        post.created_at = self._fetch('community_posts', post.id)['created_at']
        return post

    @staticmethod
    def _row_to_post(row) -> CommunityPost:
        p = CommunityPost(row['author_id'], row['content'], row['category'],
                          row['likes_count'], row['comments_count'], row['created_at'])
        p.id = row['id']
        return p

    def get_post(self, post_id: int) -> CommunityPost:
        return self._row_to_post(self._fetch('community_posts', post_id))

    def load_posts(self, category: str = None, search: str = None, limit: int = 20) -> List[CommunityPost]:
        query = "SELECT * FROM community_posts WHERE 1=1"
        params: list = []
        if category and category != 'all':
            query += " AND category=?"
            params.append(category)
        if search:
            query += " AND content LIKE ?"
            params.append(f"%{search}%")
        query += " ORDER BY created_at DESC, id DESC LIMIT ?"
        params.append(limit)
        return [self._row_to_post(r) for r in self.conn.execute(query, params)]

    def load_highlights(self, limit: int = 5) -> List[CommunityPost]:
        cur = self.conn.execute(
            "SELECT * FROM community_posts ORDER BY likes_count DESC, created_at DESC, id DESC LIMIT ?",
            (limit,))
        return [self._row_to_post(r) for r in cur.fetchall()]

    def like_post(self, post_id: int):
        cur = self.conn.execute(
            "UPDATE community_posts SET likes_count = likes_count + 1 WHERE id=?", (post_id,))
        if cur.rowcount == 0:
            raise RecordNotFoundError('community_posts', post_id)
        self.conn.commit()

    def save_comment(self, comment: CommunityComment) -> CommunityComment:
        self._fetch('community_posts', comment.post_id)
        cur = self.conn.cursor()
        comment.created_at = _now()
        cur.execute(
            "INSERT INTO community_comments (post_id, author_id, content, created_at) VALUES (?,?,?,?)",
            (comment.post_id, comment.author_id, comment.content, comment.created_at))
        comment.id = cur.lastrowid
        logging.info(f"[MamaTrack] Inserted community_comments id={comment.id}")
        cur.execute(
            "UPDATE community_posts SET comments_count = comments_count + 1 WHERE id=?",
            (comment.post_id,))
        self.conn.commit()
        return comment

    def load_comments(self, post_id: int) -> List[CommunityComment]:
        out = []
        for row in self.conn.execute(
                "SELECT * FROM community_comments WHERE post_id=? ORDER BY created_at, id", (post_id,)):
            c = CommunityComment(row['post_id'], row['author_id'], row['content'], row['created_at'])
            c.id = row['id']
            out.append(c)
        return out

    # Facility methods
    def save_facility(self, fac: HealthFacility) -> HealthFacility:
        return self._save('health_facilities', fac, {
            'name': fac.name,
            'type': fac.type,
            'county': fac.county,
            'sub_county': fac.sub_county,
            'ward': fac.ward,
            'latitude': fac.latitude,
            'longitude': fac.longitude,
            'phone_number': fac.phone_number,
            'services': json.dumps(fac.services),
            'vaccines_available': json.dumps(fac.vaccines_available),
            'operating_hours': fac.operating_hours,
        }, stamp=False)

    @staticmethod
    def _row_to_facility(row) -> HealthFacility:
        f = HealthFacility(row['name'], row['type'], row['county'], row['sub_county'],
                           row['ward'], row['latitude'], row['longitude'], row['phone_number'],
                           json.loads(row['services'] or '[]'),
                           json.loads(row['vaccines_available'] or '[]'),
                           row['operating_hours'])
        f.id = row['id']
        return f

    def load_facilities(self, county: str = None, type: str = None) -> List[HealthFacility]:
        query = "SELECT * FROM health_facilities WHERE 1=1"
        params = []
        if county:
            query += " AND county=?"
            params.append(county)
        if type:
            query += " AND type=?"
            params.append(type)
        query += " ORDER BY name"
        return [self._row_to_facility(r) for r in self.conn.execute(query, params)]

    def close(self):
        """Close the connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
