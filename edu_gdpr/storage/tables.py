"""
Subject data graph tables
The student record and every collection that references it
"""

from sqlalchemy import (
    Column, String, Integer, Boolean, Date, DateTime, Numeric, ForeignKey
)

from ..utils.clock import utcnow
from .database import Base


class StudentDB(Base):
    """SQLAlchemy model for the data subject (a student)"""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Personally identifiable fields
    given_name = Column("prenom", String(100), nullable=False)
    family_name = Column("nom", String(100), nullable=False)
    email = Column(String(255), unique=True)
    birth_date = Column("date_naissance", Date, nullable=False)

    # Profile
    current_level = Column("niveau_actuel", String(20), nullable=False)
    school_level = Column("niveau_scolaire", String(20), nullable=False)
    total_points = Column(Integer, default=0)
    xp = Column(Integer, default=0)
    streak_days = Column("serie_jours", Integer, default=0)
    mascot_type = Column("mascotte_type", String(50), default="dragon")
    mascot_color = Column("mascotte_color", String(20), default="#ff6b35")

    # Connection state
    last_access = Column("dernier_acces", DateTime(timezone=True))
    is_connected = Column("est_connecte", Boolean, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class StudentProgressDB(Base):
    """Per-exercise progress history"""
    __tablename__ = "student_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    exercise_id = Column(Integer, nullable=False)
    competence_code = Column(String(20), nullable=False)
    progress_percent = Column(Numeric(5, 2, asdecimal=False), default=0.0)
    mastery_level = Column(String(20), nullable=False, default="not_started")
    total_attempts = Column(Integer, default=0)
    successful_attempts = Column(Integer, default=0)
    average_score = Column(Numeric(5, 2, asdecimal=False), default=0.0)
    best_score = Column(Numeric(5, 2, asdecimal=False), default=0.0)
    total_time_spent = Column(Integer, default=0)
    last_attempt_at = Column(DateTime(timezone=True))
    completed = Column(Boolean, default=False)
    completed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class SessionDB(Base):
    """Login sessions; the subject link is nullable so sessions survive anonymization"""
    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class RevisionDB(Base):
    """Spaced-repetition revision history"""
    __tablename__ = "revisions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id"), index=True)
    exercise_id = Column(Integer)
    revision_date = Column(Date, nullable=False)
    score = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class SubjectFileDB(Base):
    """Files attached to a subject"""
    __tablename__ = "gdpr_files"

    id = Column(String(36), primary_key=True)
    student_id = Column(Integer, ForeignKey("students.id"), index=True)
    file_name = Column(String(255), nullable=False)
    file_path = Column(String(500), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)
    file_hash = Column(String(64))
    encrypted = Column(Boolean, default=False)
    status = Column(String(20), default="active")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
