"""Patient directory. Orders link to a patient record found by id or email."""
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from medportal.core.exceptions import BusinessError
from medportal.models.patient import Patient

SEARCH_LIMIT = 20


def find_all(db: Session, search: Optional[str] = None) -> List[Patient]:
    """Most recent patients, optionally filtered on name, email or phone (case-insensitive)."""
    q = db.query(Patient)
    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        q = q.filter(
            or_(
                Patient.name.ilike(term),
                Patient.email.ilike(term),
                Patient.phone.ilike(term),
            )
        )
    return q.order_by(Patient.created_at.desc()).limit(SEARCH_LIMIT).all()


def find_one(db: Session, patient_id: str) -> Patient:
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise BusinessError.not_found("Patient", patient_id)
    return patient


def get_or_create(db: Session, name: str, email: str, phone: Optional[str] = None) -> Patient:
    """Find patient by email or create. Flushes only; the caller commits.

    A phone number on a returning patient's order fills in a missing one.
    """
    email = email.strip().lower()
    patient = db.query(Patient).filter(Patient.email == email).first()
    if patient:
        if phone and not patient.phone:
            patient.phone = phone
        return patient
    patient = Patient(name=name.strip(), email=email, phone=phone)
    db.add(patient)
    db.flush()
    return patient


def count(db: Session) -> int:
    return db.query(Patient).count()
