"""Patient directory lookup for the order form."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medportal.api.deps import get_db
from medportal.schemas.patient import PatientResponse
from medportal.services import patient_service

router = APIRouter()


@router.get("", response_model=List[PatientResponse])
def search_patients(
    search: Optional[str] = Query(None, description="Matches name, email or phone"),
    db: Session = Depends(get_db),
):
    """20 most recent patients, optionally filtered."""
    return patient_service.find_all(db, search=search)
