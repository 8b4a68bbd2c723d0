"""Reference data visible to signed-in users."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import Actor, get_current_actor
from ..database import get_db
from ..envelope import success_envelope
from ..schemas import CategoryResponse, StatusResponse
from ..use_cases.categories import list_categories_use_case, list_statuses_use_case

router = APIRouter(prefix="/student", tags=["student"])


@router.get("/categories")
def list_active_categories(_: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    categories = list_categories_use_case(db=db, active_only=True)
    return success_envelope([CategoryResponse.model_validate(category) for category in categories])


@router.get("/status")
def list_statuses(_: Actor = Depends(get_current_actor), db: Session = Depends(get_db)):
    statuses = list_statuses_use_case(db=db)
    return success_envelope([StatusResponse.model_validate(status) for status in statuses])
