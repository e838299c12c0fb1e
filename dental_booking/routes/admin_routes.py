from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from dental_booking.auth.dependencies import get_current_user
from dental_booking.database import get_db
from dental_booking.models.user import User
from dental_booking.routes.auth_routes import UserResponse
from dental_booking.services import identity, stats

router = APIRouter(tags=['admin'])


class StatsResponse(BaseModel):
    today_appointments: int
    total_patients: int
    active_dentists: int
    total_appointments: int


class UpdateRoleRequest(BaseModel):
    role: str


@router.get('/stats', response_model=StatsResponse)
def get_stats(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return stats.dashboard_stats(db, current_user)


@router.put('/users/{user_id}/role', response_model=UserResponse)
def update_user_role(
    user_id: str,
    data: UpdateRoleRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return identity.set_role(db, current_user, user_id, data.role)
