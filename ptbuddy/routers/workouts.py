import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query as OrmQuery, Session

from ptbuddy import schemas
from ptbuddy.database import get_db
from ptbuddy.models import Member, WorkoutLog
from ptbuddy.routers.members import resolve_member_for
from ptbuddy.sessions import TRAINER_ROLES, SessionUser, get_current_user

router = APIRouter(prefix="/workouts", tags=["Workouts"])
logger = logging.getLogger("ptbuddy.workouts")


def _visible_workouts(db: Session, user: SessionUser) -> OrmQuery:
    """Members see their own logs; trainers see the logs of the members they own."""
    query = db.query(WorkoutLog)
    if user.role not in TRAINER_ROLES:
        return query.filter(WorkoutLog.member_id == user.id)
    return query.join(Member, WorkoutLog.member_id == Member.id).filter(
        Member.trainer_id == user.id,
        Member.deleted_at.is_(None),
    )


def get_visible_workout(db: Session, user: SessionUser, workout_id: int) -> WorkoutLog:
    workout = _visible_workouts(db, user).filter(WorkoutLog.id == workout_id).first()
    if workout is None:
        raise HTTPException(status_code=404, detail="Workout not found")
    return workout


@router.get("", response_model=list[schemas.WorkoutOut])
def list_workouts(
    member_id: Optional[int] = Query(default=None, alias="memberId"),
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    exercise_type: Optional[schemas.ExerciseType] = Query(default=None, alias="exerciseType"),
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    query = _visible_workouts(db, user)
    if member_id is not None:
        query = query.filter(WorkoutLog.member_id == resolve_member_for(db, user, member_id).id)
    if start_date is not None and end_date is not None:
        query = query.filter(WorkoutLog.date >= start_date, WorkoutLog.date <= end_date)
    if exercise_type is not None:
        query = query.filter(WorkoutLog.exercise_type == exercise_type)
    return query.order_by(WorkoutLog.date.desc(), WorkoutLog.id.desc()).all()


@router.post("", response_model=schemas.WorkoutOut, status_code=201)
def create_workout(
    payload: schemas.WorkoutCreate,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    member = resolve_member_for(db, user, payload.member_id)
    fields = payload.model_dump(exclude={"member_id", "workout_date"})
    workout = WorkoutLog(member_id=member.id, date=payload.workout_date, **fields)
    db.add(workout)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error creating workout member_id=%s", member.id)
        raise HTTPException(status_code=500, detail="Failed to create workout")
    db.refresh(workout)
    return workout


@router.get("/{workout_id}", response_model=schemas.WorkoutOut)
def get_workout(
    workout_id: int,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return get_visible_workout(db, user, workout_id)


@router.patch("/{workout_id}", response_model=schemas.WorkoutOut)
def update_workout(
    workout_id: int,
    payload: schemas.WorkoutUpdate,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    workout = get_visible_workout(db, user, workout_id)
    changes = payload.model_dump(exclude_unset=True)
    if "workout_date" in changes:
        changes["date"] = changes.pop("workout_date")

    for field, value in changes.items():
        if value is None and field not in {"duration", "distance", "calories", "notes"}:
            continue
        setattr(workout, field, value)
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Error updating workout id=%s", workout_id)
        raise HTTPException(status_code=500, detail="Failed to update workout")
    db.refresh(workout)
    return workout


@router.delete("/{workout_id}", response_model=schemas.AuthMessage)
def delete_workout(
    workout_id: int,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    workout = get_visible_workout(db, user, workout_id)
    db.delete(workout)
    db.commit()
    return {"message": "Workout deleted"}
