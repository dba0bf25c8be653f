from fastapi import APIRouter

from ptbuddy.routers import (
    appointments,
    auth,
    community,
    member_portal,
    members,
    memberships,
    password_reset,
    supplements,
    workouts,
)

router = APIRouter(prefix="/api/v1", tags=["API v1"])
router.include_router(auth.router)
router.include_router(password_reset.router)
router.include_router(members.router)
router.include_router(memberships.router)
router.include_router(appointments.router)
router.include_router(member_portal.router)
router.include_router(community.router)
router.include_router(supplements.router)
router.include_router(workouts.router)
