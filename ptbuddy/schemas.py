from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel

from ptbuddy.scheduling import AppointmentStatus, MembershipType

AccountRole = Literal["trainer", "member"]
LoginRole = Literal["trainer", "member", "admin"]
Gender = Literal["male", "female", "other"]
SupplementCategory = Literal["protein", "omega3", "creatine", "bcaa", "vitamin", "preworkout", "other"]
ExerciseType = Literal["chest", "back", "shoulder", "arms", "legs", "abs", "cardio", "other"]


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class AuthMessage(BaseModel):
    message: str


# Accounts

class SignupRequest(CamelModel):
    role: AccountRole
    email: EmailStr
    password: str
    confirm_password: str
    name: str = Field(min_length=2, max_length=50)
    phone: str


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)
    role: LoginRole


class UserOut(CamelModel):
    id: int
    email: str
    name: str
    role: str
    trainer_name: Optional[str] = None


class AuthResponse(BaseModel):
    message: str
    user: UserOut


class CheckEmailRequest(CamelModel):
    email: EmailStr
    role: AccountRole


class CheckEmailResponse(BaseModel):
    available: bool
    message: str


class DeleteAccountRequest(CamelModel):
    password: str = Field(min_length=1)
    confirmation: Literal["DELETE"]


# Password reset

class ResetCodeRequest(CamelModel):
    email: EmailStr
    role: AccountRole


class ResetCodeResponse(CamelModel):
    message: str
    email: str
    code: Optional[str] = None


class ResetVerifyRequest(CamelModel):
    email: EmailStr
    code: str = Field(pattern=r"^\d{6}$")
    role: AccountRole


class ResetVerifyResponse(CamelModel):
    message: str
    verified: bool
    token_id: int


class ResetUpdateRequest(CamelModel):
    email: EmailStr
    code: str = Field(pattern=r"^\d{6}$")
    role: AccountRole
    new_password: str


class ResetUpdateResponse(CamelModel):
    message: str
    success: bool


# Members and memberships

class MemberCreate(CamelModel):
    name: str = Field(min_length=1, max_length=50)
    phone: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    goal: Optional[str] = None
    notes: Optional[str] = None


class MemberUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    phone: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    birth_date: Optional[date] = None
    gender: Optional[Gender] = None
    goal: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class MemberOut(CamelModel):
    id: int
    trainer_id: Optional[int] = None
    name: str
    phone: str
    email: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    goal: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MembershipCreate(CamelModel):
    member_id: int
    type: MembershipType
    total_sessions: Optional[int] = Field(default=None, ge=1)
    start_date: date
    end_date: Optional[date] = None
    price: int = Field(ge=0)
    notes: Optional[str] = None


class MembershipUpdate(CamelModel):
    total_sessions: Optional[int] = Field(default=None, ge=1)
    remaining_sessions: Optional[int] = Field(default=None, ge=0)
    end_date: Optional[date] = None
    price: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None
    notes: Optional[str] = None


class MembershipOut(CamelModel):
    id: int
    member_id: int
    type: str
    total_sessions: Optional[int] = None
    remaining_sessions: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None
    price: int
    is_active: bool
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MemberDetail(MemberOut):
    memberships: list[MembershipOut] = []
    appointment_count: int = 0


# Appointments

class AppointmentCreate(CamelModel):
    member_id: int
    scheduled_at: datetime
    duration: Optional[int] = Field(default=None, ge=1, le=600)
    notes: Optional[str] = None
    membership_id: Optional[int] = None


class AppointmentUpdate(CamelModel):
    scheduled_at: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=1, le=600)
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = None


class AppointmentOut(CamelModel):
    id: int
    trainer_id: int
    member_id: int
    membership_id: Optional[int] = None
    scheduled_at: datetime
    duration: int
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    member: Optional[MemberOut] = None


class AppointmentEventOut(CamelModel):
    id: int
    appointment_id: int
    action: str
    actor_id: Optional[int] = None
    actor_email: Optional[str] = None
    actor_role: Optional[str] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None


# Community board

class PostCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    is_notice: Optional[bool] = None
    is_pinned: Optional[bool] = None


class PostUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1)
    is_notice: Optional[bool] = None
    is_pinned: Optional[bool] = None


class CommentCreate(CamelModel):
    content: str = Field(min_length=1, max_length=1000)


class CommentOut(CamelModel):
    id: int
    post_id: int
    author_id: int
    author_role: str
    author_name: str
    content: str
    created_at: Optional[datetime] = None
    like_count: int = 0


class PostOut(CamelModel):
    id: int
    author_id: int
    author_role: str
    author_name: str
    title: str
    content: str
    is_notice: bool
    is_pinned: bool
    view_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    comment_count: int = 0
    like_count: int = 0


class PostDetail(PostOut):
    is_liked: bool = False
    comments: list[CommentOut] = []


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PostListResponse(BaseModel):
    posts: list[PostOut]
    pagination: Pagination


class LikeStatus(CamelModel):
    message: Optional[str] = None
    like_count: int
    is_liked: bool


# Supplements

class SupplementCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    category: SupplementCategory
    brand: Optional[str] = None
    dosage: Optional[str] = None
    timing: Optional[str] = None
    description: Optional[str] = None
    product_url: Optional[str] = None
    image_url: Optional[str] = None


class SupplementUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    category: Optional[SupplementCategory] = None
    brand: Optional[str] = None
    dosage: Optional[str] = None
    timing: Optional[str] = None
    description: Optional[str] = None
    product_url: Optional[str] = None
    image_url: Optional[str] = None
    is_active: Optional[bool] = None


class SupplementOut(CamelModel):
    id: int
    trainer_id: int
    name: str
    brand: Optional[str] = None
    category: str
    dosage: Optional[str] = None
    timing: Optional[str] = None
    description: Optional[str] = None
    product_url: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MemberBrief(CamelModel):
    id: int
    name: str


class AssignmentBrief(CamelModel):
    id: int
    member: MemberBrief
    start_date: date
    end_date: Optional[date] = None
    custom_dosage: Optional[str] = None
    custom_timing: Optional[str] = None


class SupplementDetail(SupplementOut):
    assignments: list[AssignmentBrief] = []
    assignment_count: int = 0
    log_count: int = 0


class MemberSupplementCreate(CamelModel):
    member_id: int
    supplement_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    custom_dosage: Optional[str] = None
    custom_timing: Optional[str] = None
    notes: Optional[str] = None


class MemberSupplementOut(CamelModel):
    id: int
    member_id: int
    supplement_id: int
    recommended_by: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None
    custom_dosage: Optional[str] = None
    custom_timing: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    supplement: SupplementOut
    member: MemberBrief


class SupplementBrief(CamelModel):
    id: int
    name: str
    brand: Optional[str] = None
    category: str


# "date" would shadow the type inside the class body, so the day fields
# carry an explicit alias instead.

class SupplementLogUpsert(CamelModel):
    member_id: Optional[int] = None
    supplement_id: int
    log_date: date = Field(alias="date")
    taken: Optional[bool] = None
    notes: Optional[str] = None


class SupplementLogOut(CamelModel):
    id: int
    member_id: int
    supplement_id: int
    log_date: date = Field(alias="date")
    taken: bool
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    supplement: SupplementBrief


# Workouts

class WorkoutCreate(CamelModel):
    member_id: Optional[int] = None
    workout_date: date = Field(alias="date")
    exercise_type: ExerciseType
    exercise_name: str = Field(min_length=1, max_length=100)
    sets: int = Field(default=0, ge=0)
    reps: int = Field(default=0, ge=0)
    weight: float = Field(default=0, ge=0)
    duration: Optional[int] = Field(default=None, ge=0)
    distance: Optional[float] = Field(default=None, ge=0)
    calories: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class WorkoutUpdate(CamelModel):
    workout_date: Optional[date] = Field(default=None, alias="date")
    exercise_type: Optional[ExerciseType] = None
    exercise_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    sets: Optional[int] = Field(default=None, ge=0)
    reps: Optional[int] = Field(default=None, ge=0)
    weight: Optional[float] = Field(default=None, ge=0)
    duration: Optional[int] = Field(default=None, ge=0)
    distance: Optional[float] = Field(default=None, ge=0)
    calories: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class WorkoutOut(CamelModel):
    id: int
    member_id: int
    workout_date: date = Field(alias="date")
    exercise_type: str
    exercise_name: str
    sets: int
    reps: int
    weight: float
    duration: Optional[int] = None
    distance: Optional[float] = None
    calories: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
