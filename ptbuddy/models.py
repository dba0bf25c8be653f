from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ptbuddy.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Trainer(Base):
    __tablename__ = "trainers"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    role = Column(String, nullable=False, default="trainer")
    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    members = relationship("Member", back_populates="trainer")


class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), index=True, nullable=True)
    name = Column(String, nullable=False)
    phone = Column(String, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=True)
    password = Column(String, nullable=True)
    birth_date = Column(Date, nullable=True)
    gender = Column(String, nullable=True)
    goal = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    trainer = relationship("Trainer", back_populates="members")
    memberships = relationship(
        "Membership",
        back_populates="member",
        order_by="Membership.created_at.desc()",
    )
    appointments = relationship("Appointment", back_populates="member")


class Membership(Base):
    __tablename__ = "memberships"
    __table_args__ = (
        CheckConstraint(
            "remaining_sessions IS NULL OR remaining_sessions >= 0",
            name="ck_memberships_remaining_non_negative",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), index=True, nullable=False)
    type = Column(String, nullable=False)
    total_sessions = Column(Integer, nullable=True)
    remaining_sessions = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    price = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    member = relationship("Member", back_populates="memberships")


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), index=True, nullable=False)
    member_id = Column(Integer, ForeignKey("members.id"), index=True, nullable=False)
    membership_id = Column(
        Integer,
        ForeignKey("memberships.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    scheduled_at = Column(DateTime, index=True, nullable=False)
    duration = Column(Integer, nullable=False, default=60)
    status = Column(String, nullable=False, default="scheduled")
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    member = relationship("Member", back_populates="appointments")
    membership = relationship("Membership")
    events = relationship(
        "AppointmentEvent",
        cascade="all, delete-orphan",
        order_by="AppointmentEvent.id",
    )


class AppointmentEvent(Base):
    __tablename__ = "appointment_events"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(
        Integer,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    action = Column(String, index=True, nullable=False)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_email = Column(String, index=True, nullable=True)
    actor_role = Column(String, nullable=True)
    note = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, index=True, nullable=False)
    role = Column(String, nullable=False)
    code = Column(String, nullable=False)
    verified = Column(Boolean, nullable=False, default=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True)


class CommunityPost(Base):
    __tablename__ = "community_posts"

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, index=True, nullable=False)
    author_role = Column(String, nullable=False)
    author_name = Column(String, nullable=False)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    is_notice = Column(Boolean, nullable=False, default=False)
    is_pinned = Column(Boolean, nullable=False, default=False)
    view_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True)

    comments = relationship(
        "CommunityComment",
        back_populates="post",
        order_by="CommunityComment.created_at",
    )


class CommunityComment(Base):
    __tablename__ = "community_comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("community_posts.id"), index=True, nullable=False)
    author_id = Column(Integer, index=True, nullable=False)
    author_role = Column(String, nullable=False)
    author_name = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True)
    deleted_at = Column(DateTime, nullable=True)

    post = relationship("CommunityPost", back_populates="comments")


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    event_type = Column(String, index=True, nullable=False)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_role = Column(String, nullable=True)
    actor_email = Column(String, index=True, nullable=True)
    ip_address = Column(String, nullable=True)
    details = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)


class CommunityPostLike(Base):
    __tablename__ = "community_post_likes"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", "user_role", name="uq_community_post_likes_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(
        Integer,
        ForeignKey("community_posts.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    user_id = Column(Integer, nullable=False)
    user_role = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class CommunityCommentLike(Base):
    __tablename__ = "community_comment_likes"
    __table_args__ = (
        UniqueConstraint("comment_id", "user_id", "user_role", name="uq_community_comment_likes_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    comment_id = Column(
        Integer,
        ForeignKey("community_comments.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    user_id = Column(Integer, nullable=False)
    user_role = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class Supplement(Base):
    __tablename__ = "supplements"

    id = Column(Integer, primary_key=True, index=True)
    trainer_id = Column(Integer, ForeignKey("trainers.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    brand = Column(String, nullable=True)
    category = Column(String, nullable=False)
    dosage = Column(String, nullable=True)
    timing = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    product_url = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    assignments = relationship("MemberSupplement", back_populates="supplement")


class MemberSupplement(Base):
    __tablename__ = "member_supplements"
    __table_args__ = (
        UniqueConstraint("member_id", "supplement_id", name="uq_member_supplements_pair"),
    )

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), index=True, nullable=False)
    supplement_id = Column(Integer, ForeignKey("supplements.id"), index=True, nullable=False)
    recommended_by = Column(Integer, ForeignKey("trainers.id"), nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    custom_dosage = Column(String, nullable=True)
    custom_timing = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    member = relationship("Member")
    supplement = relationship("Supplement", back_populates="assignments")


class SupplementLog(Base):
    __tablename__ = "supplement_logs"
    __table_args__ = (
        UniqueConstraint("member_id", "supplement_id", "date", name="uq_supplement_logs_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), index=True, nullable=False)
    supplement_id = Column(Integer, ForeignKey("supplements.id"), index=True, nullable=False)
    date = Column(Date, index=True, nullable=False)
    taken = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    supplement = relationship("Supplement")


class WorkoutLog(Base):
    __tablename__ = "workout_logs"

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id"), index=True, nullable=False)
    date = Column(Date, index=True, nullable=False)
    exercise_type = Column(String, index=True, nullable=False)
    exercise_name = Column(String, nullable=False)
    sets = Column(Integer, nullable=False, default=0)
    reps = Column(Integer, nullable=False, default=0)
    weight = Column(Float, nullable=False, default=0)
    duration = Column(Integer, nullable=True)
    distance = Column(Float, nullable=True)
    calories = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    member = relationship("Member")
