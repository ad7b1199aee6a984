# models/schedule.py
from dataclasses import dataclass
from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone

Base = declarative_base()


def utcnow() -> datetime:
    # DB에는 타임존 없는 UTC로 저장함
    return datetime.now(timezone.utc).replace(tzinfo=None)


# 일정 생명주기(활성 / 삭제됨)
@dataclass(frozen=True)
class Active:
    pass


@dataclass(frozen=True)
class Deleted:
    at: datetime


ACTIVE = Active()


class Schedule(Base):
    __tablename__ = "schedules"
    __table_args__ = (
        # is_deleted와 deleted_at은 항상 같이 움직여야 함
        CheckConstraint(
            "(NOT is_deleted AND deleted_at IS NULL) OR (is_deleted AND deleted_at IS NOT NULL)",
            name="ck_schedules_lifecycle",
        ),
        CheckConstraint("position >= 1", name="ck_schedules_position_positive"),
        Index("ix_schedules_column_position", "board_column_id", "position"),
    )

    id = Column(Integer, primary_key=True, index=True)
    workspace_id = Column(Integer, nullable=False, index=True)
    board_column_id = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    location = Column(String(255), nullable=True)
    created_by = Column(Integer, nullable=False)
    status = Column(String(50), nullable=False, default="not yet")
    all_day = Column(Boolean, nullable=False, default=False)
    visibility = Column(String(50), nullable=False, default="public")
    extra_data = Column(Text, nullable=True)
    recurrence_pattern = Column(String(255), nullable=True)
    priority = Column(String(50), nullable=True)
    video_transcript = Column(Text, nullable=True)
    position = Column(Integer, nullable=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def lifecycle(self):
        if self.is_deleted:
            return Deleted(at=self.deleted_at)
        return ACTIVE

    @property
    def is_active(self) -> bool:
        return isinstance(self.lifecycle, Active)

    def mark_deleted(self, at: datetime) -> None:
        """
        일정을 소프트 삭제 상태로 바꾼다. position 값은 그대로 둔다(삭제 시점 값으로 고정).

        :param at: 삭제 시각(UTC)
        :type at: datetime
        :raises ValueError: 이미 삭제된 일정
        """

        if not self.is_active:
            raise ValueError("schedule already deleted")
        self.is_deleted = True
        self.deleted_at = at


class ScheduleLog(Base):
    __tablename__ = "schedule_logs"
    id = Column(Integer, primary_key=True, autoincrement=True)
    schedule_id = Column(Integer, ForeignKey("schedules.id"), nullable=False, index=True)
    workspace_user_id = Column(Integer, nullable=False)
    action = Column(String(50), nullable=False)
    field_changed = Column(String(50), nullable=True)  # create/delete 같은 전체 이벤트는 None
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ScheduleParticipant(Base):
    __tablename__ = "schedule_participants"
    __table_args__ = (
        UniqueConstraint("schedule_id", "workspace_user_id", name="uq_schedule_participant"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    schedule_id = Column(Integer, ForeignKey("schedules.id"), nullable=False, index=True)
    workspace_user_id = Column(Integer, nullable=False)
    status = Column(String(50), nullable=False)  # 역할(creator 등)
    invitation_status = Column(String(50), nullable=False)
    assign_at = Column(DateTime, nullable=True)
    assign_by = Column(Integer, nullable=True)
    response_time = Column(DateTime, nullable=True)
    invitation_sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
