# schemas/schedule_schema.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime

from services.schedule_time import parse_timestamp


class ScheduleCreate(BaseModel):
    board_column_id: int
    workspace_id: int
    workspace_user_id: int
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    status: Optional[str] = None
    all_day: Optional[bool] = None
    visibility: Optional[str] = None
    extra_data: Optional[str] = None
    recurrence_pattern: Optional[str] = None
    priority: Optional[str] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_times(cls, v):
        # 파싱 실패 시 ValueError -> 422 (이전 값을 조용히 유지하지 않음)
        return parse_timestamp(v)

    @field_validator("end_time")
    @classmethod
    def _end_after_start(cls, v, info):
        start = info.data.get("start_time")
        if v and start and v < start:
            raise ValueError("end_time must be after start_time")
        return v

    def schedule_fields(self) -> dict:
        # 서비스에 넘길 일정 필드(컬럼/워크스페이스/작업자 제외)
        return self.model_dump(
            exclude={"board_column_id", "workspace_id", "workspace_user_id"},
            exclude_none=True,
        )


class ScheduleUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    location: Optional[str] = None
    status: Optional[str] = None
    all_day: Optional[bool] = None
    visibility: Optional[str] = None
    extra_data: Optional[str] = None
    recurrence_pattern: Optional[str] = None
    priority: Optional[str] = None
    video_transcript: Optional[str] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _parse_times(cls, v):
        # 파싱 실패 시 ValueError -> 422 (이전 값을 조용히 유지하지 않음)
        return parse_timestamp(v)


class SchedulePositionUpdate(BaseModel):
    board_column_id: Optional[int] = None
    position: int


class ScheduleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    workspace_id: int
    board_column_id: int
    title: str
    description: Optional[str]
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    location: Optional[str]
    created_by: int
    status: str
    all_day: bool
    visibility: str
    extra_data: Optional[str]
    recurrence_pattern: Optional[str]
    priority: Optional[str]
    video_transcript: Optional[str]
    position: int
    is_deleted: bool
    deleted_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


class ScheduleLogOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    schedule_id: int
    workspace_user_id: int
    action: str
    field_changed: Optional[str]
    old_value: Optional[str]
    new_value: Optional[str]
    created_at: datetime


class ScheduleParticipantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    schedule_id: int
    workspace_user_id: int
    status: str
    invitation_status: str
    assign_at: Optional[datetime]
    assign_by: Optional[int]
    invitation_sent_at: Optional[datetime]
