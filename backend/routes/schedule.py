# 일정(스케줄) 관련 라우터. 보드 컬럼 안의 카드 순서/이력은 전부 ScheduleService가 처리하고,
# 여기서는 요청 파싱과 응답 변환만 함. 서비스 예외 -> HTTP 상태 변환은 main.py의 예외 핸들러 참고.
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from schemas.schedule_schema import (
    ScheduleCreate,
    ScheduleLogOut,
    ScheduleOut,
    ScheduleParticipantOut,
    SchedulePositionUpdate,
    ScheduleUpdate,
)
from services.schedule_service import ScheduleService
from services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/schedules", tags=["schedules"])


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    """
    요청마다 세션 -> 저장소 -> 서비스를 새로 묶어서 돌려준다.

    :param db: 요청 범위 DB 세션
    :type db: Session
    :return: 일정 서비스
    :rtype: ScheduleService
    """

    return ScheduleService(ScheduleStore(db))


@router.post("", response_model=ScheduleOut, status_code=201)
def create_schedule(payload: ScheduleCreate, service: ScheduleService = Depends(get_schedule_service)):
    """
    일정 생성(컬럼 맨 뒤에 추가)

    :param payload: 보드 컬럼/워크스페이스/작성자 + 일정 필드
    :type payload: ScheduleCreate
    :return: 생성된 일정
    :rtype: ScheduleOut
    """

    return service.create(
        payload.board_column_id,
        payload.workspace_id,
        payload.workspace_user_id,
        payload.schedule_fields(),
    )


@router.get("/board_column/{board_column_id}", response_model=List[ScheduleOut])
def list_schedules_by_column(
    board_column_id: int,
    workspace_id: Optional[int] = Query(None),
    service: ScheduleService = Depends(get_schedule_service),
):
    # 활성 일정만, position 오름차순
    return service.list_by_column(board_column_id, workspace_id=workspace_id)


@router.get("/workspace/{workspace_id}", response_model=List[ScheduleOut])
def list_schedules_by_workspace(
    workspace_id: int,
    include_deleted: bool = Query(False),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.list_by_workspace(workspace_id, include_deleted=include_deleted)


@router.get("/{schedule_id}", response_model=ScheduleOut)
def get_schedule(schedule_id: int, service: ScheduleService = Depends(get_schedule_service)):
    return service.get(schedule_id)


@router.put("/{schedule_id}/workspace_user/{workspace_user_id}", response_model=ScheduleOut)
def update_schedule(
    schedule_id: int,
    workspace_user_id: int,
    patch: ScheduleUpdate,
    service: ScheduleService = Depends(get_schedule_service),
):
    """
    일정 수정(보낸 필드만 반영). 순서/컬럼 변경은 /position 사용

    :param schedule_id: 일정 id
    :type schedule_id: int
    :param workspace_user_id: 작업자
    :type workspace_user_id: int
    :param patch: 바꿀 필드
    :type patch: ScheduleUpdate
    :return: 수정된 일정
    :rtype: ScheduleOut
    """

    return service.update(schedule_id, workspace_user_id, patch.model_dump(exclude_unset=True))


@router.put("/{schedule_id}/position/workspace_user/{workspace_user_id}", response_model=ScheduleOut)
def move_schedule(
    schedule_id: int,
    workspace_user_id: int,
    payload: SchedulePositionUpdate,
    service: ScheduleService = Depends(get_schedule_service),
):
    """
    일정 순서 변경 / 다른 컬럼으로 이동

    :param schedule_id: 일정 id
    :type schedule_id: int
    :param workspace_user_id: 작업자
    :type workspace_user_id: int
    :param payload: board_column_id(생략 시 현재 컬럼) + position
    :type payload: SchedulePositionUpdate
    :return: 이동된 일정
    :rtype: ScheduleOut
    """

    return service.move(schedule_id, workspace_user_id, payload.board_column_id, payload.position)


@router.delete("/{schedule_id}/workspace_user/{workspace_user_id}")
def delete_schedule(
    schedule_id: int,
    workspace_user_id: int,
    service: ScheduleService = Depends(get_schedule_service),
):
    service.delete(schedule_id, workspace_user_id)
    return {"ok": True}


@router.get("/{schedule_id}/logs", response_model=List[ScheduleLogOut])
def list_schedule_logs(schedule_id: int, service: ScheduleService = Depends(get_schedule_service)):
    return service.list_logs(schedule_id)


@router.get("/{schedule_id}/participants", response_model=List[ScheduleParticipantOut])
def list_schedule_participants(schedule_id: int, service: ScheduleService = Depends(get_schedule_service)):
    return service.list_participants(schedule_id)
