# services/schedule_store.py
# 일정 저장소(SQLAlchemy 세션 래퍼)
# - 조회: id / 보드 컬럼 / 워크스페이스, position 정렬
# - 보드 컬럼 단위 잠금
# - 한 논리 작업 = 한 트랜잭션(atomic)
import logging
from contextlib import contextmanager
from typing import Iterable, List, Optional

from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.schedule import Schedule, ScheduleLog, ScheduleParticipant
from services.errors import ConflictError, ScheduleError, StorageError

logger = logging.getLogger(__name__)

# pg_advisory_xact_lock(key1, key2)의 key1. 보드 컬럼 잠금 전용 네임스페이스
COLUMN_LOCK_NAMESPACE = 7301
# 직렬화 실패 / 교착 / 잠금 획득 실패
_CONFLICT_SQLSTATES = {"40001", "40P01", "55P03"}


def _translate(exc: SQLAlchemyError) -> ScheduleError:
    """
    SQLAlchemy 예외를 서비스 예외(ConflictError / StorageError)로 바꾼다.

    :param exc: 드라이버/ORM 예외
    :type exc: SQLAlchemyError
    :return: 호출자에게 그대로 전달할 예외
    :rtype: ScheduleError
    """

    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    msg = str(orig if orig is not None else exc)
    lowered = msg.lower()
    if sqlstate in _CONFLICT_SQLSTATES or "database is locked" in lowered or "deadlock" in lowered:
        return ConflictError(f"concurrent modification: {msg}")
    return StorageError(msg)


class ScheduleStore:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def atomic(self):
        """
        블록 안의 모든 쓰기를 한 트랜잭션으로 커밋한다.
        중간에 어떤 예외가 나도 롤백하고, DB 예외는 ConflictError/StorageError로 바꿔서 다시 던진다.
        """

        try:
            yield self
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            err = _translate(e)
            logger.error("Schedule transaction rolled back (%s): %s", err.code, err.message)
            raise err from e
        except Exception:
            self.db.rollback()
            raise

    def flush(self) -> None:
        self.db.flush()

    def lock_columns(self, column_ids: Iterable[int]) -> None:
        """
        보드 컬럼들을 트랜잭션 종료까지 잠근다. 교착을 피하려고 항상 id 오름차순으로 잡는다.
        sqlite는 BEGIN IMMEDIATE로 이미 쓰기가 직렬화되어 있음(database.py).

        :param column_ids: 잠글 보드 컬럼 id들
        :type column_ids: Iterable[int]
        """

        ids = sorted({int(c) for c in column_ids if c is not None})
        dialect = self.db.get_bind().dialect.name
        for cid in ids:
            if dialect == "postgresql":
                self.db.execute(
                    text("SELECT pg_advisory_xact_lock(:ns, :cid)"),
                    {"ns": COLUMN_LOCK_NAMESPACE, "cid": cid},
                )
            elif dialect != "sqlite":
                (
                    self.db.query(Schedule.id)
                    .filter(Schedule.board_column_id == cid)
                    .with_for_update()
                    .all()
                )

    # 조회
    def _schedules(self):
        # 아직 flush 안 된 변경을 먼저 반영한 뒤 항상 DB 값으로 다시 채움
        self.db.flush()
        return self.db.query(Schedule).populate_existing()

    def get(self, schedule_id: int) -> Optional[Schedule]:
        return self._schedules().filter(Schedule.id == schedule_id).first()

    def active_in_column(
        self,
        column_id: int,
        min_position: Optional[int] = None,
        max_position: Optional[int] = None,
        exclude_id: Optional[int] = None,
        workspace_id: Optional[int] = None,
    ) -> List[Schedule]:
        """
        보드 컬럼의 활성 일정을 position 오름차순으로 조회한다. 범위는 양 끝 포함.

        :param column_id: 보드 컬럼 id
        :type column_id: int
        :param min_position: 하한(포함), None이면 제한 없음
        :type min_position: Optional[int]
        :param max_position: 상한(포함), None이면 제한 없음
        :type max_position: Optional[int]
        :param exclude_id: 결과에서 뺄 일정 id(이동 중인 일정 자신)
        :type exclude_id: Optional[int]
        :param workspace_id: 워크스페이스까지 맞춰 조회할 때
        :type workspace_id: Optional[int]
        :return: 활성 일정 목록
        :rtype: List[Schedule]
        """

        query = self._schedules().filter(
            Schedule.board_column_id == column_id,
            Schedule.is_deleted.is_(False),
        )
        if min_position is not None:
            query = query.filter(Schedule.position >= min_position)
        if max_position is not None:
            query = query.filter(Schedule.position <= max_position)
        if exclude_id is not None:
            query = query.filter(Schedule.id != exclude_id)
        if workspace_id is not None:
            query = query.filter(Schedule.workspace_id == workspace_id)
        return query.order_by(Schedule.position.asc(), Schedule.id.asc()).all()

    def count_active(self, column_id: int) -> int:
        self.db.flush()
        return (
            self.db.query(func.count(Schedule.id))
            .filter(Schedule.board_column_id == column_id, Schedule.is_deleted.is_(False))
            .scalar()
        ) or 0

    def max_position(self, column_id: int) -> int:
        self.db.flush()
        return (
            self.db.query(func.coalesce(func.max(Schedule.position), 0))
            .filter(Schedule.board_column_id == column_id, Schedule.is_deleted.is_(False))
            .scalar()
        ) or 0

    def by_workspace(self, workspace_id: int, include_deleted: bool = False) -> List[Schedule]:
        query = self._schedules().filter(Schedule.workspace_id == workspace_id)
        if not include_deleted:
            query = query.filter(Schedule.is_deleted.is_(False))
        return query.order_by(
            Schedule.board_column_id.asc(), Schedule.position.asc(), Schedule.id.asc()
        ).all()

    def logs_for(self, schedule_id: int) -> List[ScheduleLog]:
        return (
            self.db.query(ScheduleLog)
            .filter(ScheduleLog.schedule_id == schedule_id)
            .order_by(ScheduleLog.id.asc())
            .all()
        )

    def participants_for(self, schedule_id: int) -> List[ScheduleParticipant]:
        return (
            self.db.query(ScheduleParticipant)
            .filter(ScheduleParticipant.schedule_id == schedule_id)
            .order_by(ScheduleParticipant.id.asc())
            .all()
        )

    # 쓰기(커밋은 atomic()이 담당)
    def add(self, obj) -> None:
        self.db.add(obj)

    def add_all(self, objs: Iterable) -> None:
        self.db.add_all(list(objs))
