"""테스트 공용 fixture: 테스트마다 새 sqlite 파일 DB"""

import pytest
from sqlalchemy.orm import sessionmaker

from database import init_db, make_engine
from services.schedule_service import ScheduleService
from services.schedule_store import ScheduleStore

ACTOR = 7
WORKSPACE = 1


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'schedules.db'}", echo=False)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return ScheduleStore(db)


@pytest.fixture
def service(store):
    return ScheduleService(store)


def fill_column(service, column_id, titles, workspace_id=WORKSPACE):
    """컬럼에 제목 순서대로 일정을 만든다"""
    return [
        service.create(column_id, workspace_id, ACTOR, {"title": t})
        for t in titles
    ]


def layout(service, column_id):
    """컬럼의 활성 일정을 [(제목, position), ...]으로"""
    return [(s.title, s.position) for s in service.list_by_column(column_id)]
