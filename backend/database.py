# database.py
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from config import DATABASE_URL, SQL_ECHO
from models.schedule import Base


def configure_sqlite(engine: Engine) -> Engine:
    """
    SQLite 엔진에 쓰기 직렬화를 설정한다.
    pysqlite의 암묵적 BEGIN을 끄고, 모든 트랜잭션을 BEGIN IMMEDIATE로 시작해서
    같은 보드 컬럼을 건드리는 작업이 서로 끼어들지 못하게 한다.

    :param engine: sqlite 엔진
    :type engine: Engine
    :return: 같은 엔진
    :rtype: Engine
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _record):
        dbapi_conn.isolation_level = None
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys = ON")
        cur.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def make_engine(url: str = DATABASE_URL, echo: bool = SQL_ECHO) -> Engine:
    is_sqlite = url.startswith("sqlite")
    eng = create_engine(
        url,
        echo=echo,
        connect_args={"check_same_thread": False, "timeout": 30} if is_sqlite else {},
    )
    return configure_sqlite(eng) if is_sqlite else eng


engine = make_engine()
SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)

def init_db(bind: Engine = None):
    Base.metadata.create_all(bind=bind or engine)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
