# 환경 변수 설정
# - .env 파일을 먼저 읽고, 없으면 기본값 사용
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./app.db")
WEB_ORIGIN = os.getenv("WEB_ORIGIN", "")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# "1"/"true"면 SQLAlchemy가 실행하는 SQL을 로깅함
SQL_ECHO = os.getenv("SQL_ECHO", "").lower() in ("1", "true", "yes")
