import os
import uuid
from datetime import date

import pytest
from sqlalchemy.orm import Session

os.environ.setdefault("PYTEST_RUNNING", "1")

from billia.db import models
from billia.db.database import SessionLocal, engine, ensure_sqlite_schema
from billia.services import llm
from billia.utils.feature_flags import refresh_feature_flag_cache


@pytest.fixture(scope="session", autouse=True)
def _schema():
    """Create every table once on the shared in-memory database."""
    ensure_sqlite_schema()
    models.Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def _clean_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(models.Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for name in (
        "DEV_MODE",
        "DEV_MODE_ALLOWED_HOSTS",
        "ADMIN_EMAILS",
        "CRON_SECRET",
        "APP_BASE_URL",
        "APP_HOST",
        "RECONCILE_AGENCIES",
        "LLM_FEATURES_ENABLED",
        "FEATURE_RECURRING_ENABLED",
        "FEATURE_RECONCILIATION_ENABLED",
        "GEMINI_API_KEY",
        "GOOGLE_GENERATIVE_AI_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    refresh_feature_flag_cache()
    llm.reset_llm_client()
    yield
    refresh_feature_flag_cache()
    llm.reset_llm_client()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def user_factory(db_session: Session):
    def _create(email: str = None, is_superadmin: bool = False):
        email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
        user = models.User(email=email, display_name=email.split("@")[0], is_superadmin=is_superadmin)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create


@pytest.fixture
def user(user_factory):
    return user_factory("owner@example.com")


@pytest.fixture
def client_factory(db_session: Session):
    def _create(user, name: str = "株式会社テスト", email: str = None):
        db_client = models.Client(user_id=user.id, name=name, email=email)
        db_session.add(db_client)
        db_session.commit()
        db_session.refresh(db_client)
        return db_client
    return _create


@pytest.fixture
def tenant_factory(db_session: Session):
    def _create(user, name: str = "山田太郎", name_kana: str = "ﾔﾏﾀﾞﾀﾛｳ", amount: int = 80000, group=None):
        tenant = models.Tenant(
            user_id=user.id,
            name=name,
            name_kana=name_kana,
            amount=amount,
            group_id=group.id if group else None,
        )
        db_session.add(tenant)
        db_session.commit()
        db_session.refresh(tenant)
        return tenant
    return _create


@pytest.fixture
def profile_factory(db_session: Session):
    def _create(user, **overrides):
        profile = models.UserProfile(user_id=user.id, company_name="テスト商事", **overrides)
        db_session.add(profile)
        db_session.commit()
        db_session.refresh(profile)
        return profile
    return _create


@pytest.fixture
def fixed_today():
    return date(2024, 5, 15)
