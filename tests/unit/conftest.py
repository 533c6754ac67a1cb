# tests/unit/conftest.py
"""单元测试专用 fixtures.

提供隔离的环境变量、内存 SQLite 应用与用户记录构造工具。
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest
from flask import Flask

from userdesk import create_app, db
from userdesk.settings import Settings
from userdesk.types.users import UserRecordDict


@pytest.fixture(autouse=True)
def _unit_test_env(monkeypatch):
    """为 unit tests 强制注入隔离环境变量.

    目标:
    - unit tests 只使用内存 SQLite
    - 避免开发者本机环境变量影响测试稳定性
    """
    monkeypatch.setenv("FLASK_ENV", "testing")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("BCRYPT_LOG_ROUNDS", "4")
    monkeypatch.setenv("USERS_PAGE_SIZE", "10")
    monkeypatch.delenv("FLASK_DEBUG", raising=False)


@pytest.fixture
def app() -> Iterator[Flask]:
    """创建测试应用实例并推入 application context."""
    flask_app = create_app(settings=Settings.load())
    with flask_app.app_context():
        yield flask_app
        db.session.remove()


@pytest.fixture
def client(app: Flask):
    return app.test_client()


def make_record(index: int, **overrides: object) -> UserRecordDict:
    """构造第 ``index`` 条(0-based)对外记录."""
    record: UserRecordDict = {
        "id": str(index + 1),
        "first_name": f"User{index}",
        "last_name": "Smith" if index % 2 == 0 else "Jones",
        "email": f"user{index}@example.com",
        "alternate_email": None,
        "age": 18 + index,
    }
    record.update(overrides)  # type: ignore[typeddict-item]
    return record


@pytest.fixture
def records_factory() -> Callable[[int], list[UserRecordDict]]:
    """按数量生成记录: 年龄依次为 18, 19, ...; 偶数下标姓 Smith."""

    def _factory(count: int) -> list[UserRecordDict]:
        return [make_record(index) for index in range(count)]

    return _factory


@pytest.fixture
def record_factory() -> Callable[..., UserRecordDict]:
    return make_record


def user_form(index: int, **overrides: object) -> dict[str, object]:
    """新增用户表单."""
    form: dict[str, object] = {
        "first_name": f"User{index}",
        "last_name": "Smith" if index % 2 == 0 else "Jones",
        "email": f"user{index}@example.com",
        "age": 18 + index,
        "password": "Passw0rd!",
    }
    form.update(overrides)
    return form


@pytest.fixture
def form_factory() -> Callable[..., dict[str, object]]:
    return user_form


@pytest.fixture
def seed_users(app: Flask) -> Callable[[int], list[str]]:
    """向数据库写入若干用户并提交, 返回分配的 id."""
    from userdesk.services.users import UserWriteService  # noqa: PLC0415

    def _seed(count: int) -> list[str]:
        service = UserWriteService()
        created = [service.create(user_form(index)).id for index in range(count)]
        db.session.commit()
        return created

    return _seed
