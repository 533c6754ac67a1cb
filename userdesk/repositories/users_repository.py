"""用户 Repository.

职责:
- 负责 Query 组装与数据库读取(read)
- 负责写操作的数据落库(add/delete/flush)(write)
- 不做序列化、不返回 Response、不 commit
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import cast

from sqlalchemy import Integer, cast as sql_cast, func

from userdesk import db
from userdesk.models.user import User


class UsersRepository:
    """用户记录 Repository.

    记录顺序即创建顺序: id 为按序分配的数字字符串, 排序时按整数比较.
    """

    @staticmethod
    def _numeric_id():  # noqa: ANN205
        return sql_cast(User.id, Integer)

    def get_all(self) -> list[User]:
        return list(User.query.order_by(self._numeric_id().asc()).all())

    def get_by_id(self, user_id: str) -> User | None:
        return cast("User | None", db.session.get(User, user_id))

    def get_by_ids(self, user_ids: Sequence[str]) -> list[User]:
        if not user_ids:
            return []
        return list(User.query.filter(User.id.in_(list(user_ids))).order_by(self._numeric_id().asc()).all())

    def get_by_email(self, email: str) -> User | None:
        """按邮箱查找(忽略大小写与首尾空白)."""
        normalized = (email or "").strip().lower()
        if not normalized:
            return None
        return cast("User | None", User.query.filter(func.lower(User.email) == normalized).first())

    def next_id(self) -> str:
        """返回下一个顺序 id: 现有最大数字 id + 1."""
        current = db.session.query(func.max(self._numeric_id())).scalar()
        return str(int(current or 0) + 1)

    def add(self, user: User) -> User:
        db.session.add(user)
        db.session.flush()
        return user

    def delete(self, user: User) -> None:
        db.session.delete(user)
        db.session.flush()

    def delete_many(self, users: Sequence[User]) -> int:
        for user in users:
            db.session.delete(user)
        db.session.flush()
        return len(users)

    @staticmethod
    def count_users() -> int:
        return int(User.query.count() or 0)
