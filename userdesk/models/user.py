"""用户台 - 用户记录模型."""

from __future__ import annotations

from userdesk import bcrypt, db
from userdesk.types.users import UserRecordDict


class User(db.Model):
    """用户记录模型.

    Attributes:
        id: 字符串主键,由仓库按顺序分配("1", "2", ...).
        first_name: 名.
        last_name: 姓.
        email: 主邮箱,全表唯一.
        alternate_email: 备用邮箱,可为空.
        age: 年龄.
        password: bcrypt 哈希后的密码.

    """

    __tablename__ = "users"

    id = db.Column(db.String(32), primary_key=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    alternate_email = db.Column(db.String(255), nullable=True)
    age = db.Column(db.Integer, nullable=False)
    password = db.Column(db.String(255), nullable=False)

    def set_password(self, password: str) -> None:
        """设置密码(加密).

        Args:
            password: 原始密码,长度规则由 schema 层保证.

        """
        self.password = bcrypt.generate_password_hash(password).decode("utf-8")

    def check_password(self, password: str) -> bool:
        return bcrypt.check_password_hash(self.password, password)

    def to_dict(self) -> UserRecordDict:
        """转换为对外字典,不包含密码哈希."""
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "alternate_email": self.alternate_email,
            "age": self.age,
        }

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"
