"""用户批量导入 Service.

逐条创建用户, 邮箱重复或字段非法的记录被跳过并记录日志; 每条成功记录单独提交.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from userdesk import db
from userdesk.errors import ConflictError, ValidationError
from userdesk.services.users.user_write_service import UserWriteService
from userdesk.types.structures import PayloadMapping
from userdesk.utils.structlog_config import log_info, log_warning


@dataclass(slots=True)
class SeedReport:
    """导入结果汇总."""

    created: list[str] = field(default_factory=list)
    skipped_duplicates: list[str] = field(default_factory=list)
    skipped_invalid: list[int] = field(default_factory=list)


class UserSeedService:
    """从外部数据批量导入用户."""

    def __init__(self, service: UserWriteService | None = None) -> None:
        self._service = service or UserWriteService()

    def seed(self, records: Iterable[PayloadMapping]) -> SeedReport:
        report = SeedReport()
        for position, record in enumerate(records):
            try:
                user = self._service.create(record)
                db.session.commit()
            except ConflictError:
                db.session.rollback()
                report.skipped_duplicates.append(str(record.get("email", "")))
                log_warning("邮箱已存在, 跳过导入", module="seed_users", email=str(record.get("email", "")))
                continue
            except ValidationError as exc:
                db.session.rollback()
                report.skipped_invalid.append(position)
                log_warning(
                    "记录校验失败, 跳过导入",
                    module="seed_users",
                    position=position,
                    field_errors=exc.field_errors,
                )
                continue
            report.created.append(user.id)

        log_info(
            "用户导入完成",
            module="seed_users",
            created=len(report.created),
            skipped_duplicates=len(report.skipped_duplicates),
            skipped_invalid=len(report.skipped_invalid),
        )
        return report
