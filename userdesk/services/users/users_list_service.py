"""用户列表 Service.

职责:
- 读取全量记录并转换为稳定 DTO
- 在内存中完成过滤与分页
- 不做 Response、不 commit
"""

from __future__ import annotations

from userdesk.repositories.users_repository import UsersRepository
from userdesk.services.users.filtering import filter_users
from userdesk.types.listing import PageSlice
from userdesk.types.users import FilterState, UserRecordDict
from userdesk.utils.pagination_utils import clamp_page_index, paginate


class UsersListService:
    """用户列表业务编排服务."""

    def __init__(self, repository: UsersRepository | None = None) -> None:
        self._repository = repository or UsersRepository()

    def list_records(self) -> list[UserRecordDict]:
        """按创建顺序返回全部对外记录."""
        return [user.to_dict() for user in self._repository.get_all()]

    def list_page(self, filters: FilterState, *, page_index: int, page_size: int) -> PageSlice[UserRecordDict]:
        """过滤后分页, 越界页码会被修正到最后一页."""
        subset = filter_users(self.list_records(), filters.query, filters.age_range)
        resolved_index = clamp_page_index(page_index, len(subset), page_size)
        return paginate(subset, resolved_index, page_size)
