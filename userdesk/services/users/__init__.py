"""用户记录相关服务."""

from userdesk.services.users.filtering import filter_users
from userdesk.services.users.mutation_coordinator import (
    MutationKind,
    MutationOutcome,
    MutationStatus,
    Notification,
    NotificationLevel,
    UserMutationCoordinator,
)
from userdesk.services.users.table_state import ModalState, UserTableStore
from userdesk.services.users.table_view import build_table_view
from userdesk.services.users.user_seed_service import SeedReport, UserSeedService
from userdesk.services.users.user_write_service import UserWriteService
from userdesk.services.users.users_list_service import UsersListService

__all__ = [
    "ModalState",
    "MutationKind",
    "MutationOutcome",
    "MutationStatus",
    "Notification",
    "NotificationLevel",
    "SeedReport",
    "UserMutationCoordinator",
    "UserSeedService",
    "UserTableStore",
    "UserWriteService",
    "UsersListService",
    "build_table_view",
    "filter_users",
]
