import pytest

from userdesk.repositories.users_repository import UsersRepository
from userdesk.services.users.user_seed_service import UserSeedService


@pytest.mark.unit
def test_seed_skips_duplicates_and_invalid_records(app, form_factory) -> None:
    records = [
        form_factory(0),
        form_factory(1),
        form_factory(2, email="USER0@example.com"),
        form_factory(3, age=12),
    ]

    report = UserSeedService().seed(records)

    assert report.created == ["1", "2"]
    assert report.skipped_duplicates == ["USER0@example.com"]
    assert report.skipped_invalid == [3]
    assert UsersRepository.count_users() == 2
