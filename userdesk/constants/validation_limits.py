"""输入校验/阈值常量.

集中管理 schema/settings/API 中的业务阈值, 避免 magic number 分散在各层.
"""

from __future__ import annotations

from typing import Final

# User record(write path)
USER_NAME_MIN_LENGTH: Final[int] = 2
USER_NAME_MAX_LENGTH: Final[int] = 100
USER_EMAIL_MAX_LENGTH: Final[int] = 255
USER_MIN_AGE: Final[int] = 18
USER_PASSWORD_MIN_LENGTH: Final[int] = 8
USER_PASSWORD_MAX_LENGTH: Final[int] = 128

EMAIL_PATTERN: Final[str] = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

# Table filter
AGE_RANGE_MIN: Final[int] = 0
AGE_RANGE_MAX: Final[int] = 100

# API pagination/query limits
DEFAULT_PAGE_SIZE: Final[int] = 10
PAGE_SIZE_MAX: Final[int] = 200
SEARCH_MAX_LENGTH: Final[int] = 200

# Settings validation constraints
BCRYPT_LOG_ROUNDS_MIN: Final[int] = 4
FILTER_DEBOUNCE_MS_MAX: Final[int] = 5000
