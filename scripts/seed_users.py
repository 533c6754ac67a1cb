#!/usr/bin/env python3
"""从 JSON 文件导入用户记录.

文件内容为对象数组, 字段与新增用户表单一致::

    [{"first_name": "John", "last_name": "Smith", "email": "john@example.com", "age": 30, "password": "..."}]

邮箱已存在的记录会被跳过.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from userdesk import create_app
from userdesk.services.users.user_seed_service import UserSeedService
from userdesk.utils.structlog_config import get_logger


def _load_records(path: Path) -> list[dict[str, object]]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        raise SystemExit(f"{path} 必须是 JSON 对象数组")
    return payload


def main() -> int:
    parser = argparse.ArgumentParser(description="从 JSON 文件导入用户记录")
    parser.add_argument("--file", "-f", required=True, type=Path, help="JSON 文件路径")
    args = parser.parse_args()

    records = _load_records(args.file)
    app = create_app()
    with app.app_context():
        report = UserSeedService().seed(records)

    get_logger("seed_users").info(
        "导入结束",
        created=len(report.created),
        skipped_duplicates=report.skipped_duplicates,
        skipped_invalid=report.skipped_invalid,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
