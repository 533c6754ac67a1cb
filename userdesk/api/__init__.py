"""用户台 JSON API (Flask-RESTX) 入口.

提供 `/api/v1/**` 版本化 API blueprint, 以及 Swagger UI 与 OpenAPI JSON 导出能力.
"""

from __future__ import annotations

from flask import Flask

from userdesk.settings import Settings


def register_api_blueprints(app: Flask, settings: Settings) -> None:
    """按 Settings 注册 API blueprints."""
    from userdesk.api.v1 import create_api_v1_blueprint  # noqa: PLC0415

    app.register_blueprint(create_api_v1_blueprint(settings), url_prefix="/api/v1")
