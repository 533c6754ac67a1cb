"""API v1 query 参数解析工具.

仅用于 API 层的 query params(`request.args`), 通过 `flask_restx.reqparse.RequestParser`
统一解析并配合 `@ns.expect(parser)` 输出文档.
"""

from __future__ import annotations

from typing import Final

from flask_restx import reqparse

_DEFAULT_BUNDLE_ERRORS: Final[bool] = True


def new_parser(*, bundle_errors: bool = _DEFAULT_BUNDLE_ERRORS) -> reqparse.RequestParser:
    """构造统一配置的 RequestParser."""
    return reqparse.RequestParser(bundle_errors=bundle_errors)


def drop_missing(parsed: dict[str, object]) -> dict[str, object]:
    """去掉 reqparse 为未传入参数填充的 None, 交由 schema 使用默认值."""
    return {key: value for key, value in parsed.items() if value is not None}
