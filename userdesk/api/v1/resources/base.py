"""Base Resource helpers."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, TypeVar, Unpack

from flask import Response
from flask_restx import Resource

from userdesk.utils.response_utils import jsonify_unified_success
from userdesk.utils.route_safety import safe_route_call

if TYPE_CHECKING:
    from userdesk.types.structures import RouteSafetyOptions

R = TypeVar("R")


class BaseResource(Resource):
    """统一封套与 safe_route_call 适配."""

    def success(
        self,
        data: object | None = None,
        message: object | None = None,
        *,
        status: int = 200,
        meta: Mapping[str, object] | None = None,
    ) -> Response:
        # 直接返回 Response, RestX 不会再对其做二次序列化.
        response, status_code = jsonify_unified_success(data=data, message=message, status=status, meta=meta)
        response.status_code = status_code
        return response

    def safe_call(
        self,
        func: Callable[[], R],
        *,
        module: str,
        action: str,
        public_error: str,
        **options: Unpack[RouteSafetyOptions],
    ) -> R:
        return safe_route_call(func, module=module, action=action, public_error=public_error, **options)
