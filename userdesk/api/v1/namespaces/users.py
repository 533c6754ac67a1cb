"""Users namespace (Phase 1 核心域)."""

from __future__ import annotations

from flask import request
from flask_restx import Namespace, fields

from userdesk.api.v1.models.envelope import get_error_envelope_model, make_success_envelope_model
from userdesk.api.v1.resources.base import BaseResource
from userdesk.api.v1.resources.query_parsers import drop_missing, new_parser
from userdesk.constants import HttpStatus
from userdesk.constants.system_constants import SuccessMessages
from userdesk.errors import NotFoundError, ValidationError
from userdesk.repositories.users_repository import UsersRepository
from userdesk.schemas.users import UsersBatchDeletePayload
from userdesk.schemas.users_query import UserTableQuery
from userdesk.schemas.validation import validate_or_raise
from userdesk.services.users import UsersListService, UserWriteService
from userdesk.types.structures import PayloadMapping
from userdesk.utils.sensitive_data import scrub_sensitive_fields
from userdesk.utils.structlog_config import log_info

ns = Namespace("users", description="用户管理")

ErrorEnvelope = get_error_envelope_model(ns)

UserItemModel = ns.model(
    "UserItem",
    {
        "id": fields.String(description="用户 ID", example="1"),
        "first_name": fields.String(description="名", example="John"),
        "last_name": fields.String(description="姓", example="Smith"),
        "email": fields.String(description="邮箱", example="john.smith@example.com"),
        "alternate_email": fields.String(description="备用邮箱", example=None),
        "age": fields.Integer(description="年龄", example=30),
    },
)

UserListData = ns.model(
    "UserListData",
    {
        "items": fields.List(fields.Nested(UserItemModel)),
        "total": fields.Integer(description="过滤后的总数", example=12),
        "page": fields.Integer(description="当前页(1-based)", example=1),
        "pages": fields.Integer(description="总页数", example=2),
        "limit": fields.Integer(description="每页数量", example=10),
    },
)

UserDetailData = ns.model("UserDetailData", {"user": fields.Nested(UserItemModel)})

UsersBatchDeleteData = ns.model(
    "UsersBatchDeleteData",
    {"user_ids": fields.List(fields.String, description="请求删除的用户 ID")},
)

EmailAvailabilityData = ns.model(
    "EmailAvailabilityData",
    {
        "email": fields.String(description="待检查的邮箱"),
        "available": fields.Boolean(description="是否可用"),
        "owned": fields.Boolean(description="是否已属于指定用户"),
    },
)

UserListSuccessEnvelope = make_success_envelope_model(ns, "UserListSuccessEnvelope", UserListData)
UserDetailSuccessEnvelope = make_success_envelope_model(ns, "UserDetailSuccessEnvelope", UserDetailData)
UserDeleteSuccessEnvelope = make_success_envelope_model(ns, "UserDeleteSuccessEnvelope")
UsersBatchDeleteSuccessEnvelope = make_success_envelope_model(
    ns,
    "UsersBatchDeleteSuccessEnvelope",
    UsersBatchDeleteData,
)
EmailAvailabilitySuccessEnvelope = make_success_envelope_model(
    ns,
    "EmailAvailabilitySuccessEnvelope",
    EmailAvailabilityData,
)

UserWritePayload = ns.model(
    "UserWritePayload",
    {
        "first_name": fields.String(required=True, description="名(至少 2 个字符)"),
        "last_name": fields.String(required=True, description="姓(至少 2 个字符)"),
        "email": fields.String(required=True, description="邮箱(唯一)"),
        "alternate_email": fields.String(required=False, description="备用邮箱(可选, 不能与邮箱相同)"),
        "age": fields.Integer(required=True, description="年龄(不小于 18)"),
        "password": fields.String(required=True, description="密码(8-128 位); 编辑时留空表示不修改"),
    },
)

UsersBatchDeletePayloadModel = ns.model(
    "UsersBatchDeletePayload",
    {"ids": fields.List(fields.String, required=True, description="待删除的用户 ID 列表")},
)

_user_list_query_parser = new_parser()
_user_list_query_parser.add_argument("search", type=str, location="args")
_user_list_query_parser.add_argument("q", type=str, location="args")
_user_list_query_parser.add_argument("age_min", type=str, location="args")
_user_list_query_parser.add_argument("age_max", type=str, location="args")
_user_list_query_parser.add_argument("page", type=str, location="args")
_user_list_query_parser.add_argument("page_size", type=str, location="args")

_email_availability_parser = new_parser()
_email_availability_parser.add_argument("email", type=str, required=True, location="args")
_email_availability_parser.add_argument("user_id", type=str, location="args")


def _get_raw_payload() -> PayloadMapping:
    if request.is_json:
        payload = request.get_json(silent=True)
        if isinstance(payload, dict):
            return payload
        raise ValidationError(message_key="JSON_REQUIRED")
    return request.form


@ns.route("")
class UsersResource(BaseResource):
    """用户列表资源."""

    @ns.response(200, "OK", UserListSuccessEnvelope)
    @ns.response(400, "Bad Request", ErrorEnvelope)
    @ns.response(500, "Internal Server Error", ErrorEnvelope)
    @ns.expect(_user_list_query_parser)
    def get(self):
        """获取用户列表.

        先按搜索词与年龄范围过滤, 再分页; 页码越界时返回最后一页.
        """
        parsed = drop_missing(_user_list_query_parser.parse_args())
        query = validate_or_raise(UserTableQuery, parsed)

        def _execute():
            page = UsersListService().list_page(
                query.to_filter_state(),
                page_index=query.page_index,
                page_size=query.page_size,
            )
            result = page.to_paginated_result()
            return self.success(
                data={
                    "items": result.items,
                    "total": result.total,
                    "page": result.page,
                    "pages": result.pages,
                    "limit": result.limit,
                },
                message=SuccessMessages.DATA_RETRIEVED,
            )

        return self.safe_call(
            _execute,
            module="users",
            action="list_users",
            public_error="获取用户列表失败",
            context={
                "search": query.search,
                "age_min": query.age_min,
                "age_max": query.age_max,
                "page": query.page,
                "page_size": query.page_size,
            },
        )

    @ns.response(201, "Created", UserDetailSuccessEnvelope)
    @ns.response(400, "Bad Request", ErrorEnvelope)
    @ns.response(409, "Conflict", ErrorEnvelope)
    @ns.response(500, "Internal Server Error", ErrorEnvelope)
    @ns.expect(UserWritePayload, validate=False)
    def post(self):
        """创建用户."""
        payload = _get_raw_payload()
        log_info(
            "创建用户请求",
            module="users",
            payload=scrub_sensitive_fields(payload),  # type: ignore[arg-type]
        )

        def _execute():
            user = UserWriteService().create(payload)
            return self.success(
                data={"user": user.to_dict()},
                message=SuccessMessages.USER_CREATED,
                status=HttpStatus.CREATED,
            )

        return self.safe_call(
            _execute,
            module="users",
            action="create_user",
            public_error="创建用户失败",
            context={"email": payload.get("email")},
        )


@ns.route("/batch-delete")
class UsersBatchDeleteResource(BaseResource):
    """批量删除资源."""

    @ns.response(200, "OK", UsersBatchDeleteSuccessEnvelope)
    @ns.response(400, "Bad Request", ErrorEnvelope)
    @ns.response(404, "Not Found", ErrorEnvelope)
    @ns.response(500, "Internal Server Error", ErrorEnvelope)
    @ns.expect(UsersBatchDeletePayloadModel, validate=False)
    def post(self):
        """批量删除用户; 一条都未匹配时返回 404."""
        params = validate_or_raise(UsersBatchDeletePayload, _get_raw_payload())

        def _execute():
            if not UserWriteService().delete_many(params.ids):
                raise NotFoundError(message_key="NO_USERS_MATCHED", extra={"user_ids": list(params.ids)})
            return self.success(data={"user_ids": list(params.ids)}, message=SuccessMessages.USERS_DELETED)

        return self.safe_call(
            _execute,
            module="users",
            action="batch_delete_users",
            public_error="批量删除用户失败",
            context={"user_ids": list(params.ids)},
        )


@ns.route("/email-availability")
class EmailAvailabilityResource(BaseResource):
    """邮箱可用性检查."""

    @ns.response(200, "OK", EmailAvailabilitySuccessEnvelope)
    @ns.response(400, "Bad Request", ErrorEnvelope)
    @ns.response(409, "Conflict", ErrorEnvelope)
    @ns.expect(_email_availability_parser)
    def get(self):
        """检查邮箱能否用于新增或指定用户; 被其他用户占用时返回 409."""
        parsed = _email_availability_parser.parse_args()
        email = (parsed.get("email") or "").strip()
        user_id = (parsed.get("user_id") or "").strip()
        if not email:
            raise ValidationError(message_key="REQUEST_DATA_EMPTY", extra={"field_errors": {"email": ["邮箱不能为空"]}})

        def _execute():
            service = UserWriteService()
            if user_id:
                owned = service.exists_by_email_and_id(email, user_id)
                available = True
            else:
                owned = False
                available = not service.exists_by_email(email)
            return self.success(
                data={"email": email, "available": available, "owned": owned},
                message=SuccessMessages.DATA_RETRIEVED,
            )

        return self.safe_call(
            _execute,
            module="users",
            action="check_email_availability",
            public_error="检查邮箱失败",
            context={"user_id": user_id or None},
        )


@ns.route("/<string:user_id>")
class UserDetailResource(BaseResource):
    """单个用户资源."""

    @ns.response(200, "OK", UserDetailSuccessEnvelope)
    @ns.response(404, "Not Found", ErrorEnvelope)
    def get(self, user_id: str):
        """获取用户详情."""

        def _execute():
            user = UsersRepository().get_by_id(user_id)
            if user is None:
                raise NotFoundError(message_key="USER_NOT_FOUND", extra={"user_id": user_id})
            return self.success(data={"user": user.to_dict()}, message=SuccessMessages.DATA_RETRIEVED)

        return self.safe_call(
            _execute,
            module="users",
            action="get_user",
            public_error="获取用户详情失败",
            context={"user_id": user_id},
        )

    @ns.response(200, "OK", UserDetailSuccessEnvelope)
    @ns.response(400, "Bad Request", ErrorEnvelope)
    @ns.response(404, "Not Found", ErrorEnvelope)
    @ns.response(409, "Conflict", ErrorEnvelope)
    @ns.expect(UserWritePayload, validate=False)
    def patch(self, user_id: str):
        """更新用户, 仅修改请求中出现的字段."""
        payload = _get_raw_payload()
        log_info(
            "更新用户请求",
            module="users",
            user_id=user_id,
            payload=scrub_sensitive_fields(payload),  # type: ignore[arg-type]
        )

        def _execute():
            user = UserWriteService().update(user_id, payload)
            if user is None:
                raise NotFoundError(message_key="USER_NOT_FOUND", extra={"user_id": user_id})
            return self.success(data={"user": user.to_dict()}, message=SuccessMessages.USER_UPDATED)

        return self.safe_call(
            _execute,
            module="users",
            action="update_user",
            public_error="更新用户失败",
            context={"user_id": user_id},
        )

    @ns.response(200, "OK", UserDeleteSuccessEnvelope)
    @ns.response(404, "Not Found", ErrorEnvelope)
    def delete(self, user_id: str):
        """删除用户."""

        def _execute():
            if not UserWriteService().delete_one(user_id):
                raise NotFoundError(message_key="USER_NOT_FOUND", extra={"user_id": user_id})
            return self.success(message=SuccessMessages.USER_DELETED)

        return self.safe_call(
            _execute,
            module="users",
            action="delete_user",
            public_error="删除用户失败",
            context={"user_id": user_id},
        )
