"""用户台 - 主要路由."""

from http import HTTPStatus

from flask import Blueprint, redirect, url_for
from flask.typing import ResponseReturnValue

# 创建蓝图
main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index() -> ResponseReturnValue:
    """首页 - 重定向到用户管理页面."""
    return redirect(url_for("users.index"))


@main_bp.route("/favicon.ico")
def favicon() -> ResponseReturnValue:
    # 返回一个空的响应,避免404错误
    return "", HTTPStatus.NO_CONTENT
