"""用户台 - Flask 应用初始化.

基于 Flask 的用户记录管理后台: 列表、搜索、过滤、分页与增删改.
"""

import logging
from importlib import import_module
from logging.handlers import RotatingFileHandler
from pathlib import Path

from flask import Blueprint, Flask, request
from flask.typing import ResponseReturnValue
from flask_bcrypt import Bcrypt
from flask_sqlalchemy import SQLAlchemy

from userdesk.settings import Settings

# 初始化扩展
db = SQLAlchemy()
bcrypt = Bcrypt()


def create_app(*, settings: Settings | None = None) -> Flask:
    """创建Flask应用实例.

    Args:
        settings: 可选的配置对象,用于测试或多环境启动.

    Returns:
        Flask: Flask应用实例

    """
    from userdesk.utils.response_utils import jsonify_unified_error  # noqa: PLC0415
    from userdesk.utils.structlog_config import ErrorContext, configure_structlog  # noqa: PLC0415

    resolved_settings = settings or Settings.load()
    app = Flask(__name__)

    # 配置应用
    configure_app(app, resolved_settings)

    # 初始化扩展
    initialize_extensions(app)

    # 注册蓝图
    configure_blueprints(app, resolved_settings)

    # 配置日志
    configure_logging(app)
    configure_structlog(app)

    log_level_name = str(app.config.get("LOG_LEVEL", "INFO"))
    logging.getLogger().setLevel(getattr(logging, log_level_name, logging.INFO))

    # 注册全局错误处理器
    @app.errorhandler(Exception)
    def handle_global_exception(error: Exception) -> ResponseReturnValue:
        """全局错误处理."""
        return jsonify_unified_error(error, context=ErrorContext(error, request))

    return app


def configure_app(app: Flask, settings: Settings) -> None:
    """写入 Settings 提供的配置."""
    app.config.from_mapping(settings.to_flask_config())
    app.config["TESTING"] = settings.is_testing


def initialize_extensions(app: Flask) -> None:
    """初始化数据库与密码哈希扩展,并确保数据表存在.

    表结构由模型直接创建, 不使用迁移.
    """
    db.init_app(app)
    bcrypt.init_app(app)

    import_module("userdesk.models.user")
    database_uri = str(app.config["SQLALCHEMY_DATABASE_URI"])
    if database_uri.startswith("sqlite:///") and ":memory:" not in database_uri:
        Path(database_uri.removeprefix("sqlite:///")).parent.mkdir(parents=True, exist_ok=True)
    with app.app_context():
        db.create_all()


def configure_blueprints(app: Flask, settings: Settings) -> None:
    """注册页面蓝图与 `/api/v1` JSON API."""
    blueprint_specs: list[tuple[str, str, str | None]] = [
        ("userdesk.routes.main", "main_bp", None),
        ("userdesk.routes.users", "users_bp", "/users"),
    ]

    for module_path, attr_name, prefix in blueprint_specs:
        blueprint: Blueprint = getattr(import_module(module_path), attr_name)
        if prefix:
            app.register_blueprint(blueprint, url_prefix=prefix)
        else:
            app.register_blueprint(blueprint)

    from userdesk.api import register_api_blueprints  # noqa: PLC0415

    register_api_blueprints(app, settings)


def configure_logging(app: Flask) -> None:
    """非调试/测试环境挂载滚动文件日志处理器."""
    if app.debug or app.testing:
        return

    log_path = Path(app.config["LOG_FILE"])
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=app.config["LOG_MAX_SIZE"],
        backupCount=app.config["LOG_BACKUP_COUNT"],
    )
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]"),
    )
    file_handler.setLevel(getattr(logging, app.config["LOG_LEVEL"]))
    app.logger.addHandler(file_handler)
    logging.getLogger().addHandler(file_handler)

    app.logger.setLevel(getattr(logging, app.config["LOG_LEVEL"]))
    app.logger.info("用户台应用启动")
