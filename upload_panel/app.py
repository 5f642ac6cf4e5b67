import logging
import os
import time
from logging.handlers import RotatingFileHandler

from flask import Flask, abort, current_app, g, request, send_from_directory
from werkzeug.exceptions import HTTPException, InternalServerError, MethodNotAllowed, RequestEntityTooLarge

from .commands import CommandRunner
from .config import Config
from .envelope import reply
from .routes import bp_api
from .storage import FileStore

METHOD_NOT_SUPPORTED = "Method not supported"


def create_app(config=None, test_config=None):
    config = config or Config.from_env()
    config.ensure_upload_dir()

    app = Flask(
        "upload_panel",
        static_folder=os.path.abspath(config.static_dir),
        static_url_path="/static",
    )
    app.config.update(
        UPLOAD_PANEL=config,
        MAX_CONTENT_LENGTH=config.upload_limit_bytes,
    )
    if test_config:
        app.config.update(test_config)

    _init_logging(app, config)

    app.extensions["file_store"] = FileStore(config.upload_dir)
    app.extensions["command_runner"] = CommandRunner(config.commands, config.command_timeout)
    app.register_blueprint(bp_api)
    _register_hooks(app)

    @app.get("/")
    def index():
        index_file = os.path.abspath(current_app.config["UPLOAD_PANEL"].index_file)
        if not os.path.isfile(index_file):
            abort(404, description="File not found")
        return send_from_directory(os.path.dirname(index_file), os.path.basename(index_file), mimetype="text/html")

    return app


def _register_hooks(app):
    @app.before_request
    def _start_timer():
        g.started = time.monotonic()

    @app.after_request
    def _log_request(response):
        elapsed = time.monotonic() - g.get("started", time.monotonic())
        app.logger.info("[%s] %s %s %.3fs", request.method, request.full_path.rstrip("?"), response.status_code, elapsed)
        return response

    @app.errorhandler(HTTPException)
    def _http_error(error):
        if not request.path.startswith("/api/"):
            return error
        if isinstance(error, MethodNotAllowed):
            return reply(405, error=METHOD_NOT_SUPPORTED)
        if isinstance(error, RequestEntityTooLarge):
            limit_mb = app.config["UPLOAD_PANEL"].upload_limit_mb
            return reply(413, error=f"Request body exceeds the {limit_mb} MB upload limit")
        return reply(error.code or 500, error=error.description)

    @app.errorhandler(Exception)
    def _unhandled_error(error):
        app.logger.exception("Unhandled error on %s %s", request.method, request.path)
        if not request.path.startswith("/api/"):
            return InternalServerError()
        return reply(500, error="Internal server error")


def _init_logging(app, config):
    # app.logger is shared by every app built in this process, start from a clean slate
    for handler in list(app.logger.handlers):
        app.logger.removeHandler(handler)
        handler.close()

    app.logger.setLevel(getattr(logging, config.log_level, logging.INFO))
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    app.logger.addHandler(sh)
    if config.log_file:
        fh = RotatingFileHandler(config.log_file, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
        fh.setFormatter(fmt)
        app.logger.addHandler(fh)
