from flask import Blueprint, current_app, request
from werkzeug.exceptions import MethodNotAllowed

from .envelope import reply
from .storage import EmptyBatch, ListingError, MissingFilename

bp_api = Blueprint("api", __name__, url_prefix="/api")


@bp_api.before_request
def _single_method_only():
    # Flask adds HEAD and OPTIONS to every rule, the API answers only the declared method
    if request.url_rule is None:
        return None
    allowed = request.url_rule.methods - {"HEAD", "OPTIONS"}
    if request.method not in allowed:
        raise MethodNotAllowed(valid_methods=sorted(allowed))


def _store():
    return current_app.extensions["file_store"]


def _runner():
    return current_app.extensions["command_runner"]


@bp_api.post("/upload")
def upload_files():
    try:
        result = _store().save_batch(request.files.getlist("files"))
    except EmptyBatch as error:
        return reply(400, error=str(error))
    return reply(uploaded=result.uploaded)


@bp_api.post("/delete")
def delete_file():
    try:
        _store().delete(request.values.get("filename", ""))
    except MissingFilename as error:
        return reply(400, error=str(error))
    except FileNotFoundError:
        return reply(404, error="File not found")
    except OSError as error:
        current_app.logger.error("Unable to delete %s: %s", request.values.get("filename"), error)
        return reply(500, error=f"Unable to delete file: {error}")
    return reply(success=1)


@bp_api.get("/list")
def list_files():
    try:
        output = _store().listing()
    except ListingError as error:
        current_app.logger.error("%s", error)
        return reply(500, error=str(error), output=error.output)
    return reply(output=output)


@bp_api.get("/update", defaults={"slot": "update"})
@bp_api.get("/backupAPP", defaults={"slot": "backup_app"})
@bp_api.get("/restoreAPP", defaults={"slot": "restore_app"})
@bp_api.get("/backupBD", defaults={"slot": "backup_db"})
def run_command(slot):
    result = _runner().run(slot)
    if not result.ok:
        return reply(500, error=result.error, output=result.output)
    return reply(output=result.output)
