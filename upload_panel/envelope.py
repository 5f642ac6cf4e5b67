from flask import jsonify


def envelope(success: int = 0, uploaded: int = 0, output: str = "", error: str = "") -> dict:
    """
    Sparse response body shared by every API endpoint: zero and empty
    fields are left out.
    """
    body = {}
    if success:
        body["success"] = success
    if uploaded:
        body["uploaded"] = uploaded
    if output:
        body["output"] = output
    if error:
        body["error"] = error
    return body


def reply(status: int = 200, **fields):
    return jsonify(envelope(**fields)), status
