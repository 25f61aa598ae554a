import time
import uuid

from flask import current_app, g, request

MAX_REQUEST_ID_LENGTH = 128
REQUEST_ID_HEADER = "X-Request-Id"


def init_request_id(app):
    """Tag every request with an id (client supplied or generated) and log one access line."""

    @app.before_request
    def _assign_request_id():
        rid = request.headers.get(REQUEST_ID_HEADER, "").strip()[:MAX_REQUEST_ID_LENGTH]
        g.request_id = rid or str(uuid.uuid4())
        g.request_started = time.perf_counter()

    @app.after_request
    def _add_request_id_header(response):
        rid = getattr(g, "request_id", None)
        if rid:
            response.headers[REQUEST_ID_HEADER] = rid

        started = getattr(g, "request_started", None)
        if started is not None:
            current_app.logger.info(
                "%s %s -> %s %.1fms request_id=%s",
                request.method, request.path, response.status_code,
                (time.perf_counter() - started) * 1000, rid,
            )
        return response
