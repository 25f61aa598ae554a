from flask import request


def client_ip() -> str:
    """Best guess at the caller's address behind proxies."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return request.remote_addr or "unknown"


def json_body() -> dict:
    return request.get_json(silent=True) or {}
