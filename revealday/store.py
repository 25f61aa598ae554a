import redis
from flask import current_app

EXTENSION_KEY = "redis_store"


class RedisStore:
    """
    Flask extension owning the one Redis connection pool of an app.
    The pool connects lazily, so constructing it never blocks startup.
    """

    def __init__(self, app=None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app, client=None):
        if client is None:
            url = app.config.get("REDIS_URL")
            if url:
                client = redis.Redis.from_url(
                    url,
                    decode_responses=True,
                    socket_timeout=app.config.get("REDIS_SOCKET_TIMEOUT", 5),
                    socket_connect_timeout=app.config.get("REDIS_SOCKET_TIMEOUT", 5),
                    health_check_interval=30,
                )
            else:
                app.logger.warning("No backing store configured")
        app.extensions[EXTENSION_KEY] = client

    @property
    def client(self) -> redis.Redis | None:
        return current_app.extensions.get(EXTENSION_KEY)

    def ping(self) -> bool:
        client = self.client
        if client is None:
            return False
        try:
            return bool(client.ping())
        except redis.RedisError:
            current_app.logger.warning("Backing store ping failed", exc_info=True)
            return False
