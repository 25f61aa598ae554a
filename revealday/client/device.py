import json
import logging
import os
import tempfile
import threading
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

DEVICE_ID_KEY = "gr-device-id"
VOTE_KEY_PREFIX = "gr-voted-"


class DeviceStore:
    """
    Small persistent key/value store scoped to one device: the device id and
    which side this device voted for in each reveal. Kept in memory, and
    mirrored to a JSON file when ``path`` is given.
    """

    def __init__(self, path: str | os.PathLike | None = None):
        self._path = Path(path) if path else None
        self._lock = threading.Lock()
        self._data = self._load()

    def _load(self) -> dict:
        if self._path is None or not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("Device store unreadable, starting empty path=%s", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _persist(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=".device-", suffix=".json")
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(self._data, fh)
        os.replace(tmp, self._path)

    def get(self, key: str):
        return self._data.get(key)

    def set(self, key: str, value) -> None:
        with self._lock:
            self._data[key] = value
            self._persist()

    def device_id(self) -> str:
        with self._lock:
            device_id = self._data.get(DEVICE_ID_KEY)
            if not device_id:
                device_id = str(uuid.uuid4())
                self._data[DEVICE_ID_KEY] = device_id
                self._persist()
            return device_id

    def recorded_vote(self, reveal_id: str) -> str | None:
        return self.get(f"{VOTE_KEY_PREFIX}{reveal_id}")

    def record_vote(self, reveal_id: str, side: str) -> None:
        self.set(f"{VOTE_KEY_PREFIX}{reveal_id}", side)
