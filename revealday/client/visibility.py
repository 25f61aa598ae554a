import threading


class VisibilityObserver:
    """
    Tracks whether the host view is visible and tells subscribers when that
    changes. Repeated reports of the same state are ignored.
    """

    def __init__(self, visible: bool = True):
        self._visible = visible
        self._subscribers = []
        self._lock = threading.Lock()

    @property
    def visible(self) -> bool:
        return self._visible

    def subscribe(self, callback):
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def set_visible(self, visible: bool) -> None:
        with self._lock:
            if visible == self._visible:
                return
            self._visible = visible
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(visible)
