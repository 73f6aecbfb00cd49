import time
import threading


class CasePacer:
    """Fixed pause between consecutive sandbox calls of one batch."""

    def __init__(self, interval: float = 0.3, sleep=time.sleep):
        self.interval = max(0.0, float(interval or 0))
        self._sleep = sleep
        self._lock = threading.Lock()

    def pause(self):
        if self.interval <= 0:
            return
        with self._lock:
            self._sleep(self.interval)


_endpoint_pacers = {}
_registry_lock = threading.Lock()


def get_endpoint_pacer(endpoint: str, interval: float = 0.3) -> CasePacer:
    """Get or create a shared pacer for a sandbox endpoint."""
    with _registry_lock:
        pacer = _endpoint_pacers.get(endpoint)
        if pacer is None or pacer.interval != interval:
            pacer = CasePacer(interval)
            _endpoint_pacers[endpoint] = pacer
        return pacer
