"""
Session and transfer telemetry kept in memory for the lifetime of the process
"""
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Any, Iterator, List, Optional


@dataclass
class Sample:
    """Numeric observation such as a connect or transfer duration"""
    name: str
    value: float
    tags: Dict[str, str] = field(default_factory=dict)
    at: float = field(default_factory=time.time)


@dataclass
class Event:
    """Lifecycle milestone (tab connected, shell exited, transfer failed)"""
    name: str
    details: Dict[str, Any] = field(default_factory=dict)
    at: float = field(default_factory=time.time)


class Telemetry:
    def __init__(self, limit: int = 1000):
        # Oldest records are dropped once ``limit`` is reached
        self.limit = limit
        self._samples: List[Sample] = []
        self._events: List[Event] = []

    def _append(self, bucket: list, item) -> None:
        bucket.append(item)
        if len(bucket) > self.limit:
            del bucket[0]

    def record_metric(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        self._append(self._samples, Sample(name, float(value), dict(tags or {})))

    def record_event(self, name: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._append(self._events, Event(name, dict(details or {})))

    @contextmanager
    def measure(self, name: str, tags: Optional[Dict[str, str]] = None) -> Iterator[None]:
        """
        Time a block as ``<name>.seconds``.

        The sample is kept even when the block raises; a failure also
        adds a ``<name>.failed`` event carrying the error text.
        """
        started = time.monotonic()
        try:
            yield
        except Exception as e:
            self.record_event(f"{name}.failed", {"error": str(e), **(tags or {})})
            raise
        finally:
            self.record_metric(f"{name}.seconds", time.monotonic() - started, tags)

    def events(self, name: Optional[str] = None) -> List[Event]:
        """Recorded events, optionally only those called ``name``"""
        return [e for e in self._events if name is None or e.name == name]

    def samples(self, name: Optional[str] = None) -> List[Sample]:
        return [s for s in self._samples if name is None or s.name == name]

    def clear(self) -> None:
        self._samples.clear()
        self._events.clear()


_telemetry = Telemetry()


def get_telemetry() -> Telemetry:
    """Process-wide collector used when a component is not handed its own"""
    return _telemetry
