"""Metrics hook protocol and its no-op default.

The orchestrator and the MIME probe report counters and timings through
whatever object is set as ``ImageDropConfig.metrics``.  Without one, a
:class:`NoopMetricsHook` is used.

Emitted metric names:

* ``imagedrop.attempts_total``             -- counter, tag ``source``
* ``imagedrop.attempt_success_total``      -- counter, tag ``mime_type``
* ``imagedrop.attempt_failure_total``      -- counter, tag ``kind``
* ``imagedrop.attempt_superseded_total``   -- counter
* ``imagedrop.attempt_duration_ms``        -- timing, tag ``outcome``
* ``imagedrop.mime_probe_fallback_total``  -- counter, tag ``reason``
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

Tags = dict[str, str]


@runtime_checkable
class MetricsHook(Protocol):
    """Interface a metrics backend implements.

    *tags* maps string keys to string values; the backend turns them
    into its own labels.  Backends with more methods (gauges,
    histograms) still satisfy the protocol.
    """

    def increment(self, name: str, value: int = 1, tags: Tags | None = None) -> None:
        """Add *value* to the counter *name*."""
        ...

    def timing(self, name: str, ms: float, tags: Tags | None = None) -> None:
        """Record a duration of *ms* milliseconds under *name*."""
        ...


class NoopMetricsHook:
    """Metrics backend that drops every data point."""

    __slots__ = ()

    def increment(self, name: str, value: int = 1, tags: Tags | None = None) -> None:
        pass

    def timing(self, name: str, ms: float, tags: Tags | None = None) -> None:
        pass
