"""Configuration for the imagedrop pipeline.

:class:`ImageDropConfig` is a plain dataclass capturing every tuneable
knob.  An instance is passed to :class:`UploadOrchestrator`; when none is
given the defaults below apply.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Literal

DEFAULT_ALT_TEXT = "uploaded image"

DEFAULT_USER_AGENT = "imagedrop/0.1"


@dataclass
class ImageDropConfig:
    """Complete configuration for an upload orchestrator.

    Parameters
    ----------
    probe_timeout_seconds:
        Timeout for the ``HEAD`` request used to read a remote image's
        ``Content-Type``.  ``None`` (the default) imposes no timeout and
        relies on the network call's own failure signal.
    fetch_timeout_seconds:
        Timeout for the streamed ``GET`` used to read a remote image's
        header when measuring its dimensions.  ``None`` means no timeout.
    probe_read_limit_bytes:
        Maximum number of bytes read from a remote image while looking
        for its dimensions.  Reaching the limit without a decodable
        header is a decode failure.
    default_alt_text:
        Alternative text used when the source carries no file name
        (URL submissions, unnamed files).
    ai_disclosure:
        Provenance disclosure flag forwarded to the upload collaborator.

        * ``"none"``: the image was not produced by an AI tool.
        * ``"app_generated"``: the image was generated by this app.
    user_agent:
        ``User-Agent`` header sent with probe requests.
    http_proxy:
        Optional HTTP/HTTPS proxy URL for probe requests.
    metrics:
        Optional :class:`~imagedrop.observability.MetricsHook` backend.
    """

    # ── Probing ─────────────────────────────────────────────────────────
    probe_timeout_seconds: float | None = None

    fetch_timeout_seconds: float | None = None

    probe_read_limit_bytes: int = 4 * 1024 * 1024  # 4 MiB

    # ── Upload payload ──────────────────────────────────────────────────
    default_alt_text: str = DEFAULT_ALT_TEXT

    ai_disclosure: Literal["none", "app_generated"] = "none"

    # ── HTTP ────────────────────────────────────────────────────────────
    user_agent: str = DEFAULT_USER_AGENT

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.probe_timeout_seconds is not None and self.probe_timeout_seconds <= 0:
            raise ValueError(
                f"probe_timeout_seconds must be > 0 or None, got {self.probe_timeout_seconds}"
            )
        if self.fetch_timeout_seconds is not None and self.fetch_timeout_seconds <= 0:
            raise ValueError(
                f"fetch_timeout_seconds must be > 0 or None, got {self.fetch_timeout_seconds}"
            )
        if self.probe_read_limit_bytes <= 0:
            raise ValueError(
                f"probe_read_limit_bytes must be > 0, got {self.probe_read_limit_bytes}"
            )
        if self.ai_disclosure not in ("none", "app_generated"):
            raise ValueError(
                f"ai_disclosure must be 'none' or 'app_generated', got {self.ai_disclosure!r}"
            )

    def __repr__(self) -> str:
        """Hide proxy credentials embedded in the proxy URL."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "http_proxy" and val and "@" in val:
                scheme = val.split("://", 1)[0] if "://" in val else "http"
                host = val.rsplit("@", 1)[1]
                parts.append(f"http_proxy='{scheme}://****@{host}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"ImageDropConfig({', '.join(parts)})"
