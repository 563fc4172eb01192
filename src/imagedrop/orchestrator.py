"""Upload orchestrator.

:class:`UploadOrchestrator` runs one image through the whole pipeline:

1. **Validate** -- load the source, sniff its format, probe its
   dimensions, and build an :class:`ImageDescriptor`.
2. **Upload** -- hand the descriptor to the asset-upload collaborator.
3. **Insert** -- insert the returned asset into the document, then wait
   for the upload service to confirm durable storage.

It is the only writer of the busy / error / success output slots, which
it publishes to subscribers as :class:`StatusSnapshot` objects.

Usage::

    async with UploadOrchestrator(uploader, inserter) as orchestrator:
        orchestrator.subscribe(render)
        orchestrator.input_changed("https://example.com/cat.png")
        outcome = await orchestrator.submit_url()

A newer submission supersedes any attempt still in flight: every
resumption point compares the attempt's sequence number with the latest
one, and a stale attempt stops without publishing anything.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import httpx

from imagedrop.collaborators import AssetHandle, AssetUploader, DocumentInserter
from imagedrop.config import ImageDropConfig
from imagedrop.errors import (
    ImageDropError,
    InputEmptyError,
    InsertionFailedError,
    InvalidFileTypeError,
    UploadFailedError,
)
from imagedrop.image import (
    PipelineStateMachine,
    build_image_element,
    build_upload_request,
    load_file,
    load_url,
    match_signature,
    probe_dimensions,
    read_file,
    sniff_bytes,
    sniff_remote,
)
from imagedrop.models import (
    AttemptOutcome,
    FailureReason,
    FileSource,
    ImageDescriptor,
    ImageSource,
    PipelineState,
    StatusSnapshot,
    UploadResult,
    UrlSource,
)
from imagedrop.observability import NoopMetricsHook, get_logger

log = get_logger("imagedrop.orchestrator")

Listener = Callable[[StatusSnapshot], None]

_GENERIC_UPLOAD_MESSAGE = "Failed to upload image. Please try again."
_GENERIC_INSERT_MESSAGE = "Failed to add image to the design. Please try again."


class _AttemptSuperseded(Exception):
    """Raised inside an attempt once a newer submission has started."""


class UploadOrchestrator:
    """Drive image submissions through validation, upload, and insertion.

    Parameters
    ----------
    uploader:
        The asset-upload collaborator.
    inserter:
        The document-insertion collaborator.
    config:
        Pipeline configuration.  Defaults to :class:`ImageDropConfig()`.
    client:
        HTTP client for remote probing.  When omitted the orchestrator
        creates one and closes it in :meth:`close`.
    """

    def __init__(
        self,
        uploader: AssetUploader,
        inserter: DocumentInserter,
        config: ImageDropConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config if config is not None else ImageDropConfig()
        self._uploader = uploader
        self._inserter = inserter
        self._metrics = (
            self._config.metrics if self._config.metrics is not None else NoopMetricsHook()
        )

        self._owns_client = client is None
        if client is None:
            proxy: httpx.URL | str | None = self._config.http_proxy
            client = httpx.AsyncClient(
                headers={"User-Agent": self._config.user_agent},
                timeout=httpx.Timeout(None),
                proxy=proxy,
            )
        self._client = client

        self._machine = PipelineStateMachine()
        self._attempt = 0
        self._input_value = ""
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        return self._machine.state

    @property
    def status(self) -> StatusSnapshot:
        """The current output slots."""
        return StatusSnapshot(
            state=self._machine.state,
            busy=self._machine.is_active,
            error=self._machine.reason,
            success=self._machine.state == PipelineState.SUCCEEDED,
            input_value=self._input_value,
            attempt=self._attempt,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with a :class:`StatusSnapshot` after every change.

        Returns a function that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def input_changed(self, value: str) -> None:
        """Record an edit to the URL input.

        After a finished attempt the error and success indicators are
        cleared and the state returns to ``IDLE``; the typed value is
        kept.
        """
        self._input_value = value
        if self._machine.is_terminal:
            self._machine.transition(PipelineState.IDLE)
        self._publish()

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit_url(self, url: str | None = None) -> AttemptOutcome:
        """Submit *url*, or the last value passed to :meth:`input_changed`."""
        return await self.submit(UrlSource(self._input_value if url is None else url))

    async def submit_file(self, source: FileSource) -> AttemptOutcome:
        """Submit a local file."""
        return await self.submit(source)

    async def submit(self, source: ImageSource) -> AttemptOutcome:
        """Run *source* through the pipeline.

        Returns
        -------
        AttemptOutcome
            The attempt's final state, with the :class:`UploadResult` on
            success or the :class:`FailureReason` on failure.  Outcomes
            of superseded attempts are returned but never published.
        """
        self._attempt += 1
        attempt = self._attempt
        kind = "file" if isinstance(source, FileSource) else "url"

        self._machine.reset()
        self._machine.transition(PipelineState.VALIDATING)
        self._publish()

        self._metrics.increment("imagedrop.attempts_total", tags={"source": kind})
        log.info(
            "Attempt started",
            extra={"extra_fields": {"op": "submit", "attempt": attempt, "source": kind}},
        )

        t0 = time.monotonic()
        stage = PipelineState.VALIDATING
        try:
            if isinstance(source, FileSource):
                descriptor = await self._describe_file(attempt, source)
                alt_text = source.name or self._config.default_alt_text
            else:
                descriptor = await self._describe_url(attempt, source)
                alt_text = self._config.default_alt_text

            stage = self._advance(attempt, PipelineState.UPLOADING)
            handle = await self._upload(descriptor)
            self._ensure_current(attempt)

            stage = self._advance(attempt, PipelineState.INSERTING)
            insertion_outcome = await self._insert(handle, alt_text)
            self._ensure_current(attempt)

            await self._wait_until_stored(handle)
            self._ensure_current(attempt)
        except _AttemptSuperseded:
            return self._superseded(attempt, stage)
        except ImageDropError as exc:
            if attempt != self._attempt:
                return self._superseded(attempt, stage)
            return self._failed(attempt, stage, exc, t0)

        result = UploadResult(
            asset_handle=handle,
            insertion_outcome=insertion_outcome,
            descriptor=descriptor,
        )
        self._machine.transition(PipelineState.SUCCEEDED)
        self._input_value = ""
        self._publish()

        self._metrics.increment(
            "imagedrop.attempt_success_total",
            tags={"mime_type": descriptor.mime_type.value},
        )
        self._metrics.timing(
            "imagedrop.attempt_duration_ms",
            (time.monotonic() - t0) * 1000,
            tags={"outcome": "succeeded"},
        )
        log.info(
            "Attempt succeeded",
            extra={
                "extra_fields": {
                    "op": "submit",
                    "attempt": attempt,
                    "ref": handle.ref,
                    "mime_type": descriptor.mime_type.value,
                    "width": descriptor.width,
                    "height": descriptor.height,
                }
            },
        )
        return AttemptOutcome(attempt=attempt, state=PipelineState.SUCCEEDED, result=result)

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP client if this orchestrator created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> UploadOrchestrator:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Validation stage
    # ------------------------------------------------------------------

    async def _describe_file(self, attempt: int, source: FileSource) -> ImageDescriptor:
        data = await read_file(source)
        self._ensure_current(attempt)

        if not data:
            raise InputEmptyError(
                message="The selected file is empty",
                context={"source": "file", "name": source.name},
            )

        declared = source.declared_type
        if declared and not declared.lower().startswith("image/") and match_signature(data) is None:
            raise InvalidFileTypeError(
                message="Please select an image file",
                context={"name": source.name, "declared_type": declared},
            )

        mime_type = sniff_bytes(data, declared)
        loaded = await load_file(source, mime_type, data)
        width, height = await probe_dimensions(
            loaded,
            self._client,
            read_limit=self._config.probe_read_limit_bytes,
            timeout=self._config.fetch_timeout_seconds,
        )
        self._ensure_current(attempt)
        return ImageDescriptor(
            payload=loaded.payload, mime_type=mime_type, width=width, height=height,
        )

    async def _describe_url(self, attempt: int, source: UrlSource) -> ImageDescriptor:
        loaded = load_url(source)

        mime_type = await sniff_remote(
            loaded.payload,
            self._client,
            timeout=self._config.probe_timeout_seconds,
            metrics=self._metrics,
        )
        self._ensure_current(attempt)

        width, height = await probe_dimensions(
            loaded,
            self._client,
            read_limit=self._config.probe_read_limit_bytes,
            timeout=self._config.fetch_timeout_seconds,
        )
        self._ensure_current(attempt)
        return ImageDescriptor(
            payload=loaded.payload, mime_type=mime_type, width=width, height=height,
        )

    # ------------------------------------------------------------------
    # Collaborator calls
    # ------------------------------------------------------------------

    async def _upload(self, descriptor: ImageDescriptor) -> AssetHandle:
        request = build_upload_request(descriptor, self._config.ai_disclosure)
        try:
            handle = await self._uploader.upload(request)
            if not getattr(handle, "ref", None):
                raise UploadFailedError(
                    message="The upload service returned no asset reference",
                    context={"stage": "upload"},
                )
        except ImageDropError:
            raise
        except Exception as exc:
            raise UploadFailedError(
                message=str(exc) or _GENERIC_UPLOAD_MESSAGE,
                context={"stage": "upload"},
                cause=exc,
            ) from exc
        return handle

    async def _insert(self, handle: AssetHandle, alt_text: str) -> Any:
        element = build_image_element(handle.ref, alt_text)
        try:
            return await self._inserter.insert(element)
        except ImageDropError:
            raise
        except Exception as exc:
            raise InsertionFailedError(
                message=str(exc) or _GENERIC_INSERT_MESSAGE,
                context={"ref": handle.ref},
                cause=exc,
            ) from exc

    async def _wait_until_stored(self, handle: AssetHandle) -> None:
        try:
            await handle.wait_until_uploaded()
        except ImageDropError:
            raise
        except Exception as exc:
            raise UploadFailedError(
                message=str(exc) or _GENERIC_UPLOAD_MESSAGE,
                context={"stage": "wait_until_uploaded", "ref": handle.ref},
                cause=exc,
            ) from exc

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _ensure_current(self, attempt: int) -> None:
        if attempt != self._attempt:
            raise _AttemptSuperseded(attempt)

    def _advance(self, attempt: int, new_state: PipelineState) -> PipelineState:
        self._ensure_current(attempt)
        self._machine.transition(new_state)
        self._publish()
        return new_state

    def _failed(
        self,
        attempt: int,
        stage: PipelineState,
        exc: ImageDropError,
        t0: float,
    ) -> AttemptOutcome:
        reason = FailureReason(kind=exc.kind, code=exc.code, message=exc.message)
        self._machine.fail(reason)
        self._publish()

        self._metrics.increment(
            "imagedrop.attempt_failure_total",
            tags={"kind": exc.kind.value},
        )
        self._metrics.timing(
            "imagedrop.attempt_duration_ms",
            (time.monotonic() - t0) * 1000,
            tags={"outcome": "failed"},
        )
        log.warning(
            "Attempt failed",
            extra={
                "extra_fields": {
                    "op": "submit",
                    "attempt": attempt,
                    "stage": stage.value,
                    "code": reason.code,
                    "kind": reason.kind.value,
                    "error": exc.message,
                    "context": exc.context,
                }
            },
        )
        return AttemptOutcome(attempt=attempt, state=PipelineState.FAILED, error=reason)

    def _superseded(self, attempt: int, stage: PipelineState) -> AttemptOutcome:
        self._metrics.increment("imagedrop.attempt_superseded_total")
        log.info(
            "Attempt superseded",
            extra={
                "extra_fields": {
                    "op": "submit",
                    "attempt": attempt,
                    "latest_attempt": self._attempt,
                    "stage": stage.value,
                }
            },
        )
        return AttemptOutcome(attempt=attempt, state=stage, superseded=True)

    def _publish(self) -> None:
        snapshot = self.status
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                # Listeners are presentation code; they never abort an attempt.
                log.warning(
                    "Status listener raised",
                    exc_info=True,
                    extra={
                        "extra_fields": {
                            "op": "publish",
                            "attempt": snapshot.attempt,
                            "state": snapshot.state.value,
                        }
                    },
                )
