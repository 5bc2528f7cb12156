"""Trailing-edge debouncing of preview snapshots.

On-screen totals follow every edit synchronously; rendering a PDF preview is
expensive, so previews are produced from the last snapshot that stayed
unchanged for ``delay`` seconds (``INVOICE_STUDIO_PREVIEW_DELAY`` by default).
"""
from __future__ import annotations

import asyncio
from typing import Callable, Optional

import structlog

from .config import get_settings
from .schemas import Document

logger = structlog.get_logger(__name__)


class PreviewDebouncer:
    def __init__(
        self,
        delay: Optional[float] = None,
        on_snapshot: Optional[Callable[[Document], None]] = None,
    ) -> None:
        self._delay = get_settings().preview_delay if delay is None else delay
        self._on_snapshot = on_snapshot
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending: Optional[Document] = None
        self.latest: Optional[Document] = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def push(self, document: Document) -> None:
        """Schedule ``document`` as the next snapshot, superseding any pending one.

        Outside a running event loop there is nothing to debounce against and
        the snapshot is published at once.
        """
        self._pending = document
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._publish()
            return
        self._handle = loop.call_later(self._delay, self._publish)

    def flush(self) -> None:
        """Publish the pending snapshot now."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._pending is not None:
            self._publish()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = None
        self._pending = None

    def _publish(self) -> None:
        self._handle = None
        document, self._pending = self._pending, None
        if document is None:
            return
        self.latest = document
        if self._on_snapshot is None:
            return
        try:
            self._on_snapshot(document)
        except Exception:
            # A failed preview must not break editing.
            logger.exception("preview.render_failed", document_number=document.document_number)
