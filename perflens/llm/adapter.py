"""Oracle adapter: one batch in, raw response text out."""

from __future__ import annotations

import threading
from concurrent.futures import Future, TimeoutError as FutureTimeout
from typing import Optional

from ..audit import AuditContext
from ..logging import get_logger
from ..models import Batch
from ..prompting.builder import PromptBuilder
from ..scheduling import AnalysisCancelled, CancellationToken
from .runner import LLMRunner, OracleError

# How often a waiting call checks the cancellation token, in seconds.
POLL_INTERVAL = 0.05


class OracleAdapter:
    """Sends batches to the oracle with at most one call in flight.

    Each call runs on a daemon worker thread. A cancelled call is abandoned on
    that thread, so it never holds up interpreter shutdown.
    """

    def __init__(
        self,
        runner: LLMRunner,
        prompt_builder: PromptBuilder | None = None,
        *,
        poll_interval: float = POLL_INTERVAL,
    ) -> None:
        self.runner = runner
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.poll_interval = poll_interval
        self.logger = get_logger("llm.adapter")
        self._call_lock = threading.Lock()
        self._calls = 0
        self._worker: threading.Thread | None = None

    def invoke(
        self,
        batch: Batch,
        audit_context: AuditContext | None = None,
        *,
        cancel: Optional[CancellationToken] = None,
    ) -> str:
        """Return the oracle's response for ``batch``.

        Raises ``OracleError`` when the runner fails or answers with blank text,
        and ``AnalysisCancelled`` when ``cancel`` fires before the answer arrives.
        """
        if cancel is not None:
            cancel.raise_if_cancelled()
        request = self.prompt_builder.build(batch, audit_context)
        with self._call_lock:
            if cancel is not None:
                cancel.raise_if_cancelled()
            self.logger.debug(
                "Sending %s batch of %d file(s), %d bytes",
                batch.group.value,
                len(batch),
                batch.total_size,
            )
            future = self._start(request.prompt, request.system)
            text = self._await(future, cancel)
        if not isinstance(text, str) or not text.strip():
            raise OracleError("Oracle returned an empty response")
        return text

    def _start(self, prompt: str, system: str | None) -> Future:
        future: Future = Future()
        runner = self.runner

        def _worker() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                text = runner.run(prompt, system=system)
            except Exception as exc:
                future.set_exception(exc)
            else:
                future.set_result(text)

        self._calls += 1
        thread = threading.Thread(
            target=_worker,
            name=f"perflens-oracle-{self._calls}",
            daemon=True,
        )
        self._worker = thread
        thread.start()
        return future

    def _await(self, future: Future, cancel: Optional[CancellationToken]) -> str:
        while True:
            if cancel is not None and cancel.cancelled:
                future.cancel()
                self.logger.debug("Abandoning in-flight oracle call after cancellation")
                raise AnalysisCancelled("Analysis cancelled while waiting for the oracle")
            try:
                return future.result(timeout=self.poll_interval)
            except FutureTimeout:
                continue
            except OracleError:
                raise
            except Exception as exc:
                raise OracleError(f"Oracle call failed: {exc}") from exc

    @property
    def worker(self) -> threading.Thread | None:
        """Thread that ran, or is still running, the most recent call."""
        return self._worker

    def close(self) -> None:
        worker = self._worker
        if worker is not None and worker.is_alive():
            self.logger.debug("Leaving oracle call on %s to finish in the background", worker.name)

    def __enter__(self) -> "OracleAdapter":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["OracleAdapter", "POLL_INTERVAL"]
