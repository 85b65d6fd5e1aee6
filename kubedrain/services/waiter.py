from __future__ import annotations

from collections.abc import Callable

import structlog
from kubernetes.client import V1Pod

from ..exceptions import PodDeletionTimeout, WaitTimeoutError, is_not_found
from ..utils.wait import poll_immediate

logger = structlog.get_logger(__name__)

PodFetcher = Callable[[str, str], V1Pod]


class PodDeletionWaiter:
    """Polls a set of pods until every one of them is gone.

    A pod is gone once the API server answers 404 for it, or answers with an
    object carrying a different UID (the name was reused by a replacement).
    ``pending`` holds the pods still present after the last finished cycle, so
    it stays meaningful when a fetch error aborts the wait.
    """

    def __init__(
        self,
        fetch: PodFetcher,
        pods: list[V1Pod],
        *,
        interval: float,
        timeout: float,
        using_eviction: bool = False,
        log: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._fetch = fetch
        self.pending: list[V1Pod] = list(pods)
        self.interval = interval
        self.timeout = timeout
        self.verb = "evicted" if using_eviction else "deleted"
        self._log = log or logger

    def check(self) -> bool:
        still_pending: list[V1Pod] = []
        for pod in self.pending:
            meta = pod.metadata
            try:
                current = self._fetch(meta.namespace, meta.name)
            except Exception as exc:
                if not is_not_found(exc):
                    raise
                current = None

            if current is None or current.metadata.uid != meta.uid:
                self._log.info(
                    f"kubernetes.pod_{self.verb}",
                    pod=meta.name,
                    namespace=meta.namespace,
                )
                continue
            still_pending.append(pod)

        self.pending = still_pending
        return not still_pending

    def wait(self) -> list[V1Pod]:
        try:
            poll_immediate(self.interval, self.timeout, self.check)
        except WaitTimeoutError:
            raise PodDeletionTimeout(list(self.pending), self.timeout) from None
        except Exception as exc:
            exc.pending_pods = list(self.pending)
            raise
        return self.pending
