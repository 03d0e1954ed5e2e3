# backdrop/graphics/pool.py
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List

from backdrop.core.timing import Clock
from backdrop.graphics.container import Container
from backdrop.graphics.context import (
    NullSurface,
    RenderContext,
    SurfaceFactory,
)
from backdrop.settings import ContextOptions, PoolSettings
from backdrop.types import ContextId, Size

logger = logging.getLogger(__name__)


@dataclass
class PoolStats:
    created: int = 0
    reused: int = 0
    evicted: int = 0
    swept: int = 0
    released: int = 0
    fallbacks: int = 0
    creation_failures: int = 0


class ContextPool:
    """
    Bounds the number of live rendering contexts.

    The pool is the only thing that creates, disposes or forgets contexts.
    Callers hold ids, not contexts, and look them up again with get().
    Nothing here raises to the caller: creation failures hand back a no-op
    fallback context and a full pool makes room by evicting.
    """

    def __init__(
        self,
        factory: SurfaceFactory,
        clock: Clock,
        settings: PoolSettings | None = None,
    ):
        self._factory = factory
        self._clock = clock
        self.settings = settings or PoolSettings()
        self.stats = PoolStats()

        # Insertion order doubles as the LRU tie-breaker.
        self._contexts: Dict[ContextId, RenderContext] = {}
        self._closed = False
        self._generations = itertools.count(1)

    @property
    def capacity(self) -> int:
        return self.settings.capacity

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._contexts)

    def __contains__(self, context_id: object) -> bool:
        return context_id in self._contexts

    def __iter__(self) -> Iterator[ContextId]:
        return iter(list(self._contexts))

    def get(self, context_id: ContextId) -> RenderContext | None:
        return self._contexts.get(context_id)

    def acquire(
        self,
        context_id: ContextId,
        container: Container,
        size_hint: Size | None = None,
        options: ContextOptions | None = None,
    ) -> RenderContext:
        options = options or ContextOptions()
        size = size_hint or container.size

        if self._closed:
            return self._fallback(context_id, container, size, options)

        existing = self._contexts.get(context_id)
        if existing is not None:
            existing.last_used_at = self._clock.now_ms()
            self.stats.reused += 1
            return existing

        self._make_room()

        try:
            surface = self._factory(container, size, options)
        except Exception:
            logger.exception(
                "Failed to create rendering context '%s'", context_id
            )
            self.stats.creation_failures += 1
            return self._fallback(context_id, container, size, options)

        now = self._clock.now_ms()
        ctx = RenderContext(
            id=context_id,
            surface=surface,
            container=container,
            size=size,
            created_at=now,
            last_used_at=now,
            generation=next(self._generations),
        )
        container.attach(ctx.element)
        self._contexts[context_id] = ctx
        self.stats.created += 1

        logger.debug(
            "Created context '%s' (%dx%d), %d/%d live",
            context_id,
            size.width,
            size.height,
            len(self._contexts),
            self.capacity,
        )
        return ctx

    def touch(self, context_id: ContextId) -> None:
        ctx = self._contexts.get(context_id)
        if ctx is not None:
            ctx.last_used_at = self._clock.now_ms()

    def release(self, context_id: ContextId) -> bool:
        """Dispose and forget a context. Unknown ids are ignored."""
        ctx = self._contexts.pop(context_id, None)
        if ctx is None:
            return False

        self._dispose(ctx)
        self.stats.released += 1
        return True

    def sweep(self, idle_threshold_ms: float | None = None) -> List[ContextId]:
        """Release every context that has not rendered for the threshold."""
        threshold = (
            self.settings.idle_timeout_ms
            if idle_threshold_ms is None
            else idle_threshold_ms
        )
        now = self._clock.now_ms()

        idle = [
            cid
            for cid, ctx in self._contexts.items()
            if now - ctx.last_used_at > threshold
        ]
        for cid in idle:
            logger.info("Disposing inactive context '%s'", cid)
            self._dispose(self._contexts.pop(cid))
            self.stats.swept += 1

        return idle

    def release_all(self) -> int:
        ids = list(self._contexts)
        for cid in ids:
            self._dispose(self._contexts.pop(cid))
        self.stats.released += len(ids)
        return len(ids)

    def shutdown(self) -> None:
        """Release everything; further acquires get fallback contexts."""
        self._closed = True
        count = self.release_all()
        logger.info("Context pool shut down (%d contexts released)", count)

    def least_recently_used(self) -> ContextId | None:
        if not self._contexts:
            return None
        # min() keeps the first of equal keys, i.e. the oldest insertion.
        return min(self._contexts.values(), key=lambda c: c.last_used_at).id

    def _make_room(self) -> None:
        if len(self._contexts) < self.capacity:
            return

        if self.settings.aggressive_eviction:
            logger.info(
                "Maximum contexts reached (%d), disposing all contexts",
                self.capacity,
            )
            self.stats.evicted += len(self._contexts)
            for cid in list(self._contexts):
                self._dispose(self._contexts.pop(cid))
            return

        while len(self._contexts) >= self.capacity:
            victim = self.least_recently_used()
            assert victim is not None
            logger.info("Maximum contexts reached, evicting '%s'", victim)
            self._dispose(self._contexts.pop(victim))
            self.stats.evicted += 1

    def _dispose(self, ctx: RenderContext) -> None:
        if ctx.disposed:
            return
        ctx.disposed = True
        ctx.container.detach(ctx.element)
        try:
            ctx.surface.dispose()
        except Exception:
            logger.exception("Error disposing rendering context '%s'", ctx.id)

    def _fallback(
        self,
        context_id: ContextId,
        container: Container,
        size: Size,
        options: ContextOptions,
    ) -> RenderContext:
        now = self._clock.now_ms()
        ctx = RenderContext(
            id=context_id,
            surface=NullSurface(options),
            container=container,
            size=size,
            created_at=now,
            last_used_at=now,
            fallback=True,
        )
        container.attach(ctx.element)
        self.stats.fallbacks += 1
        return ctx

    @staticmethod
    def dispose_fallback(ctx: RenderContext) -> None:
        """Detach a fallback context handed out by acquire()."""
        if not ctx.fallback or ctx.disposed:
            return
        ctx.disposed = True
        ctx.container.detach(ctx.element)
