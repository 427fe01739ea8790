import asyncio
from dataclasses import dataclass
import functools
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Generic, Hashable, Optional, TypeVar

import cachetools

from hydra_shields import config
from hydra_shields.metric import cache_lookup_counter

logger = logging.getLogger("hydra_shields")

V = TypeVar("V")


class FetchCache(Generic[V]):
    """
    Bounded LRU cache of successful fetch results with single-flight
    deduplication: concurrent callers asking for the same key share one
    in-flight task. Failures reach every waiting caller and are not stored.
    """

    name: str
    _values: cachetools.Cache
    _inflight: Dict[Hashable, "asyncio.Future[V]"]

    def __init__(
        self,
        name: str,
        maxsize: int,
        ttl: Optional[float] = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        if ttl:
            self._values = cachetools.TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        else:
            self._values = cachetools.LRUCache(maxsize=maxsize)
        self._inflight = {}

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._values

    @property
    def maxsize(self) -> int:
        return int(self._values.maxsize)

    def in_flight(self, key: Hashable) -> bool:
        return key in self._inflight

    async def get_or_fetch(self, key: Hashable, fetch: Callable[[], Awaitable[V]]) -> V:
        task = self._inflight.get(key)
        if task is not None and task.done():
            # finished, but its done callback has not run yet
            self._settle(key, task)
            task = None

        try:
            value = self._values[key]
        except KeyError:
            pass
        else:
            cache_lookup_counter.labels(cache=self.name, result="hit").inc()
            return value

        if task is None:
            cache_lookup_counter.labels(cache=self.name, result="miss").inc()
            logger.debug("%s cache miss for %s, fetching", self.name, key)
            task = asyncio.ensure_future(fetch())
            self._inflight[key] = task
            task.add_done_callback(functools.partial(self._settle, key))
        else:
            cache_lookup_counter.labels(cache=self.name, result="joined").inc()
            logger.debug("%s fetch for %s already in flight, joining", self.name, key)

        # a cancelled caller must not cancel the fetch other callers wait on
        return await asyncio.shield(task)

    def _settle(self, key: Hashable, task: "asyncio.Future[V]") -> None:
        if self._inflight.get(key) is not task:
            # already settled
            return
        del self._inflight[key]
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.debug("%s fetch for %s failed, not caching: %r", self.name, key, exc)
            return
        self._values[key] = task.result()


@dataclass
class Caches:
    projects: FetchCache[Any]
    evaluations: FetchCache[Any]
    builds: FetchCache[Any]

    @classmethod
    def create(
        cls,
        projects_size: int = 100,
        evals_size: int = 100,
        builds_size: int = 1000,
        ttl: Optional[float] = None,
    ) -> "Caches":
        return cls(
            projects=FetchCache("projects", projects_size, ttl=ttl),
            evaluations=FetchCache("evaluations", evals_size, ttl=ttl),
            builds=FetchCache("builds", builds_size, ttl=ttl),
        )

    @classmethod
    def from_config(cls) -> "Caches":
        logger.info(
            "Creating fetch caches: projects=%d evals=%d builds=%d ttl=%s",
            config.PROJECTS_CACHE_SIZE,
            config.EVALS_CACHE_SIZE,
            config.BUILDS_CACHE_SIZE,
            config.CACHE_TTL or None,
        )
        return cls.create(
            projects_size=config.PROJECTS_CACHE_SIZE,
            evals_size=config.EVALS_CACHE_SIZE,
            builds_size=config.BUILDS_CACHE_SIZE,
            ttl=config.CACHE_TTL or None,
        )
