import asyncio
import json
from typing import Any, List, Optional

import aiohttp
import pydantic
from aiolimiter import AsyncLimiter
from sanic.log import logger
from yarl import URL

from hydra_shields import config
from hydra_shields.errors import DecodeError, TransportError, UrlError
from hydra_shields.hydra.model import Build, Jobset, JobsetEvalList, Project
from hydra_shields.metric import upstream_call_count

_projects_adapter = pydantic.TypeAdapter(List[Project])


def headers() -> dict:
    return {"Accept": "application/json", "User-Agent": config.USER_AGENT}


def parse_base_url(raw: str) -> URL:
    try:
        url = URL(raw)
    except (TypeError, ValueError) as e:
        raise UrlError(f"invalid base URL {raw!r}: {e}") from e
    if not url.is_absolute() or url.scheme not in ("http", "https") or not url.host:
        raise UrlError(f"base URL must be an absolute http(s) URL, got {raw!r}")
    return url


def join_url(base_url: URL, path: str) -> URL:
    try:
        url = base_url.join(URL(path))
    except (TypeError, ValueError) as e:
        raise UrlError(f"cannot join {path!r} onto {base_url}: {e}") from e
    if not url.is_absolute():
        raise UrlError(f"joining {path!r} onto {base_url} gave relative URL {url}")
    return url


def create_session() -> aiohttp.ClientSession:
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=config.HTTP_TIMEOUT),
        connector=aiohttp.TCPConnector(limit=config.MAX_CONNECTIONS),
    )


def create_limiter() -> Optional[AsyncLimiter]:
    if config.UPSTREAM_RATE_LIMIT <= 0:
        return None
    return AsyncLimiter(config.UPSTREAM_RATE_LIMIT, time_period=1)


class API:
    session: aiohttp.ClientSession
    limiter: Optional[AsyncLimiter]

    call_count: int

    def __init__(
        self, session: aiohttp.ClientSession, limiter: Optional[AsyncLimiter] = None
    ):
        self.session = session
        self.limiter = limiter
        self.call_count = 0

    async def _get(self, url: URL, kind: str) -> Any:
        self.call_count += 1
        upstream_call_count.labels(kind=kind).inc()
        if self.limiter is not None:
            await self.limiter.acquire()
        logger.debug("GET %s", url)
        try:
            async with self.session.get(url, headers=headers()) as resp:
                resp.raise_for_status()
                body = await resp.read()
        except aiohttp.ClientResponseError as e:
            raise TransportError(f"{e.status} {e.message} for {url}") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"request to {url} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise TransportError(f"request to {url} timed out") from e

        try:
            return json.loads(body)
        except ValueError as e:
            raise DecodeError(f"response from {url} is not valid JSON") from e

    async def fetch_projects(self, base_url: URL) -> List[Project]:
        data = await self._get(base_url, "projects")
        try:
            return _projects_adapter.validate_python(data)
        except pydantic.ValidationError as e:
            raise DecodeError(f"unexpected project list from {base_url}: {e}") from e

    async def fetch_evaluations(self, base_url: URL, jobset: Jobset) -> JobsetEvalList:
        url = join_url(base_url, f"jobset/{jobset.project}/{jobset.name}/evals")
        data = await self._get(url, "evals")
        try:
            return JobsetEvalList.model_validate(data)
        except pydantic.ValidationError as e:
            raise DecodeError(f"unexpected evaluation list from {url}: {e}") from e

    async def fetch_build(self, base_url: URL, build_id: int) -> Build:
        url = join_url(base_url, f"build/{build_id}")
        data = await self._get(url, "build")
        try:
            return Build.model_validate(data)
        except pydantic.ValidationError as e:
            raise DecodeError(f"unexpected build from {url}: {e}") from e
