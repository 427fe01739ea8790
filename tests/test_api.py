import aiohttp
from aiolimiter import AsyncLimiter
from aiohttp import web
from aiohttp.test_utils import TestServer
import pytest
from yarl import URL

from hydra_shields import config
from hydra_shields.errors import DecodeError, TransportError, UrlError
from hydra_shields.hydra.api import API, create_limiter, join_url, parse_base_url
from hydra_shields.hydra.model import Jobset


def _hydra_app(seen):
    async def projects(request):
        seen.append(request)
        return web.json_response(
            [
                {"name": "myproj", "displayname": "My Project", "jobsets": ["trunk"]},
                {"name": "empty", "jobsets": []},
            ]
        )

    async def evals(request):
        seen.append(request)
        return web.json_response(
            {
                "first": "?page=1",
                "evals": [
                    {"id": 12, "builds": [3, 4], "hasnewbuilds": 1},
                    {"id": 11, "builds": [1]},
                ],
            }
        )

    async def build(request):
        seen.append(request)
        build_id = int(request.match_info["id"])
        if build_id == 4:
            return web.json_response(
                {"id": 4, "job": "tests", "finished": 0, "buildstatus": None}
            )
        return web.json_response(
            {"id": build_id, "job": "build", "finished": 1, "buildstatus": 0}
        )

    async def not_json(request):
        return web.Response(text="<html>maintenance</html>")

    async def wrong_shape(request):
        return web.json_response({"finished": 1})

    async def unavailable(request):
        return web.Response(status=503, text="down")

    app = web.Application()
    app.router.add_get("/", projects)
    app.router.add_get("/jobset/{project}/{jobset}/evals", evals)
    app.router.add_get("/build/{id}", build)
    app.router.add_get("/html/build/{id}", not_json)
    app.router.add_get("/shape/build/{id}", wrong_shape)
    app.router.add_get("/down/build/{id}", unavailable)
    return app


@pytest.mark.asyncio
async def test_fetches_decode_hydra_responses():
    seen = []
    async with TestServer(_hydra_app(seen)) as server:
        base_url = server.make_url("/")
        async with aiohttp.ClientSession() as session:
            api = API(session)

            projects = await api.fetch_projects(base_url)
            assert [p.name for p in projects] == ["myproj", "empty"]
            assert projects[0].jobset_identities() == [Jobset("myproj", "trunk")]

            eval_list = await api.fetch_evaluations(base_url, Jobset("myproj", "trunk"))
            assert [e.builds for e in eval_list.evals] == [[3, 4], [1]]
            assert eval_list.evals[0].id == 12

            build = await api.fetch_build(base_url, 3)
            assert build.job == "build"
            assert build.is_finished
            assert build.is_success

            pending = await api.fetch_build(base_url, 4)
            assert not pending.is_finished
            assert pending.buildstatus is None
            assert not pending.is_success

            assert api.call_count == 4

    assert [request.path for request in seen] == [
        "/",
        "/jobset/myproj/trunk/evals",
        "/build/3",
        "/build/4",
    ]
    for request in seen:
        assert request.headers["Accept"] == "application/json"
        assert request.headers["User-Agent"] == "hydra-shields-endpoint"


@pytest.mark.asyncio
async def test_fetch_errors():
    async with TestServer(_hydra_app([])) as server:
        async with aiohttp.ClientSession() as session:
            api = API(session)

            with pytest.raises(DecodeError):
                await api.fetch_build(server.make_url("/html/"), 1)

            with pytest.raises(DecodeError):
                await api.fetch_build(server.make_url("/shape/"), 1)

            with pytest.raises(TransportError) as exc_info:
                await api.fetch_build(server.make_url("/down/"), 1)
            assert "503" in str(exc_info.value)

            with pytest.raises(TransportError):
                await api.fetch_build(server.make_url("/missing/"), 1)


@pytest.mark.asyncio
async def test_connection_failure_is_transport_error():
    async with aiohttp.ClientSession() as session:
        api = API(session)
        with pytest.raises(TransportError):
            await api.fetch_projects(URL("http://127.0.0.1:1/"))


def test_parse_base_url():
    assert str(parse_base_url("https://hydra.example/")) == "https://hydra.example/"

    for bad in ["not a url", "/relative/", "ftp://hydra.example/", "https://"]:
        with pytest.raises(UrlError):
            parse_base_url(bad)


def test_join_url_resolves_against_base():
    base = parse_base_url("https://hydra.example/")
    assert str(join_url(base, "build/5")) == "https://hydra.example/build/5"

    nested = parse_base_url("https://ci.example/hydra/")
    assert (
        str(join_url(nested, "jobset/p/j/evals"))
        == "https://ci.example/hydra/jobset/p/j/evals"
    )

    # without the trailing slash the last segment is replaced
    bare = parse_base_url("https://ci.example/hydra")
    assert str(join_url(bare, "build/5")) == "https://ci.example/build/5"


def test_create_limiter_follows_configured_rate(monkeypatch):
    monkeypatch.setattr(config, "UPSTREAM_RATE_LIMIT", 0)
    assert create_limiter() is None

    monkeypatch.setattr(config, "UPSTREAM_RATE_LIMIT", 5)
    limiter = create_limiter()
    assert isinstance(limiter, AsyncLimiter)
    assert limiter.max_rate == 5
    assert limiter.time_period == 1


class _CountingLimiter:
    def __init__(self):
        self.acquired = 0

    async def acquire(self):
        self.acquired += 1


@pytest.mark.asyncio
async def test_requests_acquire_the_limiter():
    limiter = _CountingLimiter()
    async with TestServer(_hydra_app([])) as server:
        async with aiohttp.ClientSession() as session:
            api = API(session, limiter=limiter)
            await api.fetch_projects(server.make_url("/"))
            await api.fetch_build(server.make_url("/"), 3)

    assert limiter.acquired == 2
