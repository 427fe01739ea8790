from typing import Mapping, Tuple

from sanic import Sanic, response, Request
from sanic.log import logger
import sanic.log
from prometheus_client import core
from prometheus_client.exposition import CONTENT_TYPE_LATEST, generate_latest

from hydra_shields import config
from hydra_shields.aggregate import Aggregator, badge_response
from hydra_shields.cache import Caches
from hydra_shields.hydra.api import API, create_limiter, create_session
from hydra_shields.logger import configure_logging, get_log_handlers
from hydra_shields.metric import error_counter, request_counter
from hydra_shields.model import EndpointResponse

QUERY_PARAMETERS = ("hydra_base_url", "jobsets", "jobs")


async def process_badge_request(
    aggregator: Aggregator, args: Mapping
) -> Tuple[int, EndpointResponse]:
    # an empty glob is valid and matches only the empty string
    missing = [name for name in QUERY_PARAMETERS if name not in args]
    if missing:
        error_counter.labels(context="Invalid Query").inc()
        return 400, EndpointResponse(
            label="Invalid Query",
            message=f"missing query parameter(s): {', '.join(missing)}",
            is_error=True,
        )

    return await badge_response(
        aggregator, args.get("hydra_base_url"), args.get("jobsets"), args.get("jobs")
    )


def create_app():

    app = Sanic("hydra_shields")
    app.update_config(config)

    configure_logging()
    get_log_handlers(sanic.log.logger)

    app.ctx.caches = Caches.from_config()

    @app.listener("before_server_start")
    async def init(app, loop):
        logger.debug("Creating aiohttp session")
        app.ctx.aiohttp_session = create_session()
        app.ctx.aggregator = Aggregator(
            API(app.ctx.aiohttp_session, limiter=create_limiter()), app.ctx.caches
        )

    @app.listener("after_server_stop")
    async def close(app, loop):
        logger.debug("Closing aiohttp session")
        await app.ctx.aiohttp_session.close()

    @app.on_request
    async def on_request(request: Request):
        if request.path == "/metrics":
            return
        request_counter.labels(path=request.path).inc()

    @app.get("/")
    async def endpoint(request: Request):
        status, body = await process_badge_request(
            app.ctx.aggregator, request.get_args(keep_blank_values=True)
        )
        return response.json(body.to_json(), status=status)

    @app.get("/status")
    async def status(request):
        logger.debug("status check")
        return response.text("ok")

    @app.get("/metrics")
    async def metrics(request):
        data = generate_latest(core.REGISTRY)
        return response.raw(data, content_type=CONTENT_TYPE_LATEST)

    return app
