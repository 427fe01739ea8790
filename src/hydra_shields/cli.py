import asyncio
import logging

import typer

from hydra_shields import config
from hydra_shields.aggregate import Aggregator, badge_response
from hydra_shields.cache import Caches
from hydra_shields.hydra.api import API, create_limiter, create_session
from hydra_shields.logger import configure_logging, get_log_handlers
from hydra_shields.web import create_app

logger = logging.getLogger("hydra_shields")


app = typer.Typer()


@app.callback()
def init():
    configure_logging(logger)
    get_log_handlers(logger)


@app.command()
def serve(
    host: str = config.HOST,
    port: int = config.PORT,
    debug: bool = False,
):
    logger.info("Serving on %s:%d", host, port)
    web_app = create_app()
    web_app.run(host=host, port=port, debug=debug, single_process=True)


@app.command()
def check(hydra_base_url: str, jobsets: str, jobs: str):
    async def handle():
        async with create_session() as session:
            aggregator = Aggregator(
                API(session, limiter=create_limiter()), Caches.from_config()
            )
            return await badge_response(aggregator, hydra_base_url, jobsets, jobs)

    _, body = asyncio.run(handle())
    typer.echo(body.model_dump_json(by_alias=True))
    if body.is_error:
        raise typer.Exit(code=1)
