import asyncio
import logging

from aiohttp import hdrs, web
from aiohttp.abc import AbstractAccessLogger

from . import responder
from .broadcast import ChangeBroadcaster, start_observer
from .config import RELOAD_PATH, ServeConfig
from .resolver import Directory, NotFound, Redirect, resolve

log = logging.getLogger(__name__)
access_log = logging.getLogger("liveserver.access")

CONFIG = web.AppKey("config", ServeConfig)
BROADCASTER = web.AppKey("broadcaster", ChangeBroadcaster)

CORS_HEADERS = {
    hdrs.ACCESS_CONTROL_ALLOW_ORIGIN: "*",
    hdrs.ACCESS_CONTROL_ALLOW_HEADERS: "Origin, Content-Type, Accept, Range",
}


class AccessLogger(AbstractAccessLogger):
    def log(self, request, response, time):
        self.logger.info(
            "%s - %.2fms - %s %s", response.status, time * 1000, request.method, request.path_qs
        )


# -------- Live reload --------
async def subscribe(request):
    return await request.app[BROADCASTER].subscribe(request)


async def watch_files(app):
    loop = asyncio.get_running_loop()
    observer = start_observer(app[CONFIG], app[BROADCASTER], loop)
    yield
    observer.stop()
    await loop.run_in_executor(None, observer.join)


async def close_clients(app):
    app[BROADCASTER].close()


# -------- HTTP handler --------
async def file_handler(request):
    config = request.app[CONFIG]
    loop = asyncio.get_running_loop()
    target = await loop.run_in_executor(None, resolve, request.raw_path, config)

    if isinstance(target, NotFound):
        return responder.send_not_found()
    if isinstance(target, Redirect):
        return responder.send_redirect(target.location)

    try:
        if isinstance(target, Directory):
            return await responder.send_listing(target.path, config)
        return await responder.send_file(request, target.path, config)
    except OSError as err:
        log.warning("Failed to serve %s: %s", request.path, err)
        return responder.send_error(err, config)


async def add_cors_headers(request, response):
    response.headers.update(CORS_HEADERS)


def create_app(config):
    app = web.Application()
    app[CONFIG] = config

    if config.cors:
        app.on_response_prepare.append(add_cors_headers)

    if config.reload:
        app[BROADCASTER] = ChangeBroadcaster()
        app.cleanup_ctx.append(watch_files)
        app.on_shutdown.append(close_clients)
        app.router.add_get(RELOAD_PATH, subscribe)

    app.router.add_route("*", "/{path:.*}", file_handler)
    return app


def create_runner(config):
    return web.AppRunner(
        create_app(config),
        access_log_class=AccessLogger,
        access_log=access_log if config.log_requests else None,
    )
