import asyncio
import logging
import os

from aiohttp import hdrs, web
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

log = logging.getLogger(__name__)

DEBOUNCE_WAIT = 0.1
HEARTBEAT = 15
RELOAD_MESSAGE = b"data: reload\n\n"

IGNORED_DIRS = {".git", "node_modules"}
RELOAD_EVENTS = {"modified", "created", "moved"}


class ChangeBroadcaster:
    """Registry of open event-stream clients.

    Bursts of ``notify()`` calls within ``wait`` seconds of each other end
    in a single reload message to every client.
    """

    def __init__(self, wait=DEBOUNCE_WAIT, heartbeat=HEARTBEAT):
        self.wait = wait
        self.heartbeat = heartbeat
        self.clients = set()
        self._timer = None
        self._tasks = set()
        self._closing = asyncio.Event()

    async def subscribe(self, request):
        response = web.StreamResponse(
            headers={
                hdrs.CONTENT_TYPE: "text/event-stream",
                hdrs.CACHE_CONTROL: "no-cache",
                hdrs.CONNECTION: "keep-alive",
            }
        )
        await response.prepare(request)
        try:
            await response.write(b": connected\n\n")
            self.clients.add(response)
            while not self._closing.is_set() and not _disconnected(request):
                try:
                    await asyncio.wait_for(self._closing.wait(), self.heartbeat)
                except asyncio.TimeoutError:
                    await response.write(b": ping\n\n")
        except ConnectionResetError:
            log.debug("Live reload client disconnected")
        finally:
            self.clients.discard(response)
        return response

    def notify(self):
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().call_later(self.wait, self._fire)

    def _fire(self):
        self._timer = None
        task = asyncio.get_running_loop().create_task(self.broadcast())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def broadcast(self, message=RELOAD_MESSAGE):
        clients = list(self.clients)
        log.debug("Reloading %d client(s)", len(clients))
        results = await asyncio.gather(
            *(client.write(message) for client in clients), return_exceptions=True
        )
        for client, result in zip(clients, results):
            if isinstance(result, BaseException):
                log.debug("Dropping live reload client: %r", result)
                self.clients.discard(client)

    def close(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._closing.set()


def _disconnected(request):
    return request.transport is None or request.transport.is_closing()


# -------- File watcher --------
class Watcher(FileSystemEventHandler):
    def __init__(self, loop, broadcaster, only=None):
        self.loop = loop
        self.broadcaster = broadcaster
        self.only = only

    def on_any_event(self, event):
        if event.is_directory or event.event_type not in RELOAD_EVENTS:
            return
        paths = [event.src_path, getattr(event, "dest_path", "")]
        if any(self.wants(os.fsdecode(path)) for path in paths if path):
            self.loop.call_soon_threadsafe(self.broadcaster.notify)

    def wants(self, path):
        if self.only is not None:
            return os.path.abspath(path) == self.only
        return not IGNORED_DIRS.intersection(path.split(os.sep))


def start_observer(config, broadcaster, loop):
    only = config.entry if config.entry_is_file else None
    observer = Observer()
    observer.schedule(Watcher(loop, broadcaster, only), config.base, recursive=only is None)
    observer.start()
    log.debug("Watching %s", config.entry)
    return observer
