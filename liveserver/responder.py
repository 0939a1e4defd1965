import asyncio
import logging
import mimetypes
import os

from aiohttp import hdrs, web

from .negotiate import FileMetadata, negotiate
from .pages import inject, list_names, render_error, render_listing

log = logging.getLogger(__name__)

CHUNK_SIZE = 256 * 1024


def content_type(path):
    ctype, _ = mimetypes.guess_type(path)
    return ctype or "text/plain"


def read_text(path):
    # surrogateescape + newline="" give back the exact bytes on encode
    with open(path, "r", encoding="utf-8", errors="surrogateescape", newline="") as f:
        return f.read()


# -------- HTML --------
def send_html(document, config):
    body = inject(document, config).encode("utf-8", "surrogateescape")
    return web.Response(
        body=body,
        content_type="text/html",
        headers={hdrs.CACHE_CONTROL: "no-store"},
    )


async def send_listing(path, config):
    loop = asyncio.get_running_loop()
    names = await loop.run_in_executor(None, list_names, path)
    return send_html(render_listing(path, names), config)


def send_error(err, config):
    return send_html(render_error(err), config)


def send_redirect(location):
    return web.Response(status=302, headers={hdrs.LOCATION: location})


def send_not_found():
    return web.Response(status=404)


# -------- Files --------
async def send_file(request, path, config):
    loop = asyncio.get_running_loop()
    meta = FileMetadata.from_stat(await loop.run_in_executor(None, os.stat, path))
    if meta.is_dir:
        return await send_listing(path, config)

    if path.endswith(".html"):
        document = await loop.run_in_executor(None, read_text, path)
        return send_html(document, config)

    negotiation = negotiate(meta, request.headers)
    headers = {
        hdrs.CONTENT_TYPE: content_type(path),
        hdrs.ACCEPT_RANGES: "bytes",
        hdrs.ETAG: negotiation.validator.etag,
        hdrs.LAST_MODIFIED: negotiation.validator.last_modified,
        hdrs.CACHE_CONTROL: "no-store" if config.reload else "no-cache",
    }
    if negotiation.content_range:
        headers[hdrs.CONTENT_RANGE] = negotiation.content_range
    if not negotiation.has_body:
        return web.Response(status=negotiation.status, headers=headers)

    fobj = await loop.run_in_executor(None, open, path, "rb")
    response = web.StreamResponse(status=negotiation.status, headers=headers)
    response.content_length = negotiation.length
    try:
        await response.prepare(request)
        if request.method != hdrs.METH_HEAD:
            await stream_window(response, fobj, negotiation.start, negotiation.length)
        await response.write_eof()
    except ConnectionResetError:
        log.debug("Client went away while sending %s", path)
    except OSError as err:
        if not response.prepared:
            raise
        # headers already sent, end with a short body
        log.warning("Failed while sending %s: %s", path, err)
        response.force_close()
    finally:
        await loop.run_in_executor(None, fobj.close)
    return response


async def stream_window(response, fobj, start, length):
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, fobj.seek, start)
    while length > 0:
        chunk = await loop.run_in_executor(None, fobj.read, min(CHUNK_SIZE, length))
        if not chunk:
            break
        await response.write(chunk)
        length -= len(chunk)
