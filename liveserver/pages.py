import html
import os
import re
import traceback

from .config import RELOAD_PATH

RELOAD_JS = (
    "<script>(function(){"
    "if (window.__LIVE_SERVER__) return; window.__LIVE_SERVER__ = true;"
    f"new EventSource('{RELOAD_PATH}').addEventListener('message', function(e){{"
    "if (e.data === 'reload') location.reload();"
    "});"
    "})();</script>"
)

HEAD_RE = re.compile(r"<head(?=[\s>])[^>]*>")
DOCTYPE_RE = re.compile(r"<!doctype html[^>]*>", re.IGNORECASE)

DIRECTORY_TEMPLATE = """<!DOCTYPE html>
<html><head>
<title>Index of {dir}</title>
<meta charset="utf-8"></head><body>
<h1>Index of {dir}</h1>
<ul>
{items}
</ul>
</body></html>
"""

ERROR_TEMPLATE = """<!DOCTYPE html>
<html><head>
<title>Error</title>
<meta charset="utf-8"></head><body>
<pre>{message}
{stack}</pre>
</body></html>
"""


# -------- Live reload --------
def inject(document, config):
    """Insert the reload client after <head>, else after the doctype, else up front."""
    if not config.reload or RELOAD_JS in document:
        return document
    for marker in (HEAD_RE, DOCTYPE_RE):
        match = marker.search(document)
        if match:
            return document[:match.end()] + RELOAD_JS + document[match.end():]
    return RELOAD_JS + "\n" + document


# -------- Directory listing --------
def list_names(path):
    with os.scandir(path) as entries:
        names = [entry.name + "/" if entry.is_dir() else entry.name for entry in entries]
    return sorted(names)


def render_listing(path, names):
    try:
        title = os.path.relpath(path, os.getcwd())
    except ValueError:
        title = path
    items = "\n".join(
        f'<li><a href="{html.escape(name)}">{html.escape(name)}</a></li>' for name in names
    )
    return DIRECTORY_TEMPLATE.format(dir=html.escape(title or "."), items=items)


# -------- Error page --------
def _field(produce):
    try:
        return html.escape(produce() or "")
    except Exception:
        return ""


def render_error(err):
    message = _field(lambda: str(err))
    stack = _field(lambda: "".join(traceback.format_exception(type(err), err, err.__traceback__)))
    return ERROR_TEMPLATE.format(message=message, stack=stack)
