"""Map a request path onto what should be served for it.

Order of precedence, first match wins:

1. ``/`` when the entry point is a single file serves that file.
2. A path ending in ``/`` serves ``<dir>/index.html`` or a listing of ``<dir>``.
3. An existing file is served; an existing directory is redirected to the
   same path with a trailing slash.
4. ``<path>.html`` is served for extensionless URLs.
5. The single-page fallback file, when configured and present.
6. Nothing: not found.

Paths are normalized against the base directory and nothing outside of it
is ever returned.
"""

import os
from dataclasses import dataclass
from urllib.parse import unquote


@dataclass(frozen=True)
class File:
    path: str


@dataclass(frozen=True)
class Directory:
    path: str


@dataclass(frozen=True)
class Redirect:
    location: str


@dataclass(frozen=True)
class SinglePageFallback:
    path: str


@dataclass(frozen=True)
class NotFound:
    pass


def decode_path(raw):
    if "%" not in raw:
        return raw
    try:
        return unquote(raw, errors="strict")
    except UnicodeDecodeError:
        return raw


def contained(base, pathname):
    """Join ``pathname`` onto ``base``, or None if the result escapes ``base``."""
    path = os.path.normpath(os.path.join(base, pathname.lstrip("/")))
    if path == base or path.startswith(base.rstrip(os.sep) + os.sep):
        return path
    return None


def resolve(pathname, config):
    raw = pathname.split("?", 1)[0] or "/"
    pathname = decode_path(raw)

    if pathname == "/" and config.entry_is_file:
        return File(config.entry)

    path = contained(config.base, pathname)
    if path is None:
        return NotFound()

    if pathname.endswith("/"):
        index = os.path.join(path, "index.html")
        if os.path.isfile(index):
            return File(index)
        if os.path.isdir(path):
            return Directory(path)
        return fallback(config)

    if os.path.isfile(path):
        return File(path)
    if os.path.isdir(path):
        # "//host" would be read as another origin
        return Redirect("/" + raw.lstrip("/") + "/")
    if os.path.isfile(path + ".html"):
        return File(path + ".html")
    return fallback(config)


def fallback(config):
    if not config.single:
        return NotFound()
    name = config.single if isinstance(config.single, str) else "index.html"
    path = contained(config.base, name)
    if path is not None and os.path.isfile(path):
        return SinglePageFallback(path)
    return NotFound()
