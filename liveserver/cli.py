import argparse
import asyncio
import logging
import os
import socket

from aiohttp import web

from . import __version__
from .app import create_runner
from .config import ServeConfig

log = logging.getLogger("liveserver")

LOCAL_HOSTS = ("0.0.0.0", "127.0.0.1")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="liveserver",
        description="Serve the pure html, update the browser on change.",
        epilog="examples: liveserver | liveserver index.html | liveserver dist --single "
        "| liveserver app.html --port 4000",
    )
    parser.add_argument("entry", nargs="?", default=".", help="file or directory to serve (default: .)")
    parser.add_argument("-c", "--cors", action="store_true", help='enable "CORS" headers')
    parser.add_argument("-s", "--single", action="store_true", help="serve as single-page application")
    parser.add_argument(
        "--fallback", metavar="FILE", help="file served for unknown paths, implies --single (default: index.html)"
    )
    parser.add_argument("-P", "--preview", action="store_true", help="disable hot-reload")
    parser.add_argument("-q", "--quiet", action="store_true", help="disable logging to terminal")
    parser.add_argument(
        "--logs", action=argparse.BooleanOptionalAction, default=True, help="log every request"
    )
    parser.add_argument("-H", "--host", default="localhost", help="hostname to bind (default: localhost)")
    parser.add_argument("-p", "--port", type=int, default=5000, help="port to bind (default: 5000)")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


# -------- Networking --------
def find_port(host, port, attempts=20):
    """Return ``port`` if it can be bound on every address of ``host``, else a free one."""
    addresses = []
    for family, _, _, _, sockaddr in socket.getaddrinfo(host, None, type=socket.SOCK_STREAM):
        if (family, sockaddr[0]) not in addresses:
            addresses.append((family, sockaddr[0]))
    if port and port_free(addresses, port):
        return port
    for _ in range(attempts):
        candidate = port_free(addresses[:1], 0)
        if port_free(addresses, candidate):
            return candidate
    raise OSError(f"no free port on {host}")


def port_free(addresses, port):
    """Bind ``port`` on each address in turn; return the bound port, or 0 when any is busy."""
    for family, address in addresses:
        with socket.socket(family, socket.SOCK_STREAM) as sock:
            if os.name == "posix":
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            try:
                sock.bind((address, port))
            except OSError:
                return 0
            port = sock.getsockname()[1]
    return port


def network_address():
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        try:
            # no packet is sent, this only picks the outbound interface
            sock.connect(("10.255.255.255", 1))
            return sock.getsockname()[0]
        except OSError:
            return "127.0.0.1"


def urls(host, port):
    local = "localhost" if host in LOCAL_HOSTS else host
    result = [f"http://{local}:{port}"]
    if "localhost" not in host:
        result.append(f"http://{network_address()}:{port}")
    return result


# -------- Main --------
async def run(config):
    runner = create_runner(config)
    await runner.setup()
    site = web.TCPSite(runner, config.host, config.port)
    await site.start()
    if not config.quiet:
        for url in urls(config.host, config.port):
            print(f"serving {url}")
    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.WARNING if args.quiet else logging.INFO, format="%(message)s")

    host = os.environ.get("HOST") or args.host
    port = int(os.environ.get("PORT") or args.port)
    try:
        config = ServeConfig.from_entry(
            args.entry,
            cors=args.cors,
            quiet=args.quiet,
            logs=args.logs,
            host=host,
            port=find_port(host, port),
            single=args.fallback or args.single,
            preview=args.preview,
        )
    except OSError as err:
        log.error("liveserver: %s", err)
        return 1

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        if not config.quiet:
            print("\nServer stopped.")
    return 0
