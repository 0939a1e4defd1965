import pytest

from liveserver import ServeConfig, create_app


@pytest.fixture
def site(tmp_path):
    """A small site: index page, a subdirectory page and some assets."""
    root = tmp_path / "site"
    root.mkdir()
    (root / "index.html").write_bytes(
        b"<!DOCTYPE html>\n<html><head><title>Home</title></head><body>home</body></html>\n"
    )
    (root / "about.html").write_bytes(b"<p>about</p>\n")
    (root / "data.bin").write_bytes(bytes(range(100)))
    (root / "style.css").write_bytes(b"body { color: red; }\n")
    sub = root / "sub"
    sub.mkdir()
    (sub / "page.html").write_bytes(b"<html><head></head><body>page</body></html>\n")
    (root / "empty").mkdir()
    (tmp_path / "secret.txt").write_bytes(b"outside the served tree\n")
    return root


@pytest.fixture
def make_client(aiohttp_client):
    async def make(entry, **options):
        return await aiohttp_client(create_app(ServeConfig.from_entry(str(entry), **options)))

    return make
