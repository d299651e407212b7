"""Tests for the aiohttp transport against a local test server."""

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils

from politecrawler.crawler.errors import FetchFailedError, ResourceNotFoundError
from politecrawler.crawler.fetcher import WebFetcher

MAX_SIZE = 1024


async def page(request):
    return web.Response(body=b'<a href="/next">next</a>', content_type='text/html')


async def echo_user_agent(request):
    return web.Response(text=request.headers.get('User-Agent', ''))


async def missing(request):
    raise web.HTTPNotFound()


async def gone(request):
    raise web.HTTPGone()


async def broken(request):
    raise web.HTTPInternalServerError()


async def large(request):
    return web.Response(body=b'x' * (MAX_SIZE + 1))


async def streamed(request):
    response = web.StreamResponse()
    response.enable_chunked_encoding()
    await response.prepare(request)
    for _ in range(4):
        await response.write(b'y' * 512)
    await response.write_eof()
    return response


@pytest_asyncio.fixture
async def server():
    app = web.Application()
    app.router.add_get('/page', page)
    app.router.add_get('/ua', echo_user_agent)
    app.router.add_get('/missing', missing)
    app.router.add_get('/gone', gone)
    app.router.add_get('/broken', broken)
    app.router.add_get('/large', large)
    app.router.add_get('/streamed', streamed)

    test_server = test_utils.TestServer(app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


class TestWebFetcher:

    async def test_fetch_returns_body_bytes(self, server):
        async with WebFetcher(user_agent="TestBot/1.0", max_content_size=MAX_SIZE) as fetcher:
            content = await fetcher.fetch(str(server.make_url('/page')))

        assert content == b'<a href="/next">next</a>'

    async def test_default_and_explicit_user_agent(self, server):
        async with WebFetcher(user_agent="TestBot/1.0") as fetcher:
            default = await fetcher.fetch(str(server.make_url('/ua')))
            explicit = await fetcher.fetch(str(server.make_url('/ua')), {'User-Agent': 'OtherBot/2.0'})

        assert default == b'TestBot/1.0'
        assert explicit == b'OtherBot/2.0'

    @pytest.mark.parametrize("path,status", [('/missing', 404), ('/gone', 410)])
    async def test_not_found_is_distinguishable(self, server, path, status):
        async with WebFetcher(user_agent="TestBot/1.0") as fetcher:
            with pytest.raises(ResourceNotFoundError) as exc_info:
                await fetcher.fetch(str(server.make_url(path)))

        assert exc_info.value.status_code == status

    async def test_server_error_is_fetch_failure(self, server):
        async with WebFetcher(user_agent="TestBot/1.0") as fetcher:
            with pytest.raises(FetchFailedError) as exc_info:
                await fetcher.fetch(str(server.make_url('/broken')))

        assert not isinstance(exc_info.value, ResourceNotFoundError)
        assert exc_info.value.status_code == 500

    async def test_declared_oversize_body_fails(self, server):
        async with WebFetcher(user_agent="TestBot/1.0", max_content_size=MAX_SIZE) as fetcher:
            with pytest.raises(FetchFailedError, match="too large"):
                await fetcher.fetch(str(server.make_url('/large')))

    async def test_streamed_oversize_body_fails(self, server):
        async with WebFetcher(user_agent="TestBot/1.0", max_content_size=MAX_SIZE) as fetcher:
            with pytest.raises(FetchFailedError, match="size limit"):
                await fetcher.fetch(str(server.make_url('/streamed')))

    async def test_body_at_limit_is_accepted(self, server):
        async with WebFetcher(user_agent="TestBot/1.0", max_content_size=MAX_SIZE + 1) as fetcher:
            content = await fetcher.fetch(str(server.make_url('/large')))

        assert len(content) == MAX_SIZE + 1

    async def test_connection_error_is_fetch_failure(self, server):
        url = str(server.make_url('/page'))
        await server.close()

        async with WebFetcher(user_agent="TestBot/1.0") as fetcher:
            with pytest.raises(FetchFailedError, match="client error"):
                await fetcher.fetch(url)

    async def test_stats(self, server):
        async with WebFetcher(user_agent="TestBot/1.0") as fetcher:
            await fetcher.fetch(str(server.make_url('/page')))
            with pytest.raises(ResourceNotFoundError):
                await fetcher.fetch(str(server.make_url('/missing')))

            stats = fetcher.get_stats()
            fetcher.reset_stats()

            assert fetcher.get_stats()['total_requests'] == 0

        assert stats['total_requests'] == 2
        assert stats['successful_requests'] == 1
        assert stats['failed_requests'] == 1
        assert stats['not_found'] == 1
        assert stats['total_bytes_downloaded'] == len(b'<a href="/next">next</a>')
