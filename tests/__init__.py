# helpers shared by the test modules, use as ``import tests``
import asyncio
import socket
from unittest import mock


LOCALHOST = '127.0.0.1'
TEST_TIMEOUT = 5


def run(coroutine, timeout=TEST_TIMEOUT):
    """Runs *coroutine* on a fresh event loop, failing the test if it takes longer than *timeout* seconds."""
    return asyncio.run(asyncio.wait_for(coroutine, timeout))


def unused_port():
    """Returns a port on localhost that nothing is listening on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind((LOCALHOST, 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


async def handle_echo(reader, writer):
    try:
        while True:
            data = await reader.read(65536)
            if not data:
                break
            writer.write(data)
            await writer.drain()
    except ConnectionError:
        pass
    finally:
        writer.close()


async def start_echo_server():
    """Starts an echo server on an ephemeral port. Returns the server and its port."""
    server = await asyncio.start_server(handle_echo, LOCALHOST, 0)
    return server, server.sockets[0].getsockname()[1]


async def wait_until(predicate, timeout=2, interval=0.01):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError('condition was not met in time')
        await asyncio.sleep(interval)


def mock_writer():
    writer = mock.MagicMock()
    writer.is_closing.return_value = False
    writer.drain = mock.AsyncMock()
    writer.wait_closed = mock.AsyncMock()
    return writer
