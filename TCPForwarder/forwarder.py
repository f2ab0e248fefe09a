import asyncio
import logging
from TCPForwarder import client_manager, exceptions, tcp_server


log = logging.getLogger(__name__)


def validate_port(port, minimum=1):
    if isinstance(port, bool) or not isinstance(port, (int, str)):
        raise exceptions.BindError(f'invalid port: {port!r}')

    try:
        port = int(port)
    except ValueError:
        raise exceptions.BindError(f'invalid port: {port!r}')

    if not minimum <= port <= 65535:
        raise exceptions.BindError(f'port out of range: {port}')
    return port


class Forwarder:
    """
    listens on a local port and forwards every client to a single fixed destination.
    the listening socket is bound as soon as the forwarder is created.
    """
    LOCALHOST = ''

    def __init__(self, listen_port, destination_host: str, destination_port, listen_host: str = LOCALHOST):
        # port 0 binds an ephemeral port, see the port property
        self.listen_port = validate_port(listen_port, minimum=0)
        if not isinstance(destination_host, str) or not destination_host:
            raise exceptions.BindError(f'invalid destination host: {destination_host!r}')
        self.destination_host = destination_host
        self.destination_port = validate_port(destination_port)

        self.client_manager = client_manager.ClientManager(self.destination_host, self.destination_port)
        self.tcp_server = tcp_server.Server(listen_host, self.listen_port)
        self._accept_task = None

    @property
    def port(self):
        return self.tcp_server.port

    @property
    def running(self):
        return self.tcp_server.running

    def start(self):
        """
        start accepting clients in the background. must be called from within a running event loop.
        """
        if not self.running:
            raise RuntimeError('forwarder already stopped')
        if self._accept_task is not None:
            raise RuntimeError('forwarder already started')

        log.info(f':{self.port} -> {self.destination_host}:{self.destination_port}')
        self._accept_task = asyncio.create_task(self.tcp_server.serve_forever(self.handle_new_tcp_connection))

    def stop(self):
        """
        stop accepting clients. clients that were already accepted keep forwarding.
        """
        self.tcp_server.close()
        # a pending accept is not woken up by closing its socket
        if self._accept_task is not None:
            self._accept_task.cancel()

    async def wait_closed(self):
        """
        wait for the accept loop to exit after stop().
        """
        if self._accept_task is None:
            return

        try:
            await self._accept_task
        except asyncio.CancelledError:
            # stop() may cancel the accept task before it ever ran
            if self.running or not self._accept_task.cancelled():
                raise

    def handle_new_tcp_connection(self, client_id: int, client_socket):
        self.client_manager.add_client(client_id, client_socket)
