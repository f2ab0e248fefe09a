import asyncio
import contextlib
import enum
import logging
import socket

from TCPForwarder import exceptions, relay


log = logging.getLogger(__name__)


class State(enum.Enum):
    CREATED = 'created'
    DIALING = 'dialing'
    FAILED_DIAL = 'failed_dial'
    ACTIVE = 'active'
    CLOSED = 'closed'


def format_address(address):
    if not address:
        return 'unknown'
    return f'{address[0]}:{address[1]}'


class Connection:
    """
    pairs one accepted client socket with one socket dialed to the destination,
    and bridges them with two relays, one per direction.
    closing either side's socket is what stops the relay blocked on it.
    """

    def __init__(self, client_id: int, client_socket: socket.socket, destination_host: str, destination_port: int):
        self.client_id = client_id
        self.client_socket = client_socket
        self.destination_host = destination_host
        self.destination_port = destination_port

        self.client_reader = None
        self.client_writer = None
        self.upstream_reader = None
        self.upstream_writer = None

        self.state = State.CREATED
        self.relay_tasks = []
        self._close_lock = asyncio.Lock()

    @property
    def active(self):
        return self.state == State.ACTIVE

    async def dial(self):
        """
        open the connection to the destination.
        :return: reader and writer of the upstream connection.
        """
        try:
            return await asyncio.open_connection(self.destination_host, self.destination_port)
        except OSError as e:
            raise exceptions.ConnectError(
                f'{self.destination_host}:{self.destination_port} is unreachable: {e}'
            ) from e

    @staticmethod
    def enable_keepalive(writer: asyncio.StreamWriter):
        sock = writer.get_extra_info('socket')
        if sock is None:
            return

        with contextlib.suppress(OSError):
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)

    async def start(self):
        """
        dial the destination and start forwarding in both directions.
        if the destination is unreachable, the client is closed and no relay is started.
        """
        self.state = State.DIALING
        try:
            self.upstream_reader, self.upstream_writer = await self.dial()
        except exceptions.ConnectError as e:
            log.error(f'(client_id={self.client_id}): {e}')
            self.state = State.FAILED_DIAL
            await self.close()
            return

        try:
            self.client_reader, self.client_writer = await asyncio.open_connection(sock=self.client_socket)
        except OSError as e:
            log.debug(f'(client_id={self.client_id}): client went away before forwarding started: {e!r}')
            await self.close()
            return

        self.enable_keepalive(self.upstream_writer)
        self.enable_keepalive(self.client_writer)

        self.state = State.ACTIVE
        relays = [
            relay.Relay(f'client_id={self.client_id} client->upstream', self.client_reader, self.upstream_writer, self),
            relay.Relay(f'client_id={self.client_id} upstream->client', self.upstream_reader, self.client_writer, self),
        ]
        self.relay_tasks = [asyncio.create_task(r.run()) for r in relays]

        log.info(
            f'TCP Forwarding {format_address(self.client_writer.get_extra_info("peername"))}'
            f' <--> {format_address(self.upstream_writer.get_extra_info("peername"))}'
        )

    async def wait_closed(self):
        """
        wait until both relays are done.
        """
        await asyncio.gather(*self.relay_tasks)

    async def run(self):
        await self.start()
        await self.wait_closed()

    async def close(self):
        """
        tear down the connection. safe to call more than once, and from both relays at the same time.
        only the first call closes the sockets.
        """
        async with self._close_lock:
            if self.state == State.CLOSED:
                return

            writers = [writer for writer in (self.upstream_writer, self.client_writer) if writer is not None]
            for writer in writers:
                writer.close()
            if self.client_writer is None:
                self.client_socket.close()

            for writer in writers:
                with contextlib.suppress(OSError):
                    await writer.wait_closed()

            self.state = State.CLOSED
            log.debug(f'(client_id={self.client_id}): closed')
