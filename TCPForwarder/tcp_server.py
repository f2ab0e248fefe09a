import asyncio
import contextlib
import itertools
import socket
import logging

from TCPForwarder import exceptions


log = logging.getLogger(__name__)


def address_family(host: str):
    """
    IPv6 literals (e.g. '::', '::1') listen on AF_INET6, everything else on AF_INET.
    """
    if ':' in host:
        return socket.AF_INET6
    return socket.AF_INET


class Server:
    BACKLOG = 100
    ACCEPT_RETRY_DELAY = 0.1

    def __init__(self, host: str, port: int):
        self.host = host
        self.running = True
        self._socket = self.bind(host, port)
        self.port = self._socket.getsockname()[1]
        self._client_id = itertools.count()

    @classmethod
    def bind(cls, host: str, port: int):
        """
        create the listening socket.
        :return: a non blocking socket, already listening on host:port.
        """
        family = address_family(host)
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            if family == socket.AF_INET6:
                # '::' also accepts IPv4 clients where the platform allows it
                with contextlib.suppress(OSError, AttributeError):
                    sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
            sock.bind((host, port))
            sock.listen(cls.BACKLOG)
            sock.setblocking(False)
        except (OSError, OverflowError) as e:
            sock.close()
            raise exceptions.BindError(f'can not listen on {host}:{port}: {e}') from e

        log.info(f'listening on {host}:{sock.getsockname()[1]}')
        return sock

    async def serve_forever(self, handle_new_tcp_connection):
        """
        accept clients until close() is called, and hand each one to handle_new_tcp_connection.
        :param handle_new_tcp_connection: called with (client_id, client_socket). must not block.
        """
        loop = asyncio.get_running_loop()

        try:
            while self.running:
                try:
                    client_socket, address = await loop.sock_accept(self._socket)
                except OSError as e:
                    if not self.running:
                        break
                    log.error(f'accept failed: {e}')
                    await asyncio.sleep(self.ACCEPT_RETRY_DELAY)
                    continue

                client_id = next(self._client_id)
                log.debug(f'new client: (client_id={client_id}) (address={address})')
                handle_new_tcp_connection(client_id, client_socket)
        except asyncio.CancelledError:
            # close() cancels a pending accept or retry delay
            if self.running:
                raise

        log.debug('accept loop stopped')

    def close(self):
        self.running = False
        self._socket.close()
