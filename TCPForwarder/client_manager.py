import asyncio
import logging
import collections
from TCPForwarder import connection, exceptions


log = logging.getLogger(__name__)


ClientInfo = collections.namedtuple('ClientInfo', ('connection', 'task'))


class ClientManager:
    def __init__(self, destination_host: str, destination_port: int):
        self.clients = {}
        self.destination_host = destination_host
        self.destination_port = destination_port

    def __len__(self):
        return len(self.clients)

    def client_exists(self, client_id: int):
        """
        check if client exists
        """
        return client_id in self.clients.keys()

    def add_client(self, client_id: int, client_socket):
        """
        add a client to be managed. create a task that runs its connection to the destination.
        the client is removed once that task is done.
        """
        if self.client_exists(client_id):
            raise exceptions.ClientAlreadyExistsError(client_id)

        new_connection = connection.Connection(client_id, client_socket, self.destination_host, self.destination_port)
        new_task = asyncio.create_task(new_connection.run())
        self.clients[client_id] = ClientInfo(new_connection, new_task)
        new_task.add_done_callback(lambda task: self.client_done(client_id, task))
        log.debug(f'adding client: (client_id={client_id})')

    def client_done(self, client_id: int, task: asyncio.Task):
        if not task.cancelled() and task.exception() is not None:
            log.error(f'client failed: (client_id={client_id})', exc_info=task.exception())
        self.remove_client(client_id)

    def remove_client(self, client_id: int):
        """
        stop managing a client. its sockets are not touched.
        :param client_id: the client_id to remove
        """
        if not self.client_exists(client_id):
            raise exceptions.RemovingClientThatDoesntExistError(client_id, self.clients.keys())

        log.debug(f'removing client: (client_id={client_id})')
        self.clients.pop(client_id)
