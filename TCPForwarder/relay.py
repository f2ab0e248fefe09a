import asyncio
import logging

from TCPForwarder import exceptions


log = logging.getLogger(__name__)


class Relay:
    BUFFER_SIZE = 8192

    def __init__(self, name: str, source: asyncio.StreamReader, sink: asyncio.StreamWriter, owner):
        self.name = name
        self.source = source
        self.sink = sink
        self.owner = owner

    async def read(self):
        """
        read a single chunk from the source.
        :return: the chunk read, or empty bytes once the source reached EOF.
        """
        return await self.source.read(self.BUFFER_SIZE)

    async def write(self, data: bytes):
        """
        write a chunk to the sink and wait until it was flushed.
        """
        if self.sink.is_closing():
            raise exceptions.RelayError()

        self.sink.write(data)
        await self.sink.drain()

    async def run(self):
        """
        constantly pass bytes from source to sink, until EOF or failure on either side.
        either way, tell the owner to tear the whole connection down.
        """
        try:
            while True:
                data = await self.read()
                if not data:
                    log.debug(f'({self.name}): reached EOF')
                    break

                await self.write(data)
        except (OSError, exceptions.RelayError) as e:
            log.debug(f'({self.name}): stopped: {e!r}')

        await self.owner.close()
