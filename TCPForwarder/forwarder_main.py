import asyncio
import logging
import argparse
import signal
import sys
from TCPForwarder import exceptions, forwarder


log = logging.getLogger(__name__)

USAGE_ERROR = 'Parameters must be [sourcePort] [destinationHost] [destinationPort]'


def parse_port(value: str):
    try:
        port = int(value)
    except ValueError:
        raise exceptions.ConfigError(f'{USAGE_ERROR} (invalid port: {value!r})')

    if not 1 <= port <= 65535:
        raise exceptions.ConfigError(f'{USAGE_ERROR} (port out of range: {port})')
    return port


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='forward a local TCP port to a remote host and port')
    parser.add_argument('source_port', help='Port on which the forwarder will listen')
    parser.add_argument('destination_host', help='host name or IP address to forward to')
    parser.add_argument('destination_port', help='port to forward to')
    parser.add_argument('--listen-host', default=forwarder.Forwarder.LOCALHOST,
                        help='address to listen on (default: all IPv4 interfaces, use :: for IPv6)')
    parser.add_argument('-v', '--verbose', action='store_true', help='enable debug logging')
    args = parser.parse_args(argv)

    try:
        args.source_port = parse_port(args.source_port)
        args.destination_port = parse_port(args.destination_port)
        if not args.destination_host:
            raise exceptions.ConfigError(f'{USAGE_ERROR} (empty destination host)')
    except exceptions.ConfigError as e:
        parser.error(str(e))

    return args


async def main(args):
    tcp_forwarder = forwarder.Forwarder(
        args.source_port,
        args.destination_host,
        args.destination_port,
        listen_host=args.listen_host,
    )
    tcp_forwarder.start()

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, shutdown.set)

    await shutdown.wait()
    log.info('shutting down')
    tcp_forwarder.stop()
    await tcp_forwarder.wait_closed()


def start_asyncio_main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        asyncio.run(main(args))
    except exceptions.BindError as e:
        log.error(str(e))
        sys.exit(1)


if __name__ == '__main__':
    start_asyncio_main()
