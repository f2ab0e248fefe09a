import socket

import pytest

from TCPForwarder import forwarder_main

import tests


def test_parse_args():
    args = forwarder_main.parse_args(['8080', 'example.com', '80'])
    assert args.source_port == 8080
    assert args.destination_host == 'example.com'
    assert args.destination_port == 80
    assert args.listen_host == ''
    assert not args.verbose


def test_parse_args_options():
    args = forwarder_main.parse_args(['--listen-host', '127.0.0.1', '-v', '8080', '10.0.0.2', '22'])
    assert args.listen_host == '127.0.0.1'
    assert args.verbose


@pytest.mark.parametrize('argv', [
    ['abc', 'example.com', '80'],
    ['8080', 'example.com', 'http'],
    ['0', 'example.com', '80'],
    ['8080', 'example.com', '65536'],
    ['8080', '', '80'],
])
def test_bad_parameters_are_a_usage_error(argv, capsys):
    with pytest.raises(SystemExit) as exc_info:
        forwarder_main.parse_args(argv)
    assert exc_info.value.code == 2
    assert forwarder_main.USAGE_ERROR in capsys.readouterr().err


def test_missing_parameters_are_a_usage_error():
    with pytest.raises(SystemExit) as exc_info:
        forwarder_main.parse_args(['8080', 'example.com'])
    assert exc_info.value.code == 2


def test_port_in_use_exits_with_error():
    blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    blocker.bind((tests.LOCALHOST, 0))
    blocker.listen(1)
    try:
        with pytest.raises(SystemExit) as exc_info:
            forwarder_main.start_asyncio_main(
                ['--listen-host', tests.LOCALHOST, str(blocker.getsockname()[1]), tests.LOCALHOST, '80']
            )
    finally:
        blocker.close()
    assert exc_info.value.code == 1
