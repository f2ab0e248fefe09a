from TCPForwarder import forwarder_main


if __name__ == '__main__':
    forwarder_main.start_asyncio_main()
