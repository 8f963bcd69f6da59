import asyncio

import pytest

from nasue.options import Option
from nasue.relay import UserServer, device_to_network, handle_user, network_to_device, parse_port
from nasue.settings import NasSettings


class FakeSerial:
    def __init__(self, incoming=b""):
        self._incoming = incoming
        self.written = b""
        self.is_open = True

    @property
    def in_waiting(self):
        if not self._incoming:
            self.is_open = False
        return len(self._incoming)

    def read(self, n):
        data, self._incoming = self._incoming[:n], self._incoming[n:]
        return data

    def write(self, data):
        self.written += data
        return len(data)


def _settings(network_port):
    settings = NasSettings()
    settings.table[Option.NETWORK_HOST].value = "127.0.0.1"
    settings.table[Option.NETWORK_PORT].value = str(network_port)
    return settings


def test_parse_port():
    assert parse_port("12000", "-nport") == 12000
    for bad in ("NULL", "", "0", "70000", "12x"):
        with pytest.raises(ValueError):
            parse_port(bad, "-nport")


def test_network_to_device():
    fake = FakeSerial()

    async def run():
        reader = asyncio.StreamReader()
        reader.feed_data(b"AT+CGATT=1\r")
        reader.feed_eof()
        await network_to_device(fake, reader)

    asyncio.run(run())
    assert fake.written == b"AT+CGATT=1\r"


def test_device_to_network():
    fake = FakeSerial(b"+CREG: 1\r\n")
    received = bytearray()

    async def run():
        done = asyncio.Event()

        async def collect(reader, writer):
            received.extend(await reader.read())
            writer.close()
            done.set()

        server = await asyncio.start_server(collect, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        async with server:
            _, writer = await asyncio.open_connection("127.0.0.1", port)
            await device_to_network(fake, writer)
            await asyncio.wait_for(done.wait(), 5)

    asyncio.run(run())
    assert bytes(received) == b"+CREG: 1\r\n"


def test_handle_user_relays_both_ways():
    async def run():
        async def network_layer(reader, writer):
            while True:
                data = await reader.read(4096)
                if not data:
                    break
                writer.write(data.upper())
                await writer.drain()
            writer.close()

        network = await asyncio.start_server(network_layer, "127.0.0.1", 0)
        settings = _settings(network.sockets[0].getsockname()[1])
        user = await asyncio.start_server(
            lambda r, w: handle_user(settings, r, w), "127.0.0.1", 0)
        async with network, user:
            reader, writer = await asyncio.open_connection(
                "127.0.0.1", user.sockets[0].getsockname()[1])
            writer.write(b"attach")
            await writer.drain()
            reply = await asyncio.wait_for(reader.readexactly(6), 5)
            writer.close()
            await writer.wait_closed()
            return reply

    assert asyncio.run(run()) == b"ATTACH"


def test_handle_user_closes_when_network_unreachable():
    async def run():
        probe = await asyncio.start_server(lambda r, w: None, "127.0.0.1", 0)
        closed_port = probe.sockets[0].getsockname()[1]
        probe.close()
        await probe.wait_closed()

        settings = _settings(closed_port)
        user = await asyncio.start_server(
            lambda r, w: handle_user(settings, r, w), "127.0.0.1", 0)
        async with user:
            reader, writer = await asyncio.open_connection(
                "127.0.0.1", user.sockets[0].getsockname()[1])
            data = await asyncio.wait_for(reader.read(), 5)
            writer.close()
            return data

    assert asyncio.run(run()) == b""


def test_second_user_client_is_turned_away():
    async def run():
        async def network_layer(reader, writer):
            while True:
                data = await reader.read(4096)
                if not data:
                    break
                writer.write(data)
                await writer.drain()
            writer.close()

        network = await asyncio.start_server(network_layer, "127.0.0.1", 0)
        settings = _settings(network.sockets[0].getsockname()[1])
        user_server = UserServer(settings)
        user = await asyncio.start_server(user_server.on_connect, "127.0.0.1", 0)
        user_port = user.sockets[0].getsockname()[1]
        async with network, user:
            first_reader, first_writer = await asyncio.open_connection("127.0.0.1", user_port)
            first_writer.write(b"ping")
            await first_writer.drain()
            echoed = await asyncio.wait_for(first_reader.readexactly(4), 5)

            second_reader, second_writer = await asyncio.open_connection("127.0.0.1", user_port)
            rejected = await asyncio.wait_for(second_reader.read(), 5)
            second_writer.close()

            first_writer.close()
            await first_writer.wait_closed()
            return echoed, rejected

    assert asyncio.run(run()) == (b"ping", b"")
