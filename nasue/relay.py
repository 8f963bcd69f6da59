"""Asyncio relay between the user endpoint (device or TCP client) and the network layer."""

import asyncio
import logging
from typing import Optional

import serial

from nasue.device import open_device
from nasue.options import NULL_VALUE
from nasue.settings import NasSettings

logger = logging.getLogger("nasue")

DEVICE_POLL_INTERVAL = 0.01


def parse_port(value: str, flag: str) -> int:
    """Convert a port option value to an int; raise ValueError when invalid."""
    try:
        port = int(value)
    except ValueError:
        raise ValueError(f"Port ({flag}) must be a number, got {value!r}") from None
    if not (1 <= port <= 65535):
        raise ValueError(f"Port ({flag}) must be between 1 and 65535")
    return port


async def _close(writer: asyncio.StreamWriter):
    try:
        writer.close()
        await writer.wait_closed()
    except (ConnectionResetError, BrokenPipeError):
        pass


async def pipe(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
    """Copy bytes from reader to writer until EOF, then close writer."""
    try:
        while True:
            data = await reader.read(4096)
            if not data:
                break
            writer.write(data)
            await writer.drain()
    except (ConnectionResetError, BrokenPipeError):
        pass
    finally:
        await _close(writer)


async def read_device(ser: serial.Serial) -> bytes:
    """Wait for pending device bytes and return them; b"" once the device is closed."""
    while ser.is_open:
        pending = ser.in_waiting
        if pending:
            return await asyncio.to_thread(ser.read, pending)
        await asyncio.sleep(DEVICE_POLL_INTERVAL)
    return b""


async def device_to_network(ser: serial.Serial, writer: asyncio.StreamWriter):
    """Forward device output to the network layer, then close the connection."""
    try:
        data = await read_device(ser)
        while data:
            writer.write(data)
            await writer.drain()
            data = await read_device(ser)
    except (ConnectionResetError, BrokenPipeError, serial.SerialException):
        pass
    finally:
        await _close(writer)


async def network_to_device(ser: serial.Serial, reader: asyncio.StreamReader):
    """Read from the network and write to the device until the network closes."""
    try:
        while True:
            data = await reader.read(4096)
            if not data:
                break
            await asyncio.to_thread(ser.write, data)
    except (ConnectionResetError, BrokenPipeError, serial.SerialException):
        pass


async def _run_both(task_a: asyncio.Task, task_b: asyncio.Task):
    # Either direction ending ends the session.
    try:
        await asyncio.wait((task_a, task_b), return_when=asyncio.FIRST_COMPLETED)
    finally:
        task_a.cancel()
        task_b.cancel()
        await asyncio.gather(task_a, task_b, return_exceptions=True)


async def relay_device(settings: NasSettings):
    """Bridge the serial device to one connection to the network layer."""
    nport = parse_port(settings.network_port, "-nport")
    ser = open_device(settings.device_path, settings.device_params)
    logger.info("UE %d: device opened: %s", settings.ueid, settings.device_path)
    try:
        reader, writer = await asyncio.open_connection(settings.network_host, nport)
        logger.info("UE %d: connected to network layer %s:%s",
                    settings.ueid, settings.network_host, nport)
        await _run_both(
            asyncio.create_task(device_to_network(ser, writer)),
            asyncio.create_task(network_to_device(ser, reader)),
        )
    finally:
        ser.close()
        logger.info("UE %d: device closed", settings.ueid)


async def handle_user(
    settings: NasSettings,
    user_reader: asyncio.StreamReader,
    user_writer: asyncio.StreamWriter,
):
    """Relay one user client to its own network-layer connection."""
    peer = user_writer.get_extra_info("peername", ("?", "?"))
    logger.info("UE %d: user client connected: %s:%s", settings.ueid, peer[0], peer[1])
    try:
        nport = parse_port(settings.network_port, "-nport")
        try:
            net_reader, net_writer = await asyncio.open_connection(settings.network_host, nport)
        except OSError as e:
            logger.error("UE %d: cannot reach network layer %s:%s: %s",
                         settings.ueid, settings.network_host, nport, e)
            return
        await _run_both(
            asyncio.create_task(pipe(user_reader, net_writer)),
            asyncio.create_task(pipe(net_reader, user_writer)),
        )
    finally:
        await _close(user_writer)
        logger.info("UE %d: user client disconnected: %s:%s", settings.ueid, peer[0], peer[1])


class UserServer:
    """TCP listener for the user application layer.

    A UE has a single user application: while one client is relayed,
    further connections are closed straight away.
    """

    def __init__(self, settings: NasSettings):
        self.settings = settings
        self.host: Optional[str] = None if settings.user_host == NULL_VALUE else settings.user_host
        self.port = parse_port(settings.user_port, "-uport")
        parse_port(settings.network_port, "-nport")
        self._session = asyncio.Lock()

    async def on_connect(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Relay a new user client unless one is already attached."""
        if self._session.locked():
            logger.warning("UE %d: user application already attached, closing new connection",
                           self.settings.ueid)
            await _close(writer)
            return
        async with self._session:
            await handle_user(self.settings, reader, writer)

    async def start(self) -> asyncio.AbstractServer:
        """Start listening and return the server."""
        server = await asyncio.start_server(self.on_connect, self.host, self.port)
        logger.info("UE %d: listening for user clients on %s:%s",
                    self.settings.ueid, self.host or "*", self.port)
        return server


async def start_user_server(settings: NasSettings) -> asyncio.AbstractServer:
    """Listen for user clients on the user host and port."""
    return await UserServer(settings).start()


async def run_relay_async(settings: NasSettings):
    """Relay the device, or else serve user clients, until cancelled."""
    if settings.device_path != NULL_VALUE:
        await relay_device(settings)
    else:
        server = await start_user_server(settings)
        async with server:
            await server.serve_forever()


def run_relay(settings: NasSettings):
    """Run the relay in its own event loop; Ctrl-C stops it."""
    try:
        asyncio.run(run_relay_async(settings))
    except KeyboardInterrupt:
        logger.info("UE %d: relay stopped", settings.ueid)
