# src/matchmaker/services/control_server.py
from __future__ import annotations
import asyncio
import itertools
import logging
from typing import Optional, Set

from matchmaker.config import const
from matchmaker.domain.errors import ProtocolError
from matchmaker.domain.types import ConnId
from matchmaker.services.control_protocol import ControlProtocolHandler

log = logging.getLogger(__name__)


def _preview(payload: object, limit: int = 512) -> str:
    if isinstance(payload, (bytes, bytearray)):
        text = payload.decode("utf-8", errors="replace")
    else:
        text = str(payload)
    return text if len(text) <= limit else text[:limit] + "..."


class ControlServer:
    """
    TCP listener for render-node control connections.

    Every accepted connection gets a fresh integer id and its own reader task; the
    handler itself is synchronous, so each chunk is applied to the registry in one
    step of the event loop. A chunk is expected to hold exactly one JSON message.
    """

    def __init__(
        self,
        handler: ControlProtocolHandler,
        host: str = const.HOST,
        port: int = const.CONTROL_PORT,
        *,
        read_limit: int = const.CONTROL_READ_LIMIT,
    ) -> None:
        self.handler = handler
        self.host = host
        self.port = port
        self.read_limit = read_limit
        self._ids = itertools.count(1)
        self._server: Optional[asyncio.AbstractServer] = None
        self._writers: Set[asyncio.StreamWriter] = set()

    @property
    def is_serving(self) -> bool:
        return self._server is not None and self._server.is_serving()

    @property
    def bound_port(self) -> Optional[int]:
        if self._server is None or not self._server.sockets:
            return None
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle_connection, self.host, self.port)
        log.info("matchmaker listening on %s:%s", self.host, self.bound_port)

    async def stop(self) -> None:
        if self._server is None:
            return
        self._server.close()
        for w in list(self._writers):
            w.close()
        await self._server.wait_closed()
        self._server = None
        log.info("control listener stopped")

    async def _handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """
        Read loop of one render node.

        However the connection ends (EOF, reset, or the broker dropping it after a
        protocol error) its registry entry is removed, so a node the broker has
        hung up on is never handed out to clients afterwards.
        """
        conn_id: ConnId = next(self._ids)
        peer = writer.get_extra_info("peername")
        self._writers.add(writer)
        log.debug("control connection %s accepted from %s", conn_id, peer)
        try:
            while True:
                data = await reader.read(self.read_limit)
                if not data:
                    break
                try:
                    self.handler.handle_data(conn_id, data)
                except ProtocolError as e:
                    log.error(
                        "ERROR (%s): dropping control connection, data: %s",
                        e,
                        _preview(e.payload if e.payload is not None else data),
                        extra={"extra": {"conn_id": conn_id, "peer": str(peer)}},
                    )
                    log.info("ending connection to remote address %s", peer)
                    break
        except (ConnectionError, OSError) as e:
            log.warning("control connection %s from %s failed: %s", conn_id, peer, e)
        finally:
            self._writers.discard(writer)
            self.handler.handle_disconnect(conn_id, peer)
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass
