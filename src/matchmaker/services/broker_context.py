# src/matchmaker/services/broker_context.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from matchmaker.ports import EventBus, NodeRegistryPort
from matchmaker.services.control_protocol import ControlProtocolHandler
from matchmaker.services.control_server import ControlServer
from matchmaker.services.selector import AllocationSelector
from matchmaker.services.settings import Settings


@dataclass(slots=True)
class BrokerContext:
    """Everything one broker process shares: the registry and the services built around it."""

    settings: Settings
    registry: NodeRegistryPort
    bus: EventBus
    selector: AllocationSelector
    protocol: ControlProtocolHandler
    _control: Optional[ControlServer] = field(default=None, init=False, repr=False)

    @property
    def control_server(self) -> ControlServer:
        server = self._control
        if server is None:
            server = ControlServer(self.protocol, host=self.settings.host, port=self.settings.control_port)
            self._control = server
        return server

    def is_ready(self) -> bool:
        return self._control is not None and self._control.is_serving
