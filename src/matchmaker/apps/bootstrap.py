# src/matchmaker/apps/bootstrap.py
from __future__ import annotations
import time
from typing import Callable, Optional

from matchmaker.services.broker_context import BrokerContext
from matchmaker.services.control_protocol import ControlProtocolHandler
from matchmaker.services.eventbus import LocalEventBus
from matchmaker.services.logging import setup_logging, attach_event_logger
from matchmaker.services.node_registry_mem import InMemoryNodeRegistry
from matchmaker.services.selector import AllocationSelector
from matchmaker.services.settings import Settings


def build_context(
    settings: Optional[Settings] = None,
    *,
    clock: Callable[[], float] = time.time,
    configure_logging: bool = True,
) -> BrokerContext:
    """Composition root: one registry, shared by the control protocol and the selector."""
    settings = settings or Settings.from_sources()

    bus = LocalEventBus()
    if configure_logging:
        root_logger = setup_logging(settings)
        attach_event_logger(bus, root_logger.getChild("events"))

    registry = InMemoryNodeRegistry()
    protocol = ControlProtocolHandler(registry, bus, clock=clock)
    selector = AllocationSelector(registry, clock=clock, cooldown=settings.allocation_cooldown_sec)

    return BrokerContext(
        settings=settings,
        registry=registry,
        bus=bus,
        selector=selector,
        protocol=protocol,
    )
