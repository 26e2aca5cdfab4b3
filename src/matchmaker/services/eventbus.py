# src/matchmaker/services/eventbus.py
from __future__ import annotations
import time
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

from matchmaker.domain import Event
from matchmaker.ports import EventBus

Handler = Callable[[Event], Any]


class LocalEventBus(EventBus):
    """
    Synchronous bus for render-node state changes (``node.up``, ``node.down`` ...).

    Subscribers register a type prefix; "" or "*" receives everything. Handlers run
    inline on the publishing call, i.e. inside the same event-loop step that
    changed the registry, so they must not block.
    """

    def __init__(self) -> None:
        self._subs: DefaultDict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, type_prefix: str, handler: Handler) -> None:
        self._subs["" if type_prefix == "*" else type_prefix].append(handler)

    def publish(self, event: Event) -> None:
        for prefix, handlers in list(self._subs.items()):
            if event.type.startswith(prefix):
                for h in list(handlers):
                    h(event)


def emit(bus: EventBus, type_: str, payload: dict, source: str) -> None:
    bus.publish(Event(type=type_, payload=payload, source=source, ts=time.time()))
