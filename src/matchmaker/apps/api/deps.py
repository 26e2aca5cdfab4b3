from __future__ import annotations

from fastapi import Request

from matchmaker.services.broker_context import BrokerContext


def get_broker(request: Request) -> BrokerContext:
    return request.app.state.broker
