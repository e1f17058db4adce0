"""
FastAPI dependencies shared by the routers.
"""

from fastapi import Request, WebSocket

from lawhelp.services.ai_service import AILegalService, get_ai_legal_service
from lawhelp.storage import Storage


def get_storage(request: Request) -> Storage:
    """Storage backend chosen at startup."""
    return request.app.state.storage


def get_websocket_storage(websocket: WebSocket) -> Storage:
    return websocket.app.state.storage


def get_ai_service() -> AILegalService:
    return get_ai_legal_service()
