"""Services layer for the AI chatroom backend."""

from .chat_service import ChatService, ModelInfo, create_chat_service

__all__ = ["ChatService", "ModelInfo", "create_chat_service"]
