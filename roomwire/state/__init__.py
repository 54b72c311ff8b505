from .packets import Packet
from .runtime import ClientDeps
from .settings import ClientSettings
from .session import Session, TokenPair
from .connection import ConnectionState

__all__ = ["ClientDeps", "ClientSettings", "ConnectionState", "Packet", "Session", "TokenPair"]
