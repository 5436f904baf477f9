"""
Raw websocket frame model
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class FrameKind(Enum):
    """Websocket frame kinds"""
    TEXT = "text"
    BINARY = "binary"
    PING = "ping"
    PONG = "pong"
    CLOSE = "close"


@dataclass(frozen=True)
class RawFrame:
    """
    One frame read from the socket.

    Attributes:
        kind: Frame kind (only TEXT frames carry events)
        payload: Text for TEXT frames, bytes for everything else
        close_code: Status code sent by the peer (CLOSE frames only)
        close_reason: Reason sent by the peer (CLOSE frames only)
    """

    kind: FrameKind
    payload: Union[str, bytes] = b""
    close_code: Optional[int] = None
    close_reason: str = ""

    @classmethod
    def text(cls, payload: str) -> "RawFrame":
        return cls(kind=FrameKind.TEXT, payload=payload)

    @classmethod
    def close(cls, code: Optional[int] = None, reason: str = "") -> "RawFrame":
        return cls(kind=FrameKind.CLOSE, close_code=code, close_reason=reason)

    @property
    def is_text(self) -> bool:
        return self.kind is FrameKind.TEXT
