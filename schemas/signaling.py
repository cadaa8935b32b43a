from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator

# Inbound events
JOIN_ROOM = "join-room"
SIGNAL = "signal"

# Outbound events
CONNECTED = "connected"
PEERS = "peers"
PEER_JOINED = "peer-joined"
PEER_LEFT = "peer-left"
ERROR = "error"

KNOWN_NEGOTIATION_KINDS = ("offer", "answer", "ice-candidate")


class ClientFrame(BaseModel):
    event: str
    data: Dict[str, Any] = Field(default_factory=dict)


class JoinRoomRequest(BaseModel):
    roomId: str
    displayName: Optional[str] = None

    @field_validator("roomId")
    @classmethod
    def room_id_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("roomId is required")
        return value


# Negotiation payloads are opaque: only `type` is modelled, everything else
# rides along as extra fields and is forwarded untouched.
class _NegotiationMessage(BaseModel):
    model_config = ConfigDict(extra="allow")


class Offer(_NegotiationMessage):
    type: Literal["offer"]


class Answer(_NegotiationMessage):
    type: Literal["answer"]


class IceCandidate(_NegotiationMessage):
    type: Literal["ice-candidate"]


class OtherNegotiation(_NegotiationMessage):
    type: str


def negotiation_kind(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return kind if kind in KNOWN_NEGOTIATION_KINDS else "other"


NegotiationMessage = Annotated[
    Union[
        Annotated[Offer, Tag("offer")],
        Annotated[Answer, Tag("answer")],
        Annotated[IceCandidate, Tag("ice-candidate")],
        Annotated[OtherNegotiation, Tag("other")],
    ],
    Discriminator(negotiation_kind),
]


class SignalRequest(BaseModel):
    to: str = Field(min_length=1)
    data: NegotiationMessage


def server_frame(event: str, data: dict) -> dict:
    return {"event": event, "data": data}
