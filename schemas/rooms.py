from pydantic import BaseModel
from typing import List, Optional


class CreateRoomRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None

class RoomResponse(BaseModel):
    id: str
    name: str
    description: str
    createdAt: str

class RoomParticipant(BaseModel):
    connectionId: str
    displayName: str
    connectedAt: str

class RoomDetailsResponse(RoomResponse):
    participantCount: int
    participants: List[RoomParticipant] = []
