from typing import List

from fastapi import APIRouter, HTTPException, Request, Response
from schemas.rooms import CreateRoomRequest, RoomResponse, RoomDetailsResponse, RoomParticipant
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/api/rooms", tags=["rooms"])


@rooms_router.get("", response_model=List[RoomResponse])
async def list_rooms(request: Request):
    rooms = await request.app.state.directory.list_rooms()
    logger.debug(f"Listing {len(rooms)} rooms")
    return rooms


@rooms_router.post("", status_code=201, response_model=RoomResponse)
async def create_room(room: CreateRoomRequest, request: Request):
    client_host = request.client.host if request.client else 'unknown'
    logger.info(f"Room creation request from {client_host}, name: {room.name}")
    if not room.name or not room.name.strip():
        logger.warning(f"Room creation rejected for {client_host}: name missing")
        raise HTTPException(status_code=400, detail="Room name is required")

    try:
        return await request.app.state.directory.create_room(room.name.strip(), room.description)
    except Exception as e:
        logger.error(f"Error creating room: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create room")


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room(room_id: str, request: Request):
    room = await request.app.state.directory.get_room(room_id)
    if not room:
        logger.warning(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    # Live participants come from the coordinator, not the directory
    coordinator = request.app.state.coordinator
    participants = []
    for connection_id in coordinator.membership.members(room_id):
        info = coordinator.registry.get(connection_id)
        participants.append(RoomParticipant(
            connectionId=connection_id,
            displayName=info.display_name,
            connectedAt=info.connected_at,
        ))
    return RoomDetailsResponse(**room, participantCount=len(participants), participants=participants)


@rooms_router.delete("/{room_id}", status_code=204)
async def delete_room(room_id: str, request: Request):
    deleted = await request.app.state.directory.delete_room(room_id)
    if not deleted:
        logger.warning(f"Delete room failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")
    return Response(status_code=204)
