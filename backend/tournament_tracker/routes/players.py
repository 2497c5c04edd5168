from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session

from tournament_tracker.database import get_session
from tournament_tracker.errors import PlayerNotFound
from tournament_tracker.models.player import Player

router = APIRouter()


class PlayerCreate(BaseModel):
    id: int
    name: str


class PlayerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


@router.post("/players", response_model=PlayerResponse, status_code=201)
def create_player(player_data: PlayerCreate, session: Session = Depends(get_session)):
    if session.get(Player, player_data.id):
        raise HTTPException(status_code=409, detail=f"Player {player_data.id} already exists")

    player = Player(**player_data.model_dump())
    session.add(player)
    session.commit()
    session.refresh(player)
    return player


@router.get("/players/{player_id}", response_model=PlayerResponse)
def get_player(player_id: int, session: Session = Depends(get_session)):
    player = session.get(Player, player_id)
    if not player:
        raise PlayerNotFound(f"Player {player_id} not found")
    return player
