from typing import List

from fastapi import APIRouter, Depends

from ..api.dependencies import get_repositories
from ..auth.jwt import get_current_user
from ..models.models import Property, User
from ..repositories import Repositories
from ..schemas.schemas import PropertyCreate, PropertyRead, PropertyUpdate
from ..services.properties import PropertyService

router = APIRouter()


def get_property_service(repos: Repositories = Depends(get_repositories)) -> PropertyService:
    return PropertyService(repos)


@router.get("/", response_model=List[PropertyRead])
def list_properties(
    user: User = Depends(get_current_user),
    service: PropertyService = Depends(get_property_service),
) -> List[Property]:
    return service.list_properties(user.id)


@router.post("/", response_model=PropertyRead, status_code=201)
def create_property(
    payload: PropertyCreate,
    user: User = Depends(get_current_user),
    service: PropertyService = Depends(get_property_service),
) -> Property:
    return service.create_property(user.id, payload)


@router.get("/{property_id}", response_model=PropertyRead)
def get_property(
    property_id: str,
    user: User = Depends(get_current_user),
    service: PropertyService = Depends(get_property_service),
) -> Property:
    return service.get_property(user.id, property_id)


@router.patch("/{property_id}", response_model=PropertyRead)
def update_property(
    property_id: str,
    payload: PropertyUpdate,
    user: User = Depends(get_current_user),
    service: PropertyService = Depends(get_property_service),
) -> Property:
    return service.update_property(user.id, property_id, payload)


@router.delete("/{property_id}", status_code=204)
def delete_property(
    property_id: str,
    user: User = Depends(get_current_user),
    service: PropertyService = Depends(get_property_service),
) -> None:
    service.deactivate_property(user.id, property_id)
