"""Record API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from data_service.core.dependencies import get_repository
from data_service.schemas.record import Record, RecordCreate, RecordListResponse
from data_service.services.repository import RecordRepository

router = APIRouter(prefix="/records", tags=["Records"])


@router.get("", response_model=RecordListResponse)
async def list_records(
    repository: RecordRepository = Depends(get_repository),
) -> RecordListResponse:
    """List every record in the collection."""
    records = await repository.list()
    return RecordListResponse(data=records, total=len(records))


@router.get("/{record_id}", response_model=Record)
async def get_record(
    record_id: str,
    repository: RecordRepository = Depends(get_repository),
) -> Record:
    return await repository.get_by_id(record_id)


@router.post("", response_model=Record, status_code=status.HTTP_201_CREATED)
async def create_record(
    payload: RecordCreate,
    repository: RecordRepository = Depends(get_repository),
) -> Record:
    """Create a record; 400 on missing name/email, 409 on duplicate email."""
    return await repository.create(payload.name, payload.email, payload.role)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(
    record_id: str,
    repository: RecordRepository = Depends(get_repository),
) -> Response:
    await repository.delete_by_id(record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
