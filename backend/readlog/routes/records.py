"""
Readlog Backend - Reading Record Route Handlers
================================================

What:  Endpoints for reading records under /records.
How:   Records are addressed by the `userId` and `isbn` query parameters,
       not by their surrogate id. Missing or non-numeric `userId` on the
       single-record endpoints is a 400 before the service is called.

Route Inventory:
    GET    /records?userId=&isbn=    filtered list (isbn alone is rejected)
    GET    /records/detail?userId=&isbn=   one record or 404
    POST   /records                  create (201)
    PUT    /records?userId=&isbn=    update status / current page
    DELETE /records?userId=&isbn=    delete
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from readlog.gateway import PersistenceGateway, get_gateway
from readlog.schemas.envelope import Envelope, envelope_response
from readlog.schemas.record import INT32_MAX, RecordCreate, RecordResponse, RecordUpdate
from readlog.services.record_service import record_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/records", tags=["Records"])

ERROR_RESPONSES = {
    400: {"description": "Invalid request parameters", "model": Envelope[None]},
    500: {"description": "Server error", "model": Envelope[None]},
}
NOT_FOUND = {404: {"description": "Record not found", "model": Envelope[None]}}


def _required_user_id():
    return Query(..., alias="userId", ge=1, le=INT32_MAX, description="User ID of the record owner")


def _required_isbn():
    return Query(..., min_length=1, max_length=20, description="ISBN of the book")


@router.get(
    "",
    response_model=Envelope[List[RecordResponse]],
    responses=ERROR_RESPONSES,
    summary="List reading records",
    description=(
        "Without filters returns every record. With userId returns that user's records. "
        "With userId and isbn returns a list holding the single matching record (or an empty list). "
        "isbn without userId is rejected."
    ),
)
async def list_records(
    user_id: Optional[int] = Query(
        default=None, alias="userId", ge=1, le=INT32_MAX,
        description="User ID to filter records (optional)",
    ),
    isbn: Optional[str] = Query(
        default=None, max_length=20,
        description="ISBN to filter records (requires userId)",
    ),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    records = await record_service.list(gateway, user_id=user_id, isbn=isbn)
    return envelope_response(data=records, message="Records retrieved successfully")


@router.get(
    "/detail",
    response_model=Envelope[RecordResponse],
    responses={**ERROR_RESPONSES, **NOT_FOUND},
    summary="Get a specific reading record",
)
async def get_record(
    user_id: int = _required_user_id(),
    isbn: str = _required_isbn(),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    record = await record_service.get(gateway, user_id, isbn)
    return envelope_response(data=record, message="Record retrieved successfully")


@router.post(
    "",
    status_code=201,
    response_model=Envelope[RecordResponse],
    responses={
        **ERROR_RESPONSES,
        404: {"description": "User not found", "model": Envelope[None]},
        409: {"description": "Record already exists", "model": Envelope[None]},
    },
    summary="Create a new reading record",
)
async def create_record(
    body: RecordCreate,
    gateway: PersistenceGateway = Depends(get_gateway),
):
    record = await record_service.create(gateway, body)
    return envelope_response(data=record, message="Record created successfully", status_code=201)


@router.put(
    "",
    response_model=Envelope[RecordResponse],
    responses={**ERROR_RESPONSES, **NOT_FOUND},
    summary="Update reading progress",
    description="Sets the current page (and optionally the status). The page may not exceed the book's total pages.",
)
async def update_record(
    body: RecordUpdate,
    user_id: int = _required_user_id(),
    isbn: str = _required_isbn(),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    record = await record_service.update_progress(
        gateway,
        user_id,
        isbn,
        current_page=body.current_page,
        status=body.status,
    )
    return envelope_response(data=record, message="Record updated successfully")


@router.delete(
    "",
    response_model=Envelope[None],
    responses={**ERROR_RESPONSES, **NOT_FOUND},
    summary="Delete a reading record",
)
async def delete_record(
    user_id: int = _required_user_id(),
    isbn: str = _required_isbn(),
    gateway: PersistenceGateway = Depends(get_gateway),
):
    await record_service.delete(gateway, user_id, isbn)
    return envelope_response(message="Record deleted successfully")
