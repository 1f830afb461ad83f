"""Contacts API router for the networking tracker."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobos.database import get_db
from jobos.models import Contact
from jobos.routers.deps import not_found
from jobos.schemas.contact import ContactCreate, ContactResponse, ContactStatus, ContactUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/contacts", tags=["contacts"])


async def _get_contact_or_404(db: AsyncSession, contact_id: int) -> Contact:
    contact = await db.get(Contact, contact_id)
    if not contact:
        raise not_found("Contact", contact_id)
    return contact


@router.post(
    "",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a contact"
)
async def create_contact(
    contact_data: ContactCreate,
    db: AsyncSession = Depends(get_db)
) -> ContactResponse:
    """Create a networking contact.

    Raises:
        HTTPException 500: Database error
    """
    try:
        contact = Contact(**contact_data.model_dump())
        db.add(contact)
        await db.commit()
        await db.refresh(contact)

        logger.info(f"Created contact {contact.id}: {contact.name}")
        return ContactResponse.model_validate(contact)

    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to create contact: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create contact: {str(e)}"
        )


@router.get(
    "",
    response_model=list[ContactResponse],
    summary="List contacts"
)
async def list_contacts(
    contact_status: ContactStatus | None = Query(None, alias="status", description="Only this status"),
    db: AsyncSession = Depends(get_db)
) -> list[ContactResponse]:
    """List contacts, optionally filtered by status."""
    query = select(Contact).order_by(Contact.id)
    if contact_status:
        query = query.where(Contact.status == contact_status)

    result = await db.execute(query)
    return [ContactResponse.model_validate(c) for c in result.scalars().all()]


@router.get(
    "/{contact_id}",
    response_model=ContactResponse,
    summary="Get contact by ID"
)
async def get_contact(
    contact_id: int,
    db: AsyncSession = Depends(get_db)
) -> ContactResponse:
    contact = await _get_contact_or_404(db, contact_id)
    return ContactResponse.model_validate(contact)


@router.patch(
    "/{contact_id}",
    response_model=ContactResponse,
    summary="Update a contact"
)
async def update_contact(
    contact_id: int,
    contact_data: ContactUpdate,
    db: AsyncSession = Depends(get_db)
) -> ContactResponse:
    """Update contact fields. Only provided fields are changed.

    Raises:
        HTTPException 404: Contact not found
    """
    contact = await _get_contact_or_404(db, contact_id)

    for field, value in contact_data.model_dump(exclude_unset=True).items():
        if value is None and field not in ("email", "linkedin"):
            continue
        setattr(contact, field, value)

    await db.commit()
    await db.refresh(contact)
    return ContactResponse.model_validate(contact)


@router.delete(
    "/{contact_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete contact"
)
async def delete_contact(
    contact_id: int,
    db: AsyncSession = Depends(get_db)
) -> None:
    """Delete a contact.

    Raises:
        HTTPException 404: Contact not found
    """
    contact = await _get_contact_or_404(db, contact_id)
    await db.delete(contact)
    await db.commit()
    logger.info(f"Deleted contact {contact_id}")
