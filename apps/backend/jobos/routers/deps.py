"""Shared router dependencies and error translation."""

import logging

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from jobos.database import get_db
from jobos.services.llm_client import ConfigurationError, LLMError, OpenRouterClient
from jobos.services.settings_store import get_settings, resolve_api_key
from jobos.services.workspace import WorkspaceValidationError

logger = logging.getLogger(__name__)


async def get_llm_client(db: AsyncSession = Depends(get_db)) -> OpenRouterClient:
    """FastAPI dependency building a gateway client from stored settings.

    The key is read on every request so a key saved in Settings applies
    immediately.
    """
    row = await get_settings(db)
    return OpenRouterClient(api_key=resolve_api_key(row))


def http_error_for(error: Exception) -> HTTPException:
    """Map a service-layer failure to the HTTP error returned to the client.

    - ConfigurationError: 400
    - LLMRequestError: 502
    - WorkspaceValidationError: 422
    """
    if isinstance(error, ConfigurationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, LLMError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(error))
    if isinstance(error, WorkspaceValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Unexpected error: {str(error)}",
    )


def not_found(entity: str, entity_id) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{entity} {entity_id} not found",
    )
