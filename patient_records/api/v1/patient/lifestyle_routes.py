import traceback
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response, status

from patient_records.api.dependencies import get_lifestyle_service
from patient_records.core.authorization import CallerIdentity
from patient_records.core.errors import ServiceError
from patient_records.core.permission_checker import require_permission
from patient_records.core.utils import logger
from patient_records.schemas.lifestyle_schemas import (
    LifestyleCreateSchema,
    LifestyleResponseSchema,
    LifestyleUpdateSchema,
)
from patient_records.services.lifestyle_service import LifestyleService


router = APIRouter(prefix="/patients/{patient_id}/lifestyle", tags=["lifestyle"])


@router.post(
    "",
    response_model=LifestyleResponseSchema,
    status_code=status.HTTP_201_CREATED,
)
async def create_lifestyle_entry(
    patient_id: int,
    entry_data: LifestyleCreateSchema,
    caller: CallerIdentity = Depends(require_permission("lifestyle:create")),
    service: LifestyleService = Depends(get_lifestyle_service),
):
    """Record a lifestyle factor for a patient."""
    try:
        entry = await service.create_entry(patient_id, entry_data)

        logger.log_info(
            {
                "event": "lifestyle_entry_created",
                "patient_id": patient_id,
                "entry_id": entry.patient_lifestyle_id,
                "created_by": caller.user_id,
            }
        )

        return LifestyleResponseSchema.model_validate(entry)

    except ServiceError:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "create_lifestyle_entry_error",
                "patient_id": patient_id,
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create lifestyle entry",
        )


@router.get("", response_model=List[LifestyleResponseSchema])
async def list_lifestyle_entries(
    patient_id: int,
    caller: CallerIdentity = Depends(require_permission("lifestyle:read")),
    service: LifestyleService = Depends(get_lifestyle_service),
):
    """List a patient's lifestyle factors. A patient with no entries gets []."""
    try:
        entries = await service.list_entries(patient_id)
        return [LifestyleResponseSchema.model_validate(e) for e in entries]

    except ServiceError:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "list_lifestyle_entries_error",
                "patient_id": patient_id,
                "error": str(e),
                "user_id": caller.user_id,
            },
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get lifestyle entries",
        )


@router.get("/{entry_id}", response_model=LifestyleResponseSchema)
async def get_lifestyle_entry(
    patient_id: int,
    entry_id: int,
    caller: CallerIdentity = Depends(require_permission("lifestyle:read")),
    service: LifestyleService = Depends(get_lifestyle_service),
):
    try:
        entry = await service.get_entry(entry_id, patient_id=patient_id)
        return LifestyleResponseSchema.model_validate(entry)

    except ServiceError:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "get_lifestyle_entry_error",
                "entry_id": entry_id,
                "error": str(e),
                "user_id": caller.user_id,
            },
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get lifestyle entry",
        )


@router.put("/{entry_id}", response_model=LifestyleResponseSchema)
async def update_lifestyle_entry(
    patient_id: int,
    entry_id: int,
    update_data: LifestyleUpdateSchema,
    caller: CallerIdentity = Depends(require_permission("lifestyle:update")),
    service: LifestyleService = Depends(get_lifestyle_service),
):
    """Update a lifestyle entry (owner, physician or clerk only)."""
    try:
        entry = await service.update_entry(
            caller, entry_id, update_data, patient_id=patient_id
        )

        logger.log_info(
            {
                "event": "lifestyle_entry_updated",
                "entry_id": entry_id,
                "updated_by": caller.user_id,
            }
        )

        return LifestyleResponseSchema.model_validate(entry)

    except ServiceError:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "update_lifestyle_entry_error",
                "entry_id": entry_id,
                "error": str(e),
                "user_id": caller.user_id,
            },
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update lifestyle entry",
        )


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lifestyle_entry(
    patient_id: int,
    entry_id: int,
    caller: CallerIdentity = Depends(require_permission("lifestyle:delete")),
    service: LifestyleService = Depends(get_lifestyle_service),
):
    """Delete a lifestyle entry (owner, physician or clerk only)."""
    try:
        await service.delete_entry(caller, entry_id, patient_id=patient_id)

        logger.log_info(
            {
                "event": "lifestyle_entry_deleted",
                "entry_id": entry_id,
                "deleted_by": caller.user_id,
            }
        )

        return Response(status_code=status.HTTP_204_NO_CONTENT)

    except ServiceError:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "delete_lifestyle_entry_error",
                "entry_id": entry_id,
                "error": str(e),
                "user_id": caller.user_id,
            },
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete lifestyle entry",
        )
