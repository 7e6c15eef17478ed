import traceback
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response, status

from patient_records.api.dependencies import get_medical_history_service
from patient_records.core.authorization import CallerIdentity
from patient_records.core.errors import ServiceError
from patient_records.core.permission_checker import require_permission
from patient_records.core.utils import logger
from patient_records.schemas.medical_history_schemas import (
    MedicalHistoryCreateSchema,
    MedicalHistoryResponseSchema,
    MedicalHistoryUpdateSchema,
)
from patient_records.services.medical_history_service import MedicalHistoryService


router = APIRouter(prefix="/patients/{patient_id}/medical_history", tags=["medical history"])


@router.post(
    "",
    response_model=MedicalHistoryResponseSchema,
    status_code=status.HTTP_201_CREATED,
)
async def create_medical_history_entry(
    patient_id: int,
    entry_data: MedicalHistoryCreateSchema,
    caller: CallerIdentity = Depends(require_permission("medical_history:create")),
    service: MedicalHistoryService = Depends(get_medical_history_service),
):
    """Record a condition on a patient's medical history."""
    try:
        entry = await service.create_entry(patient_id, entry_data)

        logger.log_info(
            {
                "event": "medical_history_entry_created",
                "patient_id": patient_id,
                "entry_id": entry.patient_medical_history_id,
                "created_by": caller.user_id,
            }
        )

        return MedicalHistoryResponseSchema.model_validate(entry)

    except ServiceError:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "create_medical_history_entry_error",
                "patient_id": patient_id,
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create medical history entry",
        )


@router.get("", response_model=List[MedicalHistoryResponseSchema])
async def list_medical_history_entries(
    patient_id: int,
    caller: CallerIdentity = Depends(require_permission("medical_history:read")),
    service: MedicalHistoryService = Depends(get_medical_history_service),
):
    """List a patient's medical history. A patient with no entries gets []."""
    try:
        entries = await service.list_entries(patient_id)
        return [MedicalHistoryResponseSchema.model_validate(e) for e in entries]

    except ServiceError:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "list_medical_history_entries_error",
                "patient_id": patient_id,
                "error": str(e),
                "user_id": caller.user_id,
            },
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get medical history entries",
        )


@router.get("/{entry_id}", response_model=MedicalHistoryResponseSchema)
async def get_medical_history_entry(
    patient_id: int,
    entry_id: int,
    caller: CallerIdentity = Depends(require_permission("medical_history:read")),
    service: MedicalHistoryService = Depends(get_medical_history_service),
):
    try:
        entry = await service.get_entry(entry_id, patient_id=patient_id)
        return MedicalHistoryResponseSchema.model_validate(entry)

    except ServiceError:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "get_medical_history_entry_error",
                "entry_id": entry_id,
                "error": str(e),
                "user_id": caller.user_id,
            },
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get medical history entry",
        )


@router.put("/{entry_id}", response_model=MedicalHistoryResponseSchema)
async def update_medical_history_entry(
    patient_id: int,
    entry_id: int,
    update_data: MedicalHistoryUpdateSchema,
    caller: CallerIdentity = Depends(require_permission("medical_history:update")),
    service: MedicalHistoryService = Depends(get_medical_history_service),
):
    """
    Update a medical history entry (owner, physician or clerk only).

    Args:
        patient_id: Owning patient ID
        entry_id: Medical history entry ID
        update_data: Fields to overwrite; empty fields are kept

    Returns:
        MedicalHistoryResponseSchema: Updated entry
    """
    try:
        entry = await service.update_entry(
            caller, entry_id, update_data, patient_id=patient_id
        )

        logger.log_info(
            {
                "event": "medical_history_entry_updated",
                "entry_id": entry_id,
                "updated_by": caller.user_id,
            }
        )

        return MedicalHistoryResponseSchema.model_validate(entry)

    except ServiceError:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "update_medical_history_entry_error",
                "entry_id": entry_id,
                "error": str(e),
                "user_id": caller.user_id,
            },
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update medical history entry",
        )


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_medical_history_entry(
    patient_id: int,
    entry_id: int,
    caller: CallerIdentity = Depends(require_permission("medical_history:delete")),
    service: MedicalHistoryService = Depends(get_medical_history_service),
):
    """Delete a medical history entry (owner, physician or clerk only)."""
    try:
        await service.delete_entry(caller, entry_id, patient_id=patient_id)

        logger.log_info(
            {
                "event": "medical_history_entry_deleted",
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
                "event": "delete_medical_history_entry_error",
                "entry_id": entry_id,
                "error": str(e),
                "user_id": caller.user_id,
            },
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete medical history entry",
        )
