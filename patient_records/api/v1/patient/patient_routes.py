import traceback
from fastapi import APIRouter, Depends, HTTPException, status

from patient_records.api.dependencies import get_patient_service
from patient_records.core.authorization import CallerIdentity
from patient_records.core.errors import ServiceError
from patient_records.core.permission_checker import require_permission
from patient_records.core.utils import logger
from patient_records.schemas.patient_schemas import (
    PatientCreateSchema,
    PatientResponseSchema,
    PatientUpdateSchema,
)
from patient_records.services.patient_service import PatientService


router = APIRouter(prefix="/patients", tags=["patients"])


@router.post(
    "",
    response_model=PatientResponseSchema,
    status_code=status.HTTP_201_CREATED,
)
async def create_patient(
    patient_data: PatientCreateSchema,
    caller: CallerIdentity = Depends(require_permission("patient:create")),
    service: PatientService = Depends(get_patient_service),
):
    """
    Create a new patient.

    Args:
        patient_data: Patient intake data
        service: Patient service bound to this request's session
        caller: Authenticated caller with patient:create

    Returns:
        PatientResponseSchema: Created patient information
    """
    try:
        patient = await service.create_patient(patient_data)

        logger.log_info(
            {
                "event": "patient_created",
                "patient_id": patient.patient_id,
                "created_by": caller.user_id,
            }
        )

        return PatientResponseSchema.model_validate(patient)

    except ServiceError:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "patient_creation_error",
                "error": str(e),
                "error_type": type(e).__name__,
                "traceback": traceback.format_exc(),
                "created_by": caller.user_id,
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create patient",
        )


@router.get("/{patient_id}", response_model=PatientResponseSchema)
async def get_patient(
    patient_id: int,
    caller: CallerIdentity = Depends(require_permission("patient:read")),
    service: PatientService = Depends(get_patient_service),
):
    """Get patient by ID."""
    try:
        patient = await service.get_patient(patient_id)
        return PatientResponseSchema.model_validate(patient)

    except ServiceError:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "get_patient_error",
                "patient_id": patient_id,
                "error": str(e),
                "user_id": caller.user_id,
            },
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get patient",
        )


@router.put("/{patient_id}", response_model=PatientResponseSchema)
async def update_patient(
    patient_id: int,
    update_data: PatientUpdateSchema,
    caller: CallerIdentity = Depends(require_permission("patient:update")),
    service: PatientService = Depends(get_patient_service),
):
    """
    Update a patient. Empty fields in the body keep their stored value.

    Args:
        patient_id: Patient ID
        update_data: Fields to overwrite
        service: Patient service bound to this request's session
        caller: Authenticated caller with patient:update

    Returns:
        PatientResponseSchema: Updated patient information
    """
    try:
        patient = await service.update_patient(caller, patient_id, update_data)

        logger.log_info(
            {
                "event": "patient_updated",
                "patient_id": patient_id,
                "updated_by": caller.user_id,
            }
        )

        return PatientResponseSchema.model_validate(patient)

    except ServiceError:
        raise

    except Exception as e:
        logger.log_error(
            {
                "event": "update_patient_error",
                "patient_id": patient_id,
                "error": str(e),
                "user_id": caller.user_id,
            },
            exc_info=True,
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update patient",
        )
