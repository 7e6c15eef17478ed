from typing import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from patient_records.core.authorization import Authorizer
from patient_records.core.validation import RequestValidator
from patient_records.db.session import AsyncSessionLocal
from patient_records.repositories.lifestyle_repo import LifestyleRepository
from patient_records.repositories.medical_history_repo import MedicalHistoryRepository
from patient_records.repositories.patient_repo import PatientRepository
from patient_records.services.lifestyle_service import LifestyleService
from patient_records.services.medical_history_service import MedicalHistoryService
from patient_records.services.patient_service import PatientService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


def get_validator(request: Request) -> RequestValidator:
    """Process-wide validator built in the app factory."""
    return request.app.state.validator


def get_authorizer(request: Request) -> Authorizer:
    """Process-wide authorization gate built in the app factory."""
    return request.app.state.authorizer


def get_patient_service(
    db: AsyncSession = Depends(get_db),
    validator: RequestValidator = Depends(get_validator),
    authorizer: Authorizer = Depends(get_authorizer),
) -> PatientService:
    return PatientService(PatientRepository(db), validator, authorizer)


def get_medical_history_service(
    db: AsyncSession = Depends(get_db),
    validator: RequestValidator = Depends(get_validator),
    authorizer: Authorizer = Depends(get_authorizer),
) -> MedicalHistoryService:
    return MedicalHistoryService(
        MedicalHistoryRepository(db), PatientRepository(db), validator, authorizer
    )


def get_lifestyle_service(
    db: AsyncSession = Depends(get_db),
    validator: RequestValidator = Depends(get_validator),
    authorizer: Authorizer = Depends(get_authorizer),
) -> LifestyleService:
    return LifestyleService(
        LifestyleRepository(db), PatientRepository(db), validator, authorizer
    )
