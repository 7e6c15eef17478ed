from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm.exc import StaleDataError

from patient_records.core.utils import LoggerMixin
from patient_records.models.patient_model import Patient, utc_now
from patient_records.repositories.errors import (
    RecordNotFoundError,
    RepositoryError,
    translate_integrity_error,
)


class PatientRepository(LoggerMixin):
    """Repository layer for patient data access."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_patient(self, patient: Patient) -> Patient:
        """Insert a new patient and return it with its generated id."""
        self.db.add(patient)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise translate_integrity_error(e) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.log_error({"event": "create_patient_failed", "error": str(e)})
            raise RepositoryError(f"create patient error: {e}") from e

        await self.db.refresh(patient)
        return patient

    async def get_patient(self, patient_id: int) -> Patient:
        """
        Get patient by ID.

        Raises:
            RecordNotFoundError: No patient has this id
        """
        try:
            result = await self.db.execute(
                select(Patient).where(Patient.patient_id == patient_id)
            )
        except SQLAlchemyError as e:
            self.log_error(
                {"event": "get_patient_failed", "patient_id": patient_id, "error": str(e)}
            )
            raise RepositoryError(f"get patient error: {e}") from e

        patient = result.scalars().first()
        if patient is None:
            raise RecordNotFoundError(f"patient {patient_id} not found")
        return patient

    async def update_patient(self, patient: Patient) -> Patient:
        """
        Persist field changes on a loaded patient and bump `updated_at`.

        Raises:
            RecordNotFoundError: The row disappeared since it was loaded
        """
        patient_id = patient.patient_id
        patient.updated_at = utc_now()
        self.db.add(patient)
        try:
            await self.db.commit()
        except StaleDataError as e:
            await self.db.rollback()
            raise RecordNotFoundError(f"patient {patient_id} not found") from e
        except IntegrityError as e:
            await self.db.rollback()
            raise translate_integrity_error(e) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.log_error({"event": "update_patient_failed", "error": str(e)})
            raise RepositoryError(f"update patient error: {e}") from e

        await self.db.refresh(patient)
        return patient
