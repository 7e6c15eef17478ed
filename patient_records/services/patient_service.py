from patient_records.core.authorization import Authorizer, CallerIdentity
from patient_records.core.errors import conflict, internal, owner_not_found
from patient_records.core.validation import INVALID_PATIENT_DATA, RequestValidator
from patient_records.models.patient_model import Patient
from patient_records.repositories.errors import (
    DuplicateRecordError,
    RecordNotFoundError,
    RepositoryError,
)
from patient_records.repositories.patient_repo import PatientRepository
from patient_records.schemas.patient_schemas import (
    PATIENT_CREATE_RULES,
    PATIENT_UPDATE_RULES,
    PatientCreateSchema,
    PatientUpdateSchema,
)
from patient_records.services.base_service import (
    RecordService,
    apply_changes,
    present_fields,
)


class PatientService(RecordService):
    """Service layer for patient business logic."""

    def __init__(
        self,
        repo: PatientRepository,
        validator: RequestValidator,
        authorizer: Authorizer,
        logger=None,
    ):
        super().__init__(validator, authorizer, logger)
        self.repo = repo

    async def create_patient(self, patient_data: PatientCreateSchema) -> Patient:
        """Create a new patient."""
        self.log_info({"event": "create_patient_started", "user_id": patient_data.user_id})

        self._validate(
            patient_data, PATIENT_CREATE_RULES, INVALID_PATIENT_DATA, "create_patient_failed"
        )
        self.validator.check_age_matches_birth_date(
            patient_data.age, patient_data.date_of_birth
        )

        patient = Patient(**present_fields(patient_data.model_dump()))
        try:
            created = await self.repo.create_patient(patient)
        except DuplicateRecordError as e:
            self.log_warning({"event": "create_patient_failed", "reason": "duplicate", "error": str(e)})
            raise conflict("patient with this email address already exists") from e
        except RepositoryError as e:
            self.log_error({"event": "create_patient_failed", "error": str(e)})
            raise internal(f"create patient error: {e}") from e

        self.log_info({"event": "patient_created", "patient_id": created.patient_id})
        return created

    async def get_patient(self, patient_id: int) -> Patient:
        """Get patient by ID."""
        try:
            return await self.repo.get_patient(patient_id)
        except RecordNotFoundError as e:
            raise owner_not_found() from e
        except RepositoryError as e:
            self.log_error({"event": "get_patient_failed", "patient_id": patient_id, "error": str(e)})
            raise internal(f"get patient error: {e}") from e

    async def update_patient(
        self,
        caller: CallerIdentity,
        patient_id: int,
        update_data: PatientUpdateSchema,
    ) -> Patient:
        """
        Update a patient with optional-overwrite semantics.

        Args:
            caller: Verified identity of the requester
            patient_id: Patient to update
            update_data: Fields to overwrite; empty fields are left alone

        Returns:
            Patient: The merged, persisted record
        """
        self.log_info({"event": "update_patient_started", "patient_id": patient_id})

        self._validate(
            update_data, PATIENT_UPDATE_RULES, INVALID_PATIENT_DATA, "update_patient_failed"
        )
        self.validator.check_age_matches_birth_date(
            update_data.age, update_data.date_of_birth
        )

        patient = await self.get_patient(patient_id)
        await self._authorize(caller, patient.patient_id, "update_patient_denied")

        apply_changes(patient, update_data.changes())
        try:
            updated = await self.repo.update_patient(patient)
        except RecordNotFoundError as e:
            raise owner_not_found() from e
        except DuplicateRecordError as e:
            raise conflict("patient with this email address already exists") from e
        except RepositoryError as e:
            self.log_error({"event": "update_patient_failed", "patient_id": patient_id, "error": str(e)})
            raise internal(f"update patient error: {e}") from e

        self.log_info({"event": "patient_updated", "patient_id": patient_id})
        return updated
