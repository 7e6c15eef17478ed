from typing import Any, Generic, List, Optional, Sequence, TypeVar

from patient_records.core.authorization import Authorizer, CallerIdentity
from patient_records.core.errors import (
    conflict,
    entry_not_found,
    internal,
    owner_not_found,
)
from patient_records.core.validation import FieldRule, RequestValidator
from patient_records.repositories.entry_repo import PatientEntryRepository
from patient_records.repositories.errors import (
    DuplicateRecordError,
    ForeignKeyViolationError,
    RecordNotFoundError,
    RepositoryError,
)
from patient_records.repositories.patient_repo import PatientRepository
from patient_records.schemas.base_schemas import RequestSchema, UpdateRequestSchema
from patient_records.services.base_service import (
    RecordService,
    apply_changes,
    present_fields,
)


EntryT = TypeVar("EntryT")


class PatientEntryService(RecordService, Generic[EntryT]):
    """
    Create, list, get, update and delete for records owned by a patient.

    Subclasses provide the model, the rule tables and the error code:

        model: ORM class of the entry
        label: Human name used in messages ("medical history entry")
        event_name: Snake-case name used in log events
        invalid_code: ValidationError code for bad payloads
        create_rules / update_rules: Rule tables for the two request types
    """

    model: Any
    label: str
    event_name: str
    invalid_code: str
    create_rules: Sequence[FieldRule]
    update_rules: Sequence[FieldRule]

    def __init__(
        self,
        entry_repo: PatientEntryRepository,
        patient_repo: PatientRepository,
        validator: RequestValidator,
        authorizer: Authorizer,
        logger=None,
    ):
        super().__init__(validator, authorizer, logger)
        self.entry_repo = entry_repo
        self.patient_repo = patient_repo

    def build_entry(self, patient_id: int, request: RequestSchema) -> EntryT:
        """New entity from the supplied request fields; server fields are never copied."""
        fields = present_fields(request.model_dump())
        return self.model(patient_id=patient_id, **fields)

    async def _require_patient(self, patient_id: int) -> None:
        """Existence gate on the owning patient."""
        try:
            await self.patient_repo.get_patient(patient_id)
        except RecordNotFoundError as e:
            raise owner_not_found() from e
        except RepositoryError as e:
            self.log_error(
                {"event": "check_patient_failed", "patient_id": patient_id, "error": str(e)}
            )
            raise internal(f"failed to check patient existence: {e}") from e

    async def _load_entry(self, entry_id: int, patient_id: Optional[int]) -> EntryT:
        try:
            entry = await self.entry_repo.get_entry(entry_id)
        except RecordNotFoundError as e:
            raise entry_not_found(f"{self.label} not found") from e
        except RepositoryError as e:
            self.log_error(
                {"event": f"get_{self.event_name}_failed", "entry_id": entry_id, "error": str(e)}
            )
            raise internal(f"get {self.label} error: {e}") from e

        # Entries are only reachable under their own patient
        if patient_id is not None and entry.patient_id != patient_id:
            raise entry_not_found(f"{self.label} not found")
        return entry

    # ============= Operations =============
    async def create_entry(self, patient_id: int, request: RequestSchema) -> EntryT:
        """Create an entry for an existing patient."""
        self.log_info({"event": f"create_{self.event_name}_started", "patient_id": patient_id})

        self._validate(
            request, self.create_rules, self.invalid_code, f"create_{self.event_name}_failed"
        )
        await self._require_patient(patient_id)

        entry = self.build_entry(patient_id, request)
        try:
            created = await self.entry_repo.create_entry(entry)
        except ForeignKeyViolationError as e:
            # Patient removed between the existence check and the insert
            raise owner_not_found() from e
        except DuplicateRecordError as e:
            raise conflict(f"{self.label} already exists") from e
        except RepositoryError as e:
            self.log_error({"event": f"create_{self.event_name}_failed", "error": str(e)})
            raise internal(f"create {self.label} error: {e}") from e

        self.log_info(
            {
                "event": f"{self.event_name}_created",
                "patient_id": patient_id,
                "entry_id": created.entry_id,
            }
        )
        return created

    async def list_entries(self, patient_id: int) -> List[EntryT]:
        """
        All entries of a patient.

        An empty list means the patient exists but has no entries; a missing
        patient raises OwnerNotFound.
        """
        await self._require_patient(patient_id)

        try:
            entries = await self.entry_repo.list_entries(patient_id)
        except RepositoryError as e:
            self.log_error(
                {"event": f"list_{self.event_name}_failed", "patient_id": patient_id, "error": str(e)}
            )
            raise internal(f"get {self.label} entries error: {e}") from e

        if not entries:
            self.log_debug({"event": f"no_{self.event_name}_found", "patient_id": patient_id})
        return entries

    async def get_entry(self, entry_id: int, patient_id: Optional[int] = None) -> EntryT:
        return await self._load_entry(entry_id, patient_id)

    async def update_entry(
        self,
        caller: CallerIdentity,
        entry_id: int,
        request: UpdateRequestSchema,
        patient_id: Optional[int] = None,
    ) -> EntryT:
        """Validate, load, authorize, merge supplied fields and persist."""
        self.log_info({"event": f"update_{self.event_name}_started", "entry_id": entry_id})

        self._validate(
            request, self.update_rules, self.invalid_code, f"update_{self.event_name}_failed"
        )
        entry = await self._load_entry(entry_id, patient_id)
        await self._authorize(caller, entry.patient_id, f"update_{self.event_name}_denied")

        apply_changes(entry, request.changes())
        try:
            updated = await self.entry_repo.update_entry(entry)
        except RecordNotFoundError as e:
            raise entry_not_found(f"{self.label} not found") from e
        except RepositoryError as e:
            self.log_error({"event": f"update_{self.event_name}_failed", "error": str(e)})
            raise internal(f"update {self.label} error: {e}") from e

        self.log_info({"event": f"{self.event_name}_updated", "entry_id": entry_id})
        return updated

    async def delete_entry(
        self,
        caller: CallerIdentity,
        entry_id: int,
        patient_id: Optional[int] = None,
    ) -> None:
        """Load, authorize and hard delete."""
        self.log_info({"event": f"delete_{self.event_name}_started", "entry_id": entry_id})

        entry = await self._load_entry(entry_id, patient_id)
        await self._authorize(caller, entry.patient_id, f"delete_{self.event_name}_denied")

        try:
            await self.entry_repo.delete_entry(entry_id)
        except RecordNotFoundError as e:
            raise entry_not_found(f"{self.label} not found") from e
        except RepositoryError as e:
            self.log_error({"event": f"delete_{self.event_name}_failed", "error": str(e)})
            raise internal(f"delete {self.label} error: {e}") from e

        self.log_info({"event": f"{self.event_name}_deleted", "entry_id": entry_id})
