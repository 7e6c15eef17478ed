from typing import Generic, List, Type, TypeVar

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm.exc import StaleDataError

from patient_records.core.utils import LoggerMixin
from patient_records.models.patient_model import utc_now
from patient_records.repositories.errors import (
    RecordNotFoundError,
    RepositoryError,
    translate_integrity_error,
)


EntryT = TypeVar("EntryT")


class PatientEntryRepository(LoggerMixin, Generic[EntryT]):
    """
    Shared data access for records owned by a patient.

    Subclasses set `model`, `id_attribute` (the primary key column name) and
    `label` (used in log events and error messages).
    """

    model: Type[EntryT]
    id_attribute: str
    label: str

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def _id_column(self):
        return getattr(self.model, self.id_attribute)

    async def create_entry(self, entry: EntryT) -> EntryT:
        """Insert an entry and return it with id and timestamps."""
        self.db.add(entry)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise translate_integrity_error(e) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.log_error({"event": f"create_{self.label}_failed", "error": str(e)})
            raise RepositoryError(f"create {self.label} error: {e}") from e

        await self.db.refresh(entry)
        return entry

    async def get_entry(self, entry_id: int) -> EntryT:
        """
        Get one entry by id.

        Raises:
            RecordNotFoundError: No entry has this id
        """
        try:
            result = await self.db.execute(
                select(self.model).where(self._id_column == entry_id)
            )
        except SQLAlchemyError as e:
            self.log_error(
                {"event": f"get_{self.label}_failed", "entry_id": entry_id, "error": str(e)}
            )
            raise RepositoryError(f"get {self.label} error: {e}") from e

        entry = result.scalars().first()
        if entry is None:
            raise RecordNotFoundError(f"{self.label} {entry_id} not found")
        return entry

    async def list_entries(self, patient_id: int) -> List[EntryT]:
        """All entries for a patient, oldest first. Empty list when none."""
        try:
            result = await self.db.execute(
                select(self.model)
                .where(self.model.patient_id == patient_id)
                .order_by(self._id_column)
            )
        except SQLAlchemyError as e:
            self.log_error(
                {"event": f"list_{self.label}_failed", "patient_id": patient_id, "error": str(e)}
            )
            raise RepositoryError(f"list {self.label} error: {e}") from e

        return list(result.scalars().all())

    async def update_entry(self, entry: EntryT) -> EntryT:
        """
        Persist field changes on a loaded entry and bump `updated_at`.

        Raises:
            RecordNotFoundError: The row was deleted since it was loaded
        """
        entry_id = getattr(entry, self.id_attribute)
        entry.updated_at = utc_now()
        self.db.add(entry)
        try:
            await self.db.commit()
        except StaleDataError as e:
            await self.db.rollback()
            raise RecordNotFoundError(f"{self.label} {entry_id} not found") from e
        except IntegrityError as e:
            await self.db.rollback()
            raise translate_integrity_error(e) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.log_error({"event": f"update_{self.label}_failed", "error": str(e)})
            raise RepositoryError(f"update {self.label} error: {e}") from e

        await self.db.refresh(entry)
        return entry

    async def delete_entry(self, entry_id: int) -> None:
        """
        Hard delete an entry.

        Raises:
            RecordNotFoundError: Nothing was deleted
        """
        try:
            result = await self.db.execute(
                delete(self.model).where(self._id_column == entry_id)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.log_error(
                {"event": f"delete_{self.label}_failed", "entry_id": entry_id, "error": str(e)}
            )
            raise RepositoryError(f"delete {self.label} error: {e}") from e

        if result.rowcount == 0:
            raise RecordNotFoundError(f"{self.label} {entry_id} not found")
