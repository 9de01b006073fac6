import copy
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from plancoach.core.exceptions import DocumentNotFoundError, PersistenceError, StaleRevisionError
from plancoach.database.models import BusinessPlan
from plancoach.repositories.base_repository import BaseRepository
from plancoach.schemas.plans import PlanDocument
from plancoach.utils.logging import get_logger

LOGGER = get_logger(__name__)


class PlanRepository(BaseRepository[BusinessPlan]):
    """Plan Store backed by the ``business_plans`` table.

    Writes replace the whole ``content`` column but only succeed when the
    caller's revision still matches, so two requests editing different
    sections of the same plan cannot silently overwrite each other.
    """

    def __init__(self, session: AsyncSession):
        """Initialize plan repository.

        Args:
            session: SQLAlchemy async session
        """
        super().__init__(session, BusinessPlan)

    async def get_document(self, document_id: UUID) -> PlanDocument:
        """Read a plan's content and revision.

        Args:
            document_id: Business plan ID

        Returns:
            PlanDocument snapshot (content is a private copy)

        Raises:
            DocumentNotFoundError: If the plan does not exist
            PersistenceError: If the read fails
        """
        try:
            plan = await self.get_by_id(document_id, refresh=True)
            snapshot = None
            if plan is not None:
                snapshot = PlanDocument(
                    id=plan.id,
                    revision=plan.revision or 0,
                    content=copy.deepcopy(plan.content or {}),
                )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read business plan {document_id}", original_error=e) from e
        finally:
            # Return the connection to the pool before any long assistant run
            await self.session.rollback()

        if snapshot is None:
            raise DocumentNotFoundError(document_id)
        return snapshot

    async def update_document(
        self,
        document_id: UUID,
        content: Dict[str, Any],
        expected_revision: int,
    ) -> int:
        """Replace a plan's content if nobody wrote since ``expected_revision``.

        Args:
            document_id: Business plan ID
            content: New full content
            expected_revision: Revision the content was derived from

        Returns:
            The new revision number

        Raises:
            StaleRevisionError: If the stored revision moved on
            DocumentNotFoundError: If the plan does not exist
            PersistenceError: If the write fails
        """
        new_revision = expected_revision + 1
        stmt = (
            update(BusinessPlan)
            .where(
                BusinessPlan.id == document_id,
                BusinessPlan.revision == expected_revision,
            )
            .values(
                content=content,
                revision=new_revision,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )

        try:
            result = await self.session.execute(stmt)
            if result.rowcount == 0:
                exists = await self.session.scalar(
                    select(BusinessPlan.id).where(BusinessPlan.id == document_id)
                )
                await self.session.rollback()
                if exists is None:
                    raise DocumentNotFoundError(document_id)
                raise StaleRevisionError(document_id, expected_revision)

            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(
                f"Failed to write business plan {document_id}",
                exc_info=True,
                extra={"expected_revision": expected_revision},
            )
            raise PersistenceError(f"Failed to write business plan {document_id}", original_error=e) from e

        LOGGER.debug(
            f"Business plan {document_id} written",
            extra={"revision": new_revision},
        )
        return new_revision
