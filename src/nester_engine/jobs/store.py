"""Work record persistence with guarded terminal transitions."""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from nester_engine.common.exceptions import InvalidTransitionError
from nester_engine.common.models import utcnow
from nester_engine.jobs.models import (
    TERMINAL_STATUSES,
    JobStatus,
    JobType,
    WorkRecordModel,
)


class JobStore:
    """Creates work records and moves them to a terminal state exactly once."""

    async def create(
        self,
        session: AsyncSession,
        agent_id: str,
        property_id: str,
        job_type: JobType,
        job_id: str,
    ) -> WorkRecordModel:
        record = WorkRecordModel(
            agent_id=agent_id,
            property_id=property_id,
            job_type=job_type.value,
            job_id=job_id,
            status=JobStatus.PROCESSING.value,
            result={},
        )
        session.add(record)
        await session.flush()
        return record

    async def get_by_job_id(
        self, session: AsyncSession, job_type: JobType, job_id: str,
    ) -> WorkRecordModel | None:
        result = await session.execute(
            select(WorkRecordModel).where(
                WorkRecordModel.job_type == job_type.value,
                WorkRecordModel.job_id == job_id,
            )
        )
        return result.scalar_one_or_none()

    async def latest_for_property(
        self, session: AsyncSession, property_id: str, job_type: JobType,
    ) -> WorkRecordModel | None:
        result = await session.execute(
            select(WorkRecordModel)
            .where(
                WorkRecordModel.property_id == property_id,
                WorkRecordModel.job_type == job_type.value,
            )
            .order_by(WorkRecordModel.started_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_for_property(
        self, session: AsyncSession, property_id: str,
    ) -> list[WorkRecordModel]:
        result = await session.execute(
            select(WorkRecordModel)
            .where(WorkRecordModel.property_id == property_id)
            .order_by(WorkRecordModel.started_at.desc())
        )
        return list(result.scalars().all())

    async def finish(
        self,
        session: AsyncSession,
        record: WorkRecordModel,
        status: JobStatus,
        error: str | None = None,
        result: dict | None = None,
    ) -> WorkRecordModel:
        """Move ``record`` from processing to ``status``.

        The UPDATE is conditional on the stored status still being
        ``processing``; if another delivery got there first no row matches and
        ``InvalidTransitionError`` is raised with nothing written.
        """
        if status not in TERMINAL_STATUSES:
            raise InvalidTransitionError(f"{status.value} is not a terminal status")

        values = {
            "status": status.value,
            "completed_at": utcnow(),
            "error": error,
        }
        if result is not None:
            values["result"] = result

        res = await session.execute(
            update(WorkRecordModel)
            .where(
                WorkRecordModel.id == record.id,
                WorkRecordModel.status == JobStatus.PROCESSING.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            raise InvalidTransitionError(
                f"Work record {record.id} is no longer processing"
            )
        await session.refresh(record)
        return record
