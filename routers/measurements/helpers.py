from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from models import Measurement, utc_now
from routers.profiles.helpers import as_uuid
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class MeasurementHelpers:
    """Saved body measurements; a customer's first set becomes primary"""

    async def list_measurements(self, db: AsyncSession, customer_id: Any) -> List[Measurement]:
        result = await db.execute(
            select(Measurement)
            .where(Measurement.customer_id == as_uuid(customer_id))
            .order_by(Measurement.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_measurement(self, db: AsyncSession, measurement_id: Any, customer_id: Any) -> Optional[Measurement]:
        result = await db.execute(
            select(Measurement)
            .where(Measurement.id == as_uuid(measurement_id))
            .where(Measurement.customer_id == as_uuid(customer_id))
        )
        return result.scalar_one_or_none()

    async def create_measurement(self, db: AsyncSession, customer_id: Any, data: Dict[str, Any]) -> Measurement:
        count_result = await db.execute(
            select(func.count(Measurement.id)).where(Measurement.customer_id == as_uuid(customer_id))
        )
        existing_count = count_result.scalar() or 0

        measurement = Measurement(customer_id=as_uuid(customer_id), is_primary=existing_count == 0, **data)
        db.add(measurement)
        await db.commit()
        await db.refresh(measurement)
        return measurement

    async def update_measurement(
        self,
        db: AsyncSession,
        measurement_id: Any,
        customer_id: Any,
        updates: Dict[str, Any]
    ) -> Optional[Measurement]:
        measurement = await self.get_measurement(db, measurement_id, customer_id)
        if measurement is None:
            return None

        if updates.get("is_primary"):
            await db.execute(
                update(Measurement)
                .where(Measurement.customer_id == measurement.customer_id)
                .where(Measurement.id != measurement.id)
                .values(is_primary=False)
            )

        for field, value in updates.items():
            setattr(measurement, field, value)
        measurement.updated_at = utc_now()

        await db.commit()
        await db.refresh(measurement)
        return measurement

    async def delete_measurement(self, db: AsyncSession, measurement_id: Any, customer_id: Any) -> bool:
        measurement = await self.get_measurement(db, measurement_id, customer_id)
        if measurement is None:
            return False
        await db.delete(measurement)
        await db.commit()
        logger.info(f"Measurement {measurement_id} deleted")
        return True


measurement_helpers = MeasurementHelpers()
