"""
Discount rule data access
"""

import uuid
from typing import List, Optional

from sqlalchemy import select, delete, desc, asc
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.discount import (
    DiscountRule,
    DiscountRuleCreate,
    DiscountRuleUpdate,
    DiscountConditions,
    RuleDiscount,
)
from app.models.database.discount_db import DiscountRuleDB


class DiscountRuleRepository:
    """Discount rule data access"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_active_rules(self) -> List[DiscountRuleDB]:
        """Active rules in evaluation order: priority descending, id ascending"""
        result = await self.db.execute(
            select(DiscountRuleDB)
            .where(DiscountRuleDB.is_active.is_(True))
            .order_by(desc(DiscountRuleDB.priority), asc(DiscountRuleDB.id))
        )
        return list(result.scalars().all())

    async def list_rules(self, active_only: bool = False) -> List[DiscountRuleDB]:
        """All rules for the admin list"""
        if active_only:
            return await self.list_active_rules()

        result = await self.db.execute(
            select(DiscountRuleDB).order_by(desc(DiscountRuleDB.priority), asc(DiscountRuleDB.id))
        )
        return list(result.scalars().all())

    async def get_by_id(self, rule_id: str) -> Optional[DiscountRuleDB]:
        result = await self.db.execute(
            select(DiscountRuleDB).where(DiscountRuleDB.id == rule_id)
        )
        return result.scalar_one_or_none()

    async def create(self, rule_data: DiscountRuleCreate) -> DiscountRuleDB:
        """Insert a new rule"""
        db_rule = DiscountRuleDB(id=f"rule_{uuid.uuid4().hex[:12]}")
        self._apply(db_rule, rule_data.model_dump())

        self.db.add(db_rule)
        await self.db.flush()
        await self.db.refresh(db_rule)
        return db_rule

    async def update(self, rule_id: str, rule_data: DiscountRuleUpdate) -> Optional[DiscountRuleDB]:
        """Apply the fields that were set on the update payload"""
        db_rule = await self.get_by_id(rule_id)
        if not db_rule:
            return None

        self._apply(db_rule, rule_data.model_dump(exclude_unset=True))
        await self.db.flush()
        await self.db.refresh(db_rule)
        return db_rule

    async def delete(self, rule_id: str) -> bool:
        result = await self.db.execute(
            delete(DiscountRuleDB).where(DiscountRuleDB.id == rule_id)
        )
        return result.rowcount > 0

    def _apply(self, db_rule: DiscountRuleDB, data: dict) -> None:
        """Copy payload fields onto the flat table columns"""
        for field in ("name", "description", "is_active", "priority"):
            if field in data:
                setattr(db_rule, field, data[field])

        if "type" in data and data["type"] is not None:
            db_rule.rule_type = _enum_value(data["type"])

        conditions = data.get("conditions")
        if conditions is not None:
            db_rule.min_children = conditions.get("min_children")
            db_rule.min_quantity = conditions.get("min_quantity")
            db_rule.days_before_session = conditions.get("days_before_session")

        discount = data.get("discount")
        if discount is not None:
            db_rule.discount_type = _enum_value(discount["type"])
            db_rule.discount_value = discount["value"]
            db_rule.applies_to = _enum_value(discount["applies_to"])

    def to_model(self, db_rule: DiscountRuleDB) -> DiscountRule:
        """Convert to the pydantic model"""
        return DiscountRule(
            id=db_rule.id,
            name=db_rule.name,
            description=db_rule.description,
            type=db_rule.rule_type,
            conditions=DiscountConditions(
                min_children=db_rule.min_children,
                min_quantity=db_rule.min_quantity,
                days_before_session=db_rule.days_before_session
            ),
            discount=RuleDiscount(
                type=db_rule.discount_type,
                value=db_rule.discount_value,
                applies_to=db_rule.applies_to or "all"
            ),
            is_active=db_rule.is_active,
            priority=db_rule.priority or 0,
            created_at=db_rule.created_at,
            updated_at=db_rule.updated_at
        )


def _enum_value(value):
    return getattr(value, "value", value)
