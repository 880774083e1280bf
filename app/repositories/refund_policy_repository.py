"""
Refund policy data access
"""

import uuid
from typing import List, Optional

from sqlalchemy import select, update, desc
from sqlalchemy.sql import func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.refund import RefundPolicy, RefundPolicyCreate, RefundPolicyUpdate, RefundRule, RefundRuleInput
from app.models.database.refund_db import RefundPolicyDB


class RefundPolicyRepository:
    """Refund policy data access"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_policy_id(self, policy_id: str) -> Optional[RefundPolicyDB]:
        result = await self.db.execute(
            select(RefundPolicyDB)
            .where(RefundPolicyDB.id == policy_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_default_policy(self) -> Optional[RefundPolicyDB]:
        """The policy flagged as default, most recently updated first if several are"""
        result = await self.db.execute(
            select(RefundPolicyDB)
            .where(RefundPolicyDB.is_default.is_(True))
            .order_by(desc(RefundPolicyDB.updated_at))
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_policies(self) -> List[RefundPolicyDB]:
        result = await self.db.execute(
            select(RefundPolicyDB)
            .order_by(desc(RefundPolicyDB.is_default), RefundPolicyDB.name)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def create(self, policy_data: RefundPolicyCreate) -> RefundPolicyDB:
        """Insert a policy; a new default policy takes the flag from the others"""
        policy_id = f"policy_{uuid.uuid4().hex[:12]}"
        if policy_data.is_default:
            await self._clear_default_flags()

        db_policy = RefundPolicyDB(
            id=policy_id,
            name=policy_data.name.strip(),
            description=policy_data.description,
            rules=self._dump_rules(policy_data.rules),
            is_default=policy_data.is_default
        )
        self.db.add(db_policy)
        await self.db.flush()
        await self.db.refresh(db_policy)
        return db_policy

    async def update(self, policy_id: str, policy_data: RefundPolicyUpdate) -> Optional[RefundPolicyDB]:
        db_policy = await self.get_by_policy_id(policy_id)
        if not db_policy:
            return None

        data = policy_data.model_dump(exclude_unset=True)
        if data.get("name") is not None:
            db_policy.name = data["name"].strip()
        if "description" in data:
            db_policy.description = data["description"]
        if policy_data.rules is not None:
            db_policy.rules = self._dump_rules(policy_data.rules)

        await self.db.flush()
        await self.db.refresh(db_policy)
        return db_policy

    async def set_default(self, policy_id: str) -> Optional[RefundPolicyDB]:
        """Make one policy the default; runs inside the caller's transaction"""
        db_policy = await self.get_by_policy_id(policy_id)
        if not db_policy:
            return None

        await self._clear_default_flags()
        await self.db.execute(
            update(RefundPolicyDB)
            .where(RefundPolicyDB.id == policy_id)
            .values(is_default=True, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return await self.get_by_policy_id(policy_id)

    async def _clear_default_flags(self) -> None:
        await self.db.execute(
            update(RefundPolicyDB)
            .where(RefundPolicyDB.is_default.is_(True))
            .values(is_default=False, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def _dump_rules(rules: List[RefundRuleInput]) -> list:
        """JSON-safe rule list; percentages kept as strings to preserve Decimal precision"""
        return [
            {
                "days_before_session": rule.days_before_session,
                "refund_percentage": str(rule.refund_percentage)
            }
            for rule in rules
        ]

    def to_model(self, db_policy: RefundPolicyDB) -> RefundPolicy:
        """Convert to the pydantic model"""
        return RefundPolicy(
            id=db_policy.id,
            name=db_policy.name,
            description=db_policy.description,
            rules=[RefundRule(**rule) for rule in (db_policy.rules or [])],
            is_default=db_policy.is_default,
            created_at=db_policy.created_at,
            updated_at=db_policy.updated_at
        )
