from typing import Any, Dict, List

from sqlalchemy import func
from sqlmodel import Session, select

from ..models.customer import Customer
from ..models.plan import Plan
from .base_service import BaseCRUDService


class PlanInUseError(ValueError):
    pass


class PlanService(BaseCRUDService[Plan]):
    def __init__(self, session: Session):
        super().__init__(session, Plan)

    def customer_count(self, plan_id: int) -> int:
        statement = select(func.count(Customer.id)).where(Customer.plan_id == plan_id)
        return self.session.exec(statement).one()

    def get_all_plans(self) -> List[Dict[str, Any]]:
        """All plans, cheapest first, with the number of customers on each."""
        statement = (
            select(Plan, func.count(Customer.id))
            .join(Customer, Customer.plan_id == Plan.id, isouter=True)
            .group_by(Plan.id)
            .order_by(Plan.price)
        )
        plans_list = []
        for plan, customers in self.session.exec(statement).all():
            plan_dict = plan.model_dump()
            plan_dict["customer_count"] = customers
            plans_list.append(plan_dict)
        return plans_list

    def _ensure_unique_name(self, name: str) -> None:
        if self.session.exec(select(Plan).where(Plan.name == name)).first():
            raise ValueError(f"Plan name '{name}' already exists.")

    def create_plan(self, plan_data: Dict[str, Any]) -> Plan:
        self._ensure_unique_name(plan_data["name"])
        return self.create(plan_data)

    def update_plan(self, plan_id: int, plan_data: Dict[str, Any]) -> Plan:
        plan = self.get_by_id(plan_id)
        new_name = plan_data.get("name")
        if new_name is not None and new_name != plan.name:
            self._ensure_unique_name(new_name)
        return self.update(plan_id, plan_data)

    def delete_plan(self, plan_id: int) -> None:
        self.get_by_id(plan_id)
        if self.customer_count(plan_id) > 0:
            raise PlanInUseError("Cannot delete plan with associated customers")
        self.delete(plan_id)
