from dataclasses import dataclass, asdict
from types import MappingProxyType
from typing import Mapping, Tuple

from dateutil.relativedelta import relativedelta


@dataclass(frozen=True)
class CreditPackage:
    id: str
    name: str
    credits: int
    price: float
    currency: str = "TRY"

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class SubscriptionPlan:
    plan_type: str
    name: str
    credits: int
    price: float
    duration: relativedelta
    features: Tuple[str, ...] = ()
    currency: str = "TRY"

    def to_dict(self) -> dict:
        return {
            "id": self.plan_type,
            "plan_type": self.plan_type,
            "name": self.name,
            "credits": self.credits,
            "price": self.price,
            "currency": self.currency,
            "features": list(self.features),
        }


# Read-only lookup tables, built once at import
CREDIT_PACKAGES: Mapping[str, CreditPackage] = MappingProxyType({
    p.id: p
    for p in (
        CreditPackage(id="mini", name="Mini", credits=6, price=39),
        CreditPackage(id="standart", name="Standart", credits=12, price=69),
        CreditPackage(id="avantajli", name="Avantajli", credits=18, price=89),
        CreditPackage(id="power", name="Power", credits=30, price=169),
    )
})

SUBSCRIPTION_PLANS: Mapping[str, SubscriptionPlan] = MappingProxyType({
    p.plan_type: p
    for p in (
        SubscriptionPlan(
            plan_type="weekly",
            name="Weekly Premium",
            credits=15,
            price=29.99,
            duration=relativedelta(weeks=1),
            features=("15 credits every week", "Priority support", "Ad-free experience"),
        ),
        SubscriptionPlan(
            plan_type="monthly",
            name="Monthly Premium",
            credits=50,
            price=79.99,
            duration=relativedelta(months=1),
            features=("50 credits every month", "Priority support", "Ad-free experience", "Save 20%"),
        ),
        SubscriptionPlan(
            plan_type="yearly",
            name="Yearly Premium",
            credits=500,
            price=599.99,
            duration=relativedelta(years=1),
            features=("500 credits every year", "Priority support", "Ad-free experience", "Save 40%", "VIP badge"),
        ),
    )
})


def get_credit_package(package_id: str):
    """Return the package for `package_id`, or None when it is not in the catalog."""
    return CREDIT_PACKAGES.get(package_id)


def get_subscription_plan(plan_type: str):
    return SUBSCRIPTION_PLANS.get(plan_type)
