from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.dependencies.auth import get_current_user_id
from app.schemas.credits import (
    BalanceResponse,
    CreditPackageResponse,
    SimulatePurchaseRequest,
    SimulatePurchaseResponse,
)
from app.services import credit_ledger, credits as credit_service

router = APIRouter()


@router.get("/packages", response_model=List[CreditPackageResponse])
def get_packages():
    """Credit package catalog. No auth required."""
    return credit_service.list_packages()


@router.get("/balance", response_model=BalanceResponse)
def get_balance(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    return {"credits": credit_ledger.get_balance(db, user_id)}


@router.post("/simulate-purchase", response_model=SimulatePurchaseResponse)
def simulate_purchase(
    data: SimulatePurchaseRequest,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """Add a package's credits to the account. No real payment is made."""
    return credit_service.simulate_purchase(db, user_id, data.package_id)
