from pydantic import BaseModel


class CreditPackageResponse(BaseModel):
    id: str
    name: str
    credits: int
    price: float
    currency: str


class BalanceResponse(BaseModel):
    credits: int


class SimulatePurchaseRequest(BaseModel):
    package_id: str


class SimulatePurchaseResponse(BaseModel):
    success: bool
    package: CreditPackageResponse
    new_balance: int
