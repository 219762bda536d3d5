from pydantic import BaseModel
from typing import Optional, List


class PaymentRequest(BaseModel):
    amount: float
    method: str = "CASH"
    reference: Optional[str] = None
    # version the client last read; defaults to the stored one
    version: Optional[int] = None


class ReturnLineRequest(BaseModel):
    product: str
    batch: Optional[str] = None
    batchNo: Optional[str] = None
    quantity: float
    restock: Optional[bool] = None


class ReturnRequest(BaseModel):
    items: List[ReturnLineRequest]
    restock: bool = True
    reason: Optional[str] = None
    notes: Optional[str] = None
    returnDate: Optional[str] = None
    noteNumber: Optional[str] = None
    version: Optional[int] = None


class ExpenseRequest(BaseModel):
    amount: float
    gstRate: float = 0
    category: Optional[str] = None
    description: Optional[str] = None


class ExpenseResponse(BaseModel):
    amount: float
    gstRate: float
    gstAmount: float
    totalAmount: float
    category: Optional[str] = None
    description: Optional[str] = None
