# schemas/report.py

from pydantic import BaseModel
from decimal import Decimal


class SalesSummaryResponse(BaseModel):
    revenue: Decimal
    sales_count: int
