# backend/govcontract/schemas/billing.py
from typing import Literal

from pydantic import BaseModel


class CheckoutRequest(BaseModel):
    tier: Literal["starter", "professional", "enterprise"]
    interval: Literal["monthly", "annual"] = "monthly"
