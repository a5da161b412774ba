from pydantic import BaseModel, field_validator
from typing import Optional
from decimal import Decimal
from utils.calculations import normalize_tax_rate
from utils.exceptions import ValidationFailed

class TaxRateInput(BaseModel):
    # Clients send a percentage ("22"); the stored value is the fraction (0.22)
    tax_rate: Optional[Decimal] = None

    @field_validator("tax_rate", mode="before")
    @classmethod
    def percentage_to_fraction(cls, value):
        try:
            return normalize_tax_rate(value)
        except ValidationFailed as exc:
            raise ValueError(exc.errors["tax_rate"][0])
