"""
Shared schema types.

Money fields are Decimals inside the application and strings on the
wire, always with six fractional digits ("100.500000"), so clients never
see binary float rounding.
"""

from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer

from pocket_ledger.database import MICRO


Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: str(v.quantize(MICRO)), return_type=str, when_used="json"),
]
