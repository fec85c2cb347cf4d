"""
Record Code Generation

Human-readable record codes such as NC-2026-007 or SUP-007.

The sequence is the tenant's current row count plus one. Two concurrent
creates can compute the same code; codes are labels, not keys.
"""
from datetime import datetime
from typing import Optional

NONCONFORMITY = "NC"
ACTION_PLAN = "AP"
RISK = "RSK"
AUDIT = "AUD"
DOCUMENT = "DOC"
POLICY = "POL"
SUPPLIER = "SUP"


def generate_code(prefix: str, sequence: int, with_year: bool = True, year: Optional[int] = None) -> str:
    """
    Build a record code.

    >>> generate_code("NC", 7, year=2026)
    'NC-2026-007'
    >>> generate_code("SUP", 7, with_year=False)
    'SUP-007'
    """
    if sequence < 1:
        raise ValueError("sequence must be a positive integer")

    number = str(sequence).zfill(3)
    if not with_year:
        return f"{prefix}-{number}"
    return f"{prefix}-{year or datetime.utcnow().year}-{number}"


def next_code(db, model, prefix: str, with_year: bool = True) -> str:
    """
    Next code for model within the tenant bound to db.

    db is a TenantScopedSession, so the count only sees the current tenant.
    """
    return generate_code(prefix, db.count(model) + 1, with_year=with_year)
