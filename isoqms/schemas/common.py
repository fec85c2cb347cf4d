"""
Shared schema helpers.
"""
from pydantic import field_validator


def reject_null(*fields: str):
    """
    Validator for PATCH schemas: the listed fields may be omitted but not
    sent as an explicit null, since they map to NOT NULL columns.

    Usage inside a model body:
        check_not_null = reject_null("title", "status")
    """
    def check(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value

    return field_validator(*fields, mode="before")(classmethod(check))
