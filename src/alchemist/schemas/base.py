# src/alchemist/schemas/base.py
from __future__ import annotations

from pydantic import BaseModel


class _StrictBaseModel(BaseModel):
    """
    @brief
    Base model enforcing strict defaults for data and rule contracts.

    @details
    Forbids unknown fields and allows population either by the Python
    attribute name or by the canonical (export) alias.
    """

    model_config = {
        "extra": "forbid",  # Reject unknown fields
        "populate_by_name": True,  # Allow population by field name
        "use_enum_values": True,  # Export raw enum values
    }
