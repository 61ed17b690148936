"""
Base model shared by all relsub models.
"""

from pydantic import BaseModel, ConfigDict


class RelsubBaseModel(BaseModel):
    """
    Base model for relsub.
    Common configuration and validation.
    """

    model_config = ConfigDict(
        # Validate values on assignment
        validate_assignment=True,
        # Prevent extra fields
        extra="forbid",
        # Enum members stay members so identity checks on views work
        use_enum_values=False,
    )
