"""
Shared pydantic base for OpenCode wire models.
"""

from pydantic import BaseModel, ConfigDict


class OpenCodeModel(BaseModel):
    """Ignores unknown sidecar fields and accepts field names or aliases."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_wire(self) -> dict:
        """Serialize using the sidecar's camel-case aliases."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
