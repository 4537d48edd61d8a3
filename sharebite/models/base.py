"""
Base data models
Common model base classes and fields
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class BaseEntity(BaseModel):
    """Base entity model; documents are stored with camelCase keys"""

    model_config = ConfigDict(
        from_attributes=True,
        use_enum_values=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> Dict[str, Any]:
        """Serialize for the document store; None fields are dropped"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]):
        return cls.model_validate(doc)


class TimestampMixin(BaseModel):
    """Timestamp mixin"""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
