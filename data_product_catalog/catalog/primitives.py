"""
Common building blocks for catalog schemas.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class CatalogModel(BaseModel):
    """Base model for everything that crosses the API boundary.

    Fields are snake_case in Python and camelCase on the wire. Input accepts
    either spelling; output (FastAPI responses, ``to_api()``) uses camelCase.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )

    def to_api(self) -> dict:
        """Serialize to the JSON-ready camelCase shape used by the REST API."""
        return self.model_dump(mode="json", by_alias=True)
