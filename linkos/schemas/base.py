"""
Base schema configuration and shared response shapes.
"""

from pydantic import BaseModel, ConfigDict


def blank_to_none(value: str | None) -> str | None:
    """Blank or whitespace-only strings carry no id."""
    if value is None:
        return None
    return value.strip() or None


class BaseSchema(BaseModel):
    """Base schema; reads ORM records through their attributes."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class PageMeta(BaseSchema):
    """Pagination fields shared by list responses."""

    total: int
    page: int
    per_page: int
    pages: int

    @staticmethod
    def offset(page: int, per_page: int) -> int:
        return (page - 1) * per_page

    @staticmethod
    def page_count(total: int, per_page: int) -> int:
        return (total + per_page - 1) // per_page if per_page > 0 else 0


class MessageResponse(BaseSchema):
    """Confirmation for operations with nothing else to return."""

    message: str
    success: bool = True
