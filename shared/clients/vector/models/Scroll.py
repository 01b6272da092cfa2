from pydantic import BaseModel


class ScrollPage(BaseModel):
    """One page of a point scroll.

    Attributes:
        points:           Point dicts as returned by the backend (id, payload).
        next_page_offset: Cursor for the next page, or None on the last page.
                          Point ids may be integers or UUID strings.
    """

    points: list[dict]
    next_page_offset: str | int | None = None
