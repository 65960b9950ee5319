"""Pagination response header helpers."""

from fastapi import Response


def set_pagination_headers(
    response: Response,
    *,
    total_count: int,
    offset: int,
    limit: int,
) -> None:
    response.headers["X-Total-Count"] = str(total_count)
    if offset + limit < total_count:
        response.headers["X-Next-Offset"] = str(offset + limit)
