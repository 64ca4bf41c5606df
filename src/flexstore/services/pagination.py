def resolve_page(
    page: int | None,
    limit: int | None,
    *,
    default_limit: int,
    max_limit: int,
) -> tuple[int, int]:
    """
    Normalize caller pagination.

    Unset or non-positive `page` becomes 1 and unset or non-positive `limit`
    becomes `default_limit`; `limit` is capped at `max_limit`.
    """
    if not page or page < 1:
        page = 1
    if not limit or limit < 1:
        limit = default_limit
    return page, min(limit, max_limit)
