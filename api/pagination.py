from typing import Tuple

from flask import request, abort

MAX_LIMIT = 100
MAX_PAGE = 10 ** 6


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "20"))
    except ValueError:
        abort(400, description="page and limit must be integers")
    if page > MAX_PAGE:
        abort(400, description=f"page must be at most {MAX_PAGE}")
    page = max(page, 1)
    limit = max(1, min(limit, MAX_LIMIT))
    return page, limit


def contains_pattern(text: str) -> str:
    """Case-insensitive LIKE pattern matching `text` literally; pair with escape="\\"."""
    escaped = text.strip().lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def parse_sort(columns: dict, default: str):
    """
    ?sort=<field> or ?sort=-<field>; `columns` maps allowed field names to
    model columns.
    """
    sort = request.args.get("sort", default)
    desc = sort.startswith("-")
    key = sort[1:] if desc else sort
    if key not in columns:
        abort(400, description=f"Unsupported sort field. Allowed: {', '.join(sorted(columns))}")
    column = columns[key]
    return (column.desc() if desc else column.asc(),)


def paginate(query, order_by):
    page, limit = parse_pagination()
    total = query.count()
    rows = query.order_by(*order_by).offset((page - 1) * limit).limit(limit).all()
    return rows, {"page": page, "limit": limit, "total": total}
