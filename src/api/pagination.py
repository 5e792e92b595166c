from math import ceil
from typing import Any
from urllib.parse import urlencode, urlsplit, urlunsplit, parse_qsl

from django.db.models import QuerySet


def _positive_int(raw: Any, default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def _page_url(request, page: int, page_param: str) -> str:
    scheme, netloc, path, query, frag = urlsplit(request.build_absolute_uri())
    params = dict(parse_qsl(query, keep_blank_values=True))
    params[page_param] = str(page)
    return urlunsplit((scheme, netloc, path, urlencode(params), frag))


class Paginator:
    """
    Page-number pagination for controllers returning the response envelope.

        items, meta = Paginator(default_page_size=20).paginate_queryset(qs, request)
        return self.create_response(data={"items": [...], "pagination": meta})
    """

    def __init__(self, *, page_param: str = "page", page_size_param: str = "page_size",
                 default_page_size: int = 20, max_page_size: int = 100):
        self.page_param = page_param
        self.page_size_param = page_size_param
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def paginate_queryset(self, data: Any, request) -> tuple[list[Any], dict[str, Any]]:
        page = _positive_int(request.GET.get(self.page_param), 1)
        size = min(self.max_page_size, _positive_int(request.GET.get(self.page_size_param), self.default_page_size))

        total = data.count() if isinstance(data, QuerySet) else len(data)
        total_pages = max(1, ceil(total / size))
        start = (page - 1) * size
        page_items = list(data[start:start + size])

        has_next = page < total_pages
        has_prev = page > 1
        return page_items, {
            "count": total,
            "page": page,
            "page_size": size,
            "total_pages": total_pages,
            "has_next": has_next,
            "has_prev": has_prev,
            "next_url": _page_url(request, page + 1, self.page_param) if has_next else None,
            "prev_url": _page_url(request, page - 1, self.page_param) if has_prev else None,
        }
