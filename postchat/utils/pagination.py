import math

MAX_PAGE_SIZE = 100

def normalize_page(page: int, limit: int) -> tuple[int, int]:
    """Đưa page/limit về khoảng hợp lệ: page >= 1, 1 <= limit <= MAX_PAGE_SIZE."""
    page = max(int(page or 1), 1)
    limit = min(max(int(limit or 10), 1), MAX_PAGE_SIZE)
    return page, limit

def page_meta(total: int, page: int, limit: int) -> dict:
    """Thông tin phân trang đi kèm một trang kết quả đã được cắt sẵn."""
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if total else 0,
    }

def paginate(items: list, page: int, limit: int) -> dict:
    """Cắt một trang từ danh sách đã sắp xếp và trả về kèm thông tin phân trang."""
    page, limit = normalize_page(page, limit)
    start = (page - 1) * limit
    return {"items": items[start:start + limit], **page_meta(len(items), page, limit)}
