# clinicstock/utils/pagination.py
from typing import List, Any
import math

from sqlalchemy.orm import Query


def paginate(
    query: Query,
    page: int = 1,
    size: int = 50,
    max_size: int = 500
) -> tuple[List[Any], dict]:
    """
    Pagina uma query SQLAlchemy

    Args:
        query: Query a paginar (já ordenada)
        page: Número da página (começa em 1)
        size: Itens por página
        max_size: Tamanho máximo permitido

    Returns:
        tuple: (items, metadata)
    """
    page = max(1, page)
    size = min(max(1, size), max_size)

    total = query.count()
    pages = math.ceil(total / size) if total else 0

    offset = (page - 1) * size
    items = query.offset(offset).limit(size).all()

    metadata = {
        "total": total,
        "page": page,
        "size": size,
        "pages": pages,
    }
    return items, metadata
