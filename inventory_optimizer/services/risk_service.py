"""
Stockout Risk Service

Compares each product's weighted MOQ with what is on hand, keeps the
shortfalls, ranks them and slices a page. Product names are attached only
to the page being returned, so the catalog lookup scales with page size and
not with the size of the product universe.

Author: TM3
Date: 2025-11-06
"""
import logging
import math
from datetime import date
from typing import List, Mapping, Optional, Protocol, Sequence, Tuple, TypeVar

from inventory_optimizer.core.config import settings
from inventory_optimizer.core.exceptions import InputValidationError, warn_data_integrity
from inventory_optimizer.domain.analytics import AtRiskEntry, Page
from inventory_optimizer.domain.product import Product
from inventory_optimizer.services.demand_forecasting_service import DemandStats

logger = logging.getLogger(__name__)

T = TypeVar("T")

PLACEHOLDER_NAME = "(unnamed)"


class Named(Protocol):
    name: str


def compute_gap(on_hand: float, weighted_moq: float) -> float:
    """Units missing to cover the weighted MOQ; never negative"""
    return max(0, weighted_moq - on_hand)


def detect_at_risk(
    stats: Mapping[str, DemandStats],
    on_hand: Mapping[str, float],
    last_sale: Optional[Mapping[str, Optional[date]]] = None
) -> List[AtRiskEntry]:
    """
    Rank products whose weighted MOQ exceeds on-hand stock.

    Args:
        stats: Demand stats per product (products sold in the window)
        on_hand: Units on hand per product (current inventory snapshot)
        last_sale: Optional last sale date per product

    Returns:
        Entries with gap > 0, sorted by gap descending, then product_id
        ascending. Names are left blank; see ``attach_names``.
    """
    product_ids = set(stats) | set(on_hand)
    entries = []
    for product_id in product_ids:
        product_stats = stats.get(product_id)
        moq = product_stats.weighted_moq if product_stats is not None else 0
        stock = on_hand.get(product_id, 0)
        gap = compute_gap(stock, moq)
        if gap <= 0:
            continue
        entries.append(AtRiskEntry(
            product_id=product_id,
            on_hand=stock,
            weighted_moq=moq,
            gap=gap,
            last_sale_date=(last_sale or {}).get(product_id),
        ))

    entries.sort(key=lambda e: (-e.gap, e.product_id))
    logger.debug(f"{len(entries)} of {len(product_ids)} products at risk")
    return entries


def validate_page(page, page_size, max_page_size: Optional[int] = None) -> Tuple[int, int]:
    """
    Validate page parameters before any retrieval.

    Raises:
        InputValidationError: page < 1, page_size outside 1..max_page_size, or non-integers
    """
    limit = max_page_size if max_page_size is not None else settings.MAX_PAGE_SIZE
    try:
        page_number = int(page)
        size = int(page_size)
    except (TypeError, ValueError):
        raise InputValidationError("page", f"page and page_size must be integers, got {page!r}, {page_size!r}")

    if page_number < 1:
        raise InputValidationError("page", f"must be >= 1, got {page_number}")
    if not 1 <= size <= limit:
        raise InputValidationError("page_size", f"must be between 1 and {limit}, got {size}")
    return page_number, size


def paginate(items: Sequence[T], page: int, page_size: int) -> Page:
    """Slice one page of an already sorted list; pages past the end are empty"""
    total = len(items)
    start = (page - 1) * page_size
    return Page(
        page=page,
        page_size=page_size,
        total=total,
        pages=max(1, math.ceil(total / page_size)),
        items=list(items[start:start + page_size]),
    )


def display_name(entity_id: str, catalog: Mapping[str, Named], entity: str = "product") -> str:
    """Catalog name, or a placeholder (with a DataIntegrityWarning) if missing or blank"""
    record = catalog.get(entity_id)
    if record is None:
        warn_data_integrity(f"{entity} {entity_id} not found in catalog")
        return PLACEHOLDER_NAME
    if not (record.name or "").strip():
        warn_data_integrity(f"{entity} {entity_id} has a blank name")
        return PLACEHOLDER_NAME
    return record.name


def attach_names(page: Page, products: Mapping[str, Product]) -> Page:
    """
    Name the entries of one page.

    ``products`` only needs to hold the ids on this page; callers look them
    up after pagination.
    """
    if not page.items:
        return page

    named = [
        entry.model_copy(update={"product_name": display_name(entry.product_id, products)})
        for entry in page.items
    ]
    return page.model_copy(update={"items": named})
