"""
Analytics Service

Orchestrates one overview request end to end:

    validate parameters -> resolve window -> concurrent retrievals (barrier)
    -> cost timelines -> demand matrix / risk / profitability -> names -> dict

Nothing is cached between calls; every request works only on what it
retrieved. Independent retrievals are issued concurrently with
asyncio.gather, and any retrieval failure aborts the request as a whole.

Author: TM3
Date: 2025-11-08
"""
import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence

from inventory_optimizer.core.exceptions import InputValidationError, NotFoundError
from inventory_optimizer.domain.analytics import TopProductEntry
from inventory_optimizer.domain.product import PriceRecord
from inventory_optimizer.domain.sales import SaleRecord
from inventory_optimizer.repositories.base import unique_keys
from inventory_optimizer.repositories.chunked_fetcher import ChunkedFetcher
from inventory_optimizer.repositories.customer_repository import CustomerRepository
from inventory_optimizer.repositories.inventory_repository import InventoryRepository
from inventory_optimizer.repositories.price_repository import PriceRepository
from inventory_optimizer.repositories.product_repository import ProductRepository
from inventory_optimizer.repositories.sales_repository import SalesRepository
from inventory_optimizer.repositories.store import TabularStore
from inventory_optimizer.services.cost_timeline import CostTimelineIndex
from inventory_optimizer.services.demand_forecasting_service import MonthlyDemandMatrix, seasonality
from inventory_optimizer.services.profitability_service import (
    HistoricalProfit,
    display_profit,
    historical_profit,
    historical_profit_by_product,
    rank_products,
    rank_top_products,
)
from inventory_optimizer.services.risk_service import (
    attach_names,
    detect_at_risk,
    display_name,
    paginate,
    validate_page,
)
from inventory_optimizer.services.time_window import (
    ReportingMode,
    TimeWindow,
    resolve_window,
    trailing_window,
    utc_today,
)

logger = logging.getLogger(__name__)

MAX_TOP = 100
MAX_SUMMARY_LIMIT = 200
PRODUCT_ORDERS = ("gp_desc", "gp_asc")
EXPORT_ORDERS = ("all", "best", "worst")


def _validate_top(top) -> int:
    try:
        value = int(top)
    except (TypeError, ValueError):
        raise InputValidationError("top", f"not an integer: {top!r}")
    if not 1 <= value <= MAX_TOP:
        raise InputValidationError("top", f"must be between 1 and {MAX_TOP}, got {value}")
    return value


def _validate_id(field: str, value) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise InputValidationError(field, "must not be empty")
    return text


@dataclass(frozen=True)
class _ProfitContext:
    """Trailing-12 sales costed per product, shared by list/export views"""
    window: TimeWindow
    sales: List[SaleRecord]
    profits: Dict[str, HistoricalProfit]


class AnalyticsService:
    """
    Entry point for dashboard, product and customer analytics.

    A store and fetcher can be injected (tests use an in-memory store);
    by default the Supabase-backed store is used.
    """

    def __init__(self, store: Optional[TabularStore] = None, fetcher: Optional[ChunkedFetcher] = None):
        store = store or TabularStore()
        fetcher = fetcher or ChunkedFetcher()
        self.products = ProductRepository(store, fetcher)
        self.customers = CustomerRepository(store, fetcher)
        self.sales = SalesRepository(store, fetcher)
        self.prices = PriceRepository(store, fetcher)
        self.inventory = InventoryRepository(store, fetcher)

    # =========================================================================
    # Shared steps
    # =========================================================================

    async def _cost_index(self, sales: Sequence[SaleRecord], up_to: date) -> CostTimelineIndex:
        """Price history of every product sold, up to ``up_to``"""
        product_ids = unique_keys(s.product_id for s in sales)
        prices: List[PriceRecord] = await self.prices.find_for_products(product_ids, effective_on_or_before=up_to)
        return CostTimelineIndex(prices)

    async def _trailing_profits(self, as_of: Optional[date]) -> _ProfitContext:
        window = trailing_window(as_of)
        sales = await self.sales.find_in_window(window.start_date, window.end_date)
        costs = await self._cost_index(sales, window.end_date)
        return _ProfitContext(window=window, sales=sales, profits=historical_profit_by_product(sales, costs))

    @staticmethod
    def _name_top_products(entries: List[TopProductEntry], catalog) -> List[dict]:
        return [
            entry.model_copy(update={"product_name": display_name(entry.product_id, catalog)}).model_dump(mode="json")
            for entry in entries
        ]

    # =========================================================================
    # Dashboard
    # =========================================================================

    async def compute_dashboard_overview(
        self,
        as_of: Optional[date] = None,
        page: int = 1,
        page_size: int = 20,
        top: int = 20
    ) -> dict:
        """
        Catalog totals, paginated at-risk list and top products over the
        trailing twelve months.

        Returns:
            {
                "window": {...},
                "totals": {"products", "customers", "sales_12m_qty", "sales_12m_revenue"},
                "at_risk": {"page", "page_size", "total", "pages", "items": [...]},
                "top_products": [{"product_id", "product_name", "qty", "revenue", "gross_profit"}]
            }
        """
        page, page_size = validate_page(page, page_size)
        top = _validate_top(top)
        window = trailing_window(as_of)

        products_count, customers_count, sales, inventory = await asyncio.gather(
            self.products.count(),
            self.customers.count(),
            self.sales.find_in_window(window.start_date, window.end_date),
            self.inventory.find_all(),
        )
        costs = await self._cost_index(sales, window.end_date)

        # Demand and risk
        matrix = MonthlyDemandMatrix.from_sales(window, sales)
        on_hand = {product_id: snapshot.on_hand for product_id, snapshot in inventory.items()}
        last_sale = {product_id: matrix.last_sale_date(product_id) for product_id in matrix.product_ids}
        at_risk = detect_at_risk(matrix.all_stats(), on_hand, last_sale)
        at_risk_page = paginate(at_risk, page, page_size)

        # Profitability (historical, cost at sale date)
        profits = historical_profit_by_product(sales, costs)
        top_products = rank_top_products(profits, top)
        totals = historical_profit(sales, costs)

        # Names only for what is returned
        catalog = await self.products.find_by_ids(
            [e.product_id for e in at_risk_page.items] + [t.product_id for t in top_products]
        )
        at_risk_page = attach_names(at_risk_page, catalog)

        logger.info(
            f"Dashboard overview {window.start_date}..{window.end_date}: "
            f"{len(sales)} sales, {at_risk_page.total} at risk"
        )
        return {
            "window": window.to_dict(),
            "totals": {
                "products": products_count,
                "customers": customers_count,
                "sales_12m_qty": totals.total_qty,
                "sales_12m_revenue": totals.total_revenue,
            },
            "at_risk": at_risk_page.model_dump(mode="json"),
            "top_products": self._name_top_products(top_products, catalog),
        }

    # =========================================================================
    # Product
    # =========================================================================

    async def compute_product_overview(
        self,
        product_id: str,
        mode: ReportingMode = ReportingMode.TRAILING_12,
        year: Optional[int] = None,
        as_of: Optional[date] = None,
        top: int = 5
    ) -> dict:
        """
        Monthly series, demand stats, pricing, both profit figures, inventory
        and top customers of one product.

        ``monthly`` and ``profit_window`` follow the requested window;
        ``stats12`` and ``seasonality`` always use the trailing twelve months.
        """
        product_id = _validate_id("product_id", product_id)
        top = _validate_top(top)
        window = resolve_window(mode, year, as_of)
        trailing = trailing_window(as_of)
        today = as_of or utc_today()

        same_window = window.start_date == trailing.start_date and window.end_date == trailing.end_date
        fetches = [
            self.products.find_by_id(product_id),
            self.inventory.find_by_product(product_id),
            self.prices.find_for_products([product_id], effective_on_or_before=max(window.end_date, today)),
            self.sales.find_in_window(window.start_date, window.end_date, product_id=product_id),
        ]
        if not same_window:
            fetches.append(self.sales.find_in_window(trailing.start_date, trailing.end_date, product_id=product_id))

        results = await asyncio.gather(*fetches)
        product, snapshot, prices, window_sales = results[:4]
        trailing_sales = window_sales if same_window else results[4]

        if product is None:
            raise NotFoundError("product", product_id)

        costs = CostTimelineIndex(prices)

        window_matrix = MonthlyDemandMatrix.from_sales(window, window_sales, [product_id])
        trailing_matrix = (
            window_matrix if same_window
            else MonthlyDemandMatrix.from_sales(trailing, trailing_sales, [product_id])
        )
        trailing_buckets = trailing_matrix.buckets(product_id)

        current = costs.current(product_id, today)
        current_cost = current.unit_cost if current is not None else None
        current_price = current.unit_price if current is not None else None

        historical = historical_profit(window_sales, costs)
        display = display_profit(window_sales, current_cost, current_price)

        customers = await self._top_customers(window_sales, top)

        return {
            "product": {"id": product.id, "name": display_name(product.id, {product.id: product})},
            "window": window.to_dict(),
            "monthly": [b.to_dict() for b in window_matrix.buckets(product_id)],
            "seasonality": seasonality(trailing_buckets),
            "stats12": trailing_matrix.stats(product_id).to_dict(),
            "pricing": {
                "average_selling_price": display.average_selling_price,
                "current_unit_cost": current_cost if current_cost is not None else 0.0,
                "current_unit_price": current_price if current_price is not None else 0.0,
            },
            "profit_window": {
                "historical": historical.to_dict(),
                "display": display.to_dict(),
            },
            "inventory": snapshot.to_dict() if snapshot is not None else {"on_hand": 0, "backorder": 0},
            "customers": customers,
        }

    async def _top_customers(self, sales: Sequence[SaleRecord], top: int) -> List[dict]:
        qty: Dict[str, float] = defaultdict(float)
        revenue: Dict[str, float] = defaultdict(float)
        for sale in sales:
            if not sale.customer_id:
                continue
            qty[sale.customer_id] += sale.quantity
            revenue[sale.customer_id] += sale.revenue

        ranked = sorted(qty, key=lambda cid: (-qty[cid], cid))[:top]
        catalog = await self.customers.find_by_ids(ranked)
        return [
            {
                "customer_id": cid,
                "customer_name": display_name(cid, catalog, entity="customer"),
                "qty": qty[cid],
                "revenue": revenue[cid],
            }
            for cid in ranked
        ]

    # =========================================================================
    # Customer
    # =========================================================================

    async def compute_customer_overview(
        self,
        customer_id: str,
        mode: ReportingMode = ReportingMode.TRAILING_12,
        year: Optional[int] = None,
        as_of: Optional[date] = None
    ) -> dict:
        """
        Lifetime summary, monthly totals over the requested window, and the
        products the customer bought (lifetime, by quantity).
        """
        customer_id = _validate_id("customer_id", customer_id)
        window = resolve_window(mode, year, as_of)

        customer, sales = await asyncio.gather(
            self.customers.find_by_id(customer_id),
            self.sales.find_in_window(customer_id=customer_id),
        )
        if customer is None:
            raise NotFoundError("customer", customer_id)

        qty: Dict[str, float] = defaultdict(float)
        revenue: Dict[str, float] = defaultdict(float)
        for sale in sales:
            qty[sale.product_id] += sale.quantity
            revenue[sale.product_id] += sale.revenue

        dates = [s.date for s in sales]
        summary = {
            "total_qty": sum(qty.values()),
            "total_revenue": sum(revenue.values()),
            "distinct_products": len(qty),
            "first_date": min(dates).isoformat() if dates else None,
            "last_date": max(dates).isoformat() if dates else None,
        }

        matrix = MonthlyDemandMatrix.from_sales(window, sales)
        monthly = [
            {"month": key.isoformat(), "total_qty": total}
            for key, total in zip(window.month_keys, matrix.monthly_totals())
        ]

        ranked = sorted(qty, key=lambda pid: (-qty[pid], pid))
        catalog = await self.products.find_by_ids(ranked)
        products = [
            {
                "product_id": pid,
                "product_name": display_name(pid, catalog),
                "qty": qty[pid],
                "revenue": revenue[pid],
            }
            for pid in ranked
        ]

        return {
            "customer": {"id": customer.id, "name": display_name(customer.id, {customer.id: customer}, "customer")},
            "window": window.to_dict(),
            "summary": summary,
            "monthly": monthly,
            "products": products,
        }

    async def get_customer(self, customer_id: str) -> dict:
        """Basic customer record {id, name}"""
        customer_id = _validate_id("customer_id", customer_id)
        customer = await self.customers.find_by_id(customer_id)
        if customer is None:
            raise NotFoundError("customer", customer_id)
        return customer.model_dump()

    # =========================================================================
    # Sales summary
    # =========================================================================

    async def sales_summary(
        self,
        limit=20,
        mode: ReportingMode = ReportingMode.TRAILING_12,
        year: Optional[int] = None,
        as_of: Optional[date] = None
    ) -> dict:
        """
        Monthly quantity totals across all products, plus the best sellers
        by quantity over the same window.

        ``limit`` is clamped to 1..200 rather than rejected.

        Returns:
            {
                "window": {...},
                "monthly_totals": [{"month", "total_quantity"}],
                "top_products": [{"product_id", "product_name", "total_quantity"}]
            }
        """
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            raise InputValidationError("limit", f"not an integer: {limit!r}")
        limit = max(1, min(limit, MAX_SUMMARY_LIMIT))
        window = resolve_window(mode, year, as_of)

        sales = await self.sales.find_in_window(window.start_date, window.end_date)
        matrix = MonthlyDemandMatrix.from_sales(window, sales)

        qty_by_product = dict(zip(matrix.product_ids, matrix.quantities.sum(axis=1)))
        ranked = sorted(qty_by_product, key=lambda pid: (-qty_by_product[pid], pid))[:limit]
        catalog = await self.products.find_by_ids(ranked)

        logger.info(f"Sales summary {window.start_date}..{window.end_date}: {len(sales)} sales, top {len(ranked)}")
        return {
            "window": window.to_dict(),
            "monthly_totals": [
                {"month": key.isoformat(), "total_quantity": total}
                for key, total in zip(window.month_keys, matrix.monthly_totals())
            ],
            "top_products": [
                {
                    "product_id": pid,
                    "product_name": display_name(pid, catalog),
                    "total_quantity": float(qty_by_product[pid]),
                }
                for pid in ranked
            ],
        }

    # =========================================================================
    # Lists and exports
    # =========================================================================

    async def list_products(
        self,
        page: int = 1,
        page_size: int = 20,
        search: Optional[str] = None,
        order: str = "gp_desc",
        as_of: Optional[date] = None
    ) -> dict:
        """Catalog ranked by trailing-12 historical gross profit, paginated"""
        page, page_size = validate_page(page, page_size)
        if order not in PRODUCT_ORDERS:
            raise InputValidationError("order", f"expected one of {PRODUCT_ORDERS}, got {order!r}")
        search = (search or "").strip() or None

        catalog, context = await asyncio.gather(
            self.products.find_all(search=search),
            self._trailing_profits(as_of),
        )
        profits = {p.id: context.profits.get(p.id, HistoricalProfit()) for p in catalog}
        ranked = rank_products(profits, descending=(order == "gp_desc"))
        result = paginate(ranked, page, page_size)

        names = {p.id: p for p in catalog}
        return {
            "page": result.page,
            "page_size": result.page_size,
            "total": result.total,
            "pages": result.pages,
            "items": [
                {
                    "id": entry.product_id,
                    "name": display_name(entry.product_id, names),
                    "qty_12m": entry.qty,
                    "revenue_12m": entry.revenue,
                    "gross_profit_12m": entry.gross_profit,
                }
                for entry in result.items
            ],
        }

    async def list_customers(self, page: int = 1, page_size: int = 15, search: Optional[str] = None) -> dict:
        """Customers ordered by name, paginated in the store"""
        page, page_size = validate_page(page, page_size)
        search = (search or "").strip() or None

        customers, total = await self.customers.find_page(search, limit=page_size, offset=(page - 1) * page_size)
        return {
            "page": page,
            "page_size": page_size,
            "total": total,
            "items": [c.model_dump() for c in customers],
        }

    async def export_products(self, order: str = "all", as_of: Optional[date] = None) -> dict:
        """
        Full product list with trailing-12 figures and stock.

        ``all`` is ordered by name, ``best``/``worst`` by gross profit.
        """
        if order not in EXPORT_ORDERS:
            raise InputValidationError("order", f"expected one of {EXPORT_ORDERS}, got {order!r}")

        catalog, context, inventory = await asyncio.gather(
            self.products.find_all(),
            self._trailing_profits(as_of),
            self.inventory.find_all(),
        )
        profits = {p.id: context.profits.get(p.id, HistoricalProfit()) for p in catalog}
        if order == "all":
            ordered_ids = [p.id for p in catalog]
        else:
            ordered_ids = [e.product_id for e in rank_products(profits, descending=(order == "best"))]

        names = {p.id: p for p in catalog}
        items = []
        for product_id in ordered_ids:
            profit = profits[product_id]
            snapshot = inventory.get(product_id)
            items.append({
                "id": product_id,
                "name": display_name(product_id, names),
                "qty_12m": profit.total_qty,
                "revenue_12m": profit.total_revenue,
                "gross_profit_12m": profit.gross_profit,
                "on_hand": snapshot.on_hand if snapshot is not None else 0,
            })
        return {"items": items}

    async def export_at_risk(self, as_of: Optional[date] = None) -> dict:
        """Unpaginated at-risk list, sorted by gap"""
        window = trailing_window(as_of)
        sales, inventory = await asyncio.gather(
            self.sales.find_in_window(window.start_date, window.end_date),
            self.inventory.find_all(),
        )
        matrix = MonthlyDemandMatrix.from_sales(window, sales)
        on_hand = {product_id: snapshot.on_hand for product_id, snapshot in inventory.items()}
        entries = detect_at_risk(matrix.all_stats(), on_hand)

        catalog = await self.products.find_by_ids(e.product_id for e in entries)
        return {
            "items": [
                {
                    "id": e.product_id,
                    "name": display_name(e.product_id, catalog),
                    "on_hand": e.on_hand,
                    "weighted_moq": e.weighted_moq,
                    "gap": e.gap,
                }
                for e in entries
            ]
        }
