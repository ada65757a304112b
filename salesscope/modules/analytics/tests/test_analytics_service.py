# salesscope/modules/analytics/tests/test_analytics_service.py

from datetime import date, datetime

import pytest
from pydantic import TypeAdapter
from sqlalchemy import delete

from salesscope.core.exceptions import NotFoundError
from salesscope.modules.analytics.schemas.analytics_schemas import (
    AnalyticsFilter,
    KPIResponse,
)
from salesscope.modules.analytics.services.analytics_service import (
    AnalyticsService,
    serialize_result,
)
from salesscope.modules.datasets.models.dataset_models import Dataset, DatasetStatus, SalesRecord

TWO_ROWS_CSV = (
    "date,revenue,quantity,category\n"
    "2024-01-01,100,2,A\n"
    "2024-01-02,50,1,B\n"
)

CATALOG_CSV = (
    "date,revenue,quantity,product,category\n"
    "2024-01-01,10,1,P1,Toys\n"
    "2024-01-05,30,3,P2,Toys\n"
    "2024-01-09,20,2,P3,Books\n"
    "2024-01-10,5,1,P2,\n"
    "2024-01-12 15:30:00,15,1,,Books\n"
)


@pytest.fixture(params=[True, False], ids=["sql-aggregation", "in-process-aggregation"])
def service(request, db_session, cache, settings):
    settings.analytics_store_aggregation = request.param
    return AnalyticsService(db_session, cache, settings)


class TestKPIs:

    async def test_two_row_example(self, service, organization, ingest_csv):
        dataset = await ingest_csv(TWO_ROWS_CSV)

        kpis = await service.compute_kpis(dataset.id, organization.id, AnalyticsFilter())

        assert kpis == KPIResponse(
            total_revenue=150.0, average_revenue=75.0, total_sales=2, total_quantity=3
        )

    async def test_no_matching_records_gives_zeros(self, service, organization, ingest_csv):
        dataset = await ingest_csv(TWO_ROWS_CSV)

        kpis = await service.compute_kpis(
            dataset.id, organization.id, AnalyticsFilter(category="missing")
        )

        assert kpis == KPIResponse(
            total_revenue=0.0, average_revenue=0.0, total_sales=0, total_quantity=0
        )

    async def test_end_date_includes_the_whole_day(self, service, organization, ingest_csv):
        dataset = await ingest_csv(CATALOG_CSV)

        kpis = await service.compute_kpis(
            dataset.id,
            organization.id,
            AnalyticsFilter(startDate="2024-01-09", endDate="2024-01-12"),
        )

        # 2024-01-12 15:30 is inside an endDate of 2024-01-12
        assert kpis.total_sales == 3
        assert kpis.total_revenue == 40.0

    async def test_category_and_product_filters_are_exact(self, service, organization, ingest_csv):
        dataset = await ingest_csv(CATALOG_CSV)

        by_category = await service.compute_kpis(dataset.id, organization.id, AnalyticsFilter(category="Toys"))
        by_product = await service.compute_kpis(dataset.id, organization.id, AnalyticsFilter(product="P2"))
        wrong_case = await service.compute_kpis(dataset.id, organization.id, AnalyticsFilter(category="toys"))

        assert by_category.total_revenue == 40.0
        assert by_product.total_quantity == 4
        assert wrong_case.total_sales == 0

    async def test_second_call_is_served_from_cache(self, service, db_session, organization, ingest_csv):
        dataset = await ingest_csv(TWO_ROWS_CSV)
        filters = AnalyticsFilter(startDate="2024-01-01")
        adapter = TypeAdapter(KPIResponse)

        first = await service.compute_kpis(dataset.id, organization.id, filters)
        # Remove the underlying rows; a cached result must not notice
        await db_session.execute(delete(SalesRecord).where(SalesRecord.dataset_id == dataset.id))
        await db_session.commit()
        second = await service.compute_kpis(dataset.id, organization.id, filters)

        assert serialize_result(adapter, first) == serialize_result(adapter, second)
        assert second.total_revenue == 150.0


class TestRevenueByDate:

    async def test_short_span_uses_day_buckets(self, service, organization, ingest_csv):
        dataset = await ingest_csv(TWO_ROWS_CSV)

        points = await service.compute_revenue_by_date(dataset.id, organization.id, AnalyticsFilter())

        assert [(p.bucket_key, p.revenue, p.quantity) for p in points] == [
            ("2024-01-01", 100.0, 2),
            ("2024-01-02", 50.0, 1),
        ]

    async def test_granularity_follows_filtered_span(self, service, organization, ingest_csv):
        dataset = await ingest_csv(
            "date,revenue\n"
            "2024-01-15,10\n"
            "2024-03-20,20\n"
            "2024-03-22,5\n"
            "2024-08-01,40\n"
        )

        full = await service.compute_revenue_by_date(dataset.id, organization.id, AnalyticsFilter())
        narrowed = await service.compute_revenue_by_date(
            dataset.id,
            organization.id,
            AnalyticsFilter(startDate="2024-03-01", endDate="2024-03-31"),
        )

        assert [p.bucket_key for p in full] == ["2024-01", "2024-03", "2024-08"]
        assert full[1].revenue == 25.0
        assert [p.bucket_key for p in narrowed] == ["2024-03-20", "2024-03-22"]

    async def test_empty_result(self, service, organization, ingest_csv):
        dataset = await ingest_csv(TWO_ROWS_CSV)

        points = await service.compute_revenue_by_date(
            dataset.id, organization.id, AnalyticsFilter(startDate="2030-01-01")
        )

        assert points == []


class TestRankings:

    async def test_revenue_by_category(self, service, organization, ingest_csv):
        dataset = await ingest_csv(CATALOG_CSV)

        items = await service.compute_revenue_by_category(dataset.id, organization.id, AnalyticsFilter())

        assert [(i.category, i.revenue, i.count) for i in items] == [
            ("Toys", 40.0, 2),
            ("Books", 35.0, 2),
        ]

    async def test_category_sum_never_exceeds_total(self, service, organization, ingest_csv):
        dataset = await ingest_csv(CATALOG_CSV)

        for filters in (AnalyticsFilter(), AnalyticsFilter(product="P2"), AnalyticsFilter(endDate="2024-01-05")):
            items = await service.compute_revenue_by_category(dataset.id, organization.id, filters)
            kpis = await service.compute_kpis(dataset.id, organization.id, filters)
            assert sum(i.revenue for i in items) <= kpis.total_revenue

    async def test_category_sum_equals_total_without_blank_categories(self, service, organization, ingest_csv):
        dataset = await ingest_csv(TWO_ROWS_CSV)

        items = await service.compute_revenue_by_category(dataset.id, organization.id, AnalyticsFilter())
        kpis = await service.compute_kpis(dataset.id, organization.id, AnalyticsFilter())

        assert sum(i.revenue for i in items) == kpis.total_revenue

    async def test_revenue_by_product_limit(self, service, organization, ingest_csv):
        dataset = await ingest_csv(
            "date,revenue,product\n"
            "2024-01-01,10,Alpha\n"
            "2024-01-02,30,Beta\n"
            "2024-01-03,20,Gamma\n"
        )

        items = await service.compute_revenue_by_product(
            dataset.id, organization.id, AnalyticsFilter(), limit=1
        )

        assert len(items) == 1
        assert items[0].product == "Beta"
        assert items[0].revenue == 30.0

    async def test_revenue_by_product_excludes_blank_products(self, service, organization, ingest_csv):
        dataset = await ingest_csv(CATALOG_CSV)

        items = await service.compute_revenue_by_product(dataset.id, organization.id, AnalyticsFilter())

        assert [(i.product, i.revenue, i.quantity) for i in items] == [
            ("P2", 35.0, 4),
            ("P3", 20.0, 2),
            ("P1", 10.0, 1),
        ]

    async def test_product_limit_is_part_of_cache_key(self, service, organization, ingest_csv):
        dataset = await ingest_csv(CATALOG_CSV)

        top_one = await service.compute_revenue_by_product(dataset.id, organization.id, AnalyticsFilter(), limit=1)
        top_two = await service.compute_revenue_by_product(dataset.id, organization.id, AnalyticsFilter(), limit=2)

        assert len(top_one) == 1
        assert len(top_two) == 2

    async def test_invalid_limit(self, service, organization, ingest_csv):
        dataset = await ingest_csv(CATALOG_CSV)

        with pytest.raises(ValueError):
            await service.compute_revenue_by_product(dataset.id, organization.id, AnalyticsFilter(), limit=0)

    async def test_available_filters(self, service, organization, ingest_csv):
        dataset = await ingest_csv(CATALOG_CSV)

        available = await service.list_available_filters(dataset.id, organization.id)

        assert available.categories == ["Books", "Toys"]
        assert available.products == ["P1", "P2", "P3"]


class TestTenantIsolation:

    @pytest.mark.parametrize("operation", [
        "compute_kpis",
        "compute_revenue_by_date",
        "compute_revenue_by_category",
        "compute_revenue_by_product",
    ])
    async def test_foreign_dataset_not_found(
        self, service, cache, organization, other_organization, ingest_csv, operation
    ):
        dataset = await ingest_csv(TWO_ROWS_CSV)
        await getattr(service, operation)(dataset.id, organization.id, AnalyticsFilter())

        with pytest.raises(NotFoundError):
            await getattr(service, operation)(dataset.id, other_organization.id, AnalyticsFilter())

    async def test_cached_result_not_served_to_foreign_caller(
        self, service, cache, organization, other_organization, ingest_csv
    ):
        dataset = await ingest_csv(TWO_ROWS_CSV)
        await service.compute_kpis(dataset.id, organization.id, AnalyticsFilter())
        assert len(cache._cache) == 1

        with pytest.raises(NotFoundError):
            await service.compute_kpis(dataset.id, other_organization.id, AnalyticsFilter())

    async def test_foreign_caller_caches_nothing(self, service, cache, other_organization, ingest_csv):
        dataset = await ingest_csv(TWO_ROWS_CSV)

        with pytest.raises(NotFoundError):
            await service.compute_kpis(dataset.id, other_organization.id, AnalyticsFilter())

        assert cache._cache == {}

    async def test_foreign_filters_not_found(self, service, other_organization, ingest_csv):
        dataset = await ingest_csv(TWO_ROWS_CSV)

        with pytest.raises(NotFoundError):
            await service.list_available_filters(dataset.id, other_organization.id)


DASHBOARD_CSV = (
    "date,revenue,quantity\n"
    "2024-06-28,100,2\n"
    "2024-06-10,50,3\n"
    "2024-01-01,10,1\n"
)


class TestDashboard:

    async def test_overview(self, service, db_session, organization, other_organization, ingest_csv):
        await ingest_csv(DASHBOARD_CSV)
        await ingest_csv(TWO_ROWS_CSV, organization_id=other_organization.id)
        db_session.add(Dataset(
            organization_id=organization.id,
            name="broken",
            file_name="broken.csv",
            file_size=10,
            row_count=5,
            columns=[],
            status=DatasetStatus.FAILED,
        ))
        await db_session.commit()

        overview = await service.compute_overview(organization.id, now=datetime(2024, 6, 30, 12))

        assert overview.total_revenue == 160.0
        assert overview.total_sales == 6
        assert overview.total_datasets == 2
        assert overview.datasets_ready == 1
        assert overview.date_range.earliest == datetime(2024, 1, 1)
        assert overview.date_range.latest == datetime(2024, 6, 28)
        assert overview.recent_activity.last_7_days == 2
        assert overview.recent_activity.last_30_days == 5

    async def test_overview_without_data(self, service, organization):
        overview = await service.compute_overview(organization.id)

        assert overview.total_revenue == 0.0
        assert overview.total_datasets == 0
        assert overview.date_range.earliest is None

    async def test_datasets_summary(self, service, organization, ingest_csv):
        await ingest_csv(DASHBOARD_CSV, name="older")
        await ingest_csv(TWO_ROWS_CSV, name="newer")

        summary = await service.compute_datasets_summary(organization.id)

        assert [s.name for s in summary] == ["newer", "older"]
        assert summary[0].stats.total_revenue == 150.0
        assert summary[0].stats.total_sales == 3
        assert summary[0].stats.avg_revenue == 50.0
        assert summary[1].row_count == 3

    async def test_datasets_summary_for_dataset_without_records(self, service, db_session, organization):
        db_session.add(Dataset(
            organization_id=organization.id,
            name="empty",
            file_name="empty.csv",
            file_size=0,
            row_count=0,
            columns=[],
            status=DatasetStatus.FAILED,
        ))
        await db_session.commit()

        summary = await service.compute_datasets_summary(organization.id)

        assert summary[0].stats.total_revenue == 0.0
        assert summary[0].stats.avg_revenue == 0.0

    async def test_trends_have_31_zero_filled_points(self, service, organization, ingest_csv):
        await ingest_csv(DASHBOARD_CSV)

        trends = await service.compute_trends(organization.id, today=date(2024, 6, 30))

        assert len(trends) == 31
        assert trends[0].date == "2024-05-31"
        assert trends[-1].date == "2024-06-30"
        by_day = {t.date: t for t in trends}
        assert (by_day["2024-06-28"].revenue, by_day["2024-06-28"].sales) == (100.0, 2)
        assert (by_day["2024-06-10"].revenue, by_day["2024-06-10"].sales) == (50.0, 3)
        assert sum(t.revenue for t in trends) == 150.0

    async def test_trends_without_data(self, service, organization):
        trends = await service.compute_trends(organization.id)

        assert len(trends) == 31
        assert all(t.revenue == 0 and t.sales == 0 for t in trends)
