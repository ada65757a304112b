# salesscope/modules/analytics/__init__.py

"""
Analytics Module - Revenue insights over ingested sales datasets

Key Features:
- KPIs (total and average revenue, record count, units) per dataset
- Revenue over time with adaptive day/week/month bucketing
- Revenue rankings by category and product
- Organization dashboard: overview, per-dataset summary, 31-day trend
- Five minute result cache keyed by dataset, filter and query type

Components:
- Services: aggregation engine, pure bucketing and grouping helpers, cache keys
- Schemas: Pydantic models for filters and responses
- Routes: FastAPI endpoints under /api/analytics
"""
