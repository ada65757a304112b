# salesscope/modules/datasets/__init__.py

"""
Datasets Module - CSV ingestion for sales data.

Key Features:
- CSV parsing with structural error detection
- Column type inference (NUMBER, DATE, STRING) from a row sample
- Tolerant mapping of loosely named headers onto sales fields
- Batched, sequential persistence with FAILED-state recovery
- Dataset listing, retrieval and cascade deletion per organization
"""
