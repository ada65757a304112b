# salesscope/modules/datasets/constants.py

"""
Constants for the datasets module.

Centralizes ingestion limits and the header aliases recognised for each
sales field.
"""

# Ingestion Limits
DEFAULT_SAMPLE_SIZE = 100  # Rows examined for column type inference
DEFAULT_BATCH_SIZE = 1000  # Sales records per insert batch
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_RECORD_PREVIEW_LIMIT = 1000  # Records returned with a single dataset

# Header aliases per sales field, in priority order (matched case-insensitively).
# "amount" appears for both revenue and quantity: a file whose only numeric
# column is "amount" feeds both fields from it.
DATE_ALIASES = ["date", "transaction_date", "order_date"]
REVENUE_ALIASES = ["revenue", "amount", "total", "price"]
QUANTITY_ALIASES = ["quantity", "qty", "amount"]
PRODUCT_ALIASES = ["product", "product_name", "item"]
CATEGORY_ALIASES = ["category", "product_category"]

FIELD_ALIASES = {
    "date": DATE_ALIASES,
    "revenue": REVENUE_ALIASES,
    "quantity": QUANTITY_ALIASES,
    "product": PRODUCT_ALIASES,
    "category": CATEGORY_ALIASES,
}
REQUIRED_FIELDS = ["date", "revenue"]

# Row Normalization Defaults
DEFAULT_REVENUE = 0.0
DEFAULT_QUANTITY = 1

# Upload Validation
CSV_CONTENT_TYPES = {"text/csv", "application/csv", "application/vnd.ms-excel"}
CSV_EXTENSION = ".csv"
