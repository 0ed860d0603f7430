"""
Catalog EAV tables migrated to the default store.

Order is fixed so runs are reproducible; correctness does not depend on it.
"""

CATEGORY_EAV_TABLES = (
    "catalog_category_entity_datetime",
    "catalog_category_entity_decimal",
    "catalog_category_entity_int",
    "catalog_category_entity_text",
    "catalog_category_entity_varchar",
)

PRODUCT_EAV_TABLES = (
    "catalog_product_entity_datetime",
    "catalog_product_entity_decimal",
    "catalog_product_entity_gallery",
    "catalog_product_entity_int",
    "catalog_product_entity_text",
    "catalog_product_entity_varchar",
)

CATALOG_EAV_TABLES = CATEGORY_EAV_TABLES + PRODUCT_EAV_TABLES

# Column names shared by every table above
VALUE_ID = "value_id"
ATTRIBUTE_ID = "attribute_id"
STORE_ID = "store_id"
DEFAULT_ENTITY_COLUMN = "row_id"

DEFAULT_STORE_ID = 0
