from enum import Enum


class CustomizationType(str, Enum):
    ADDITION = "ADDITION"
    REMOVAL = "REMOVAL"


class ProductSortField(str, Enum):
    NAME = "name"
    PRICE = "price"
    ORDER_INDEX = "order_index"
    CREATED_AT = "created_at"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
