from enum import Enum


class SyncErrorCode(str, Enum):
    GRAPHQL_ERROR = "graphql_error"
    INVALID = "invalid"
    NOT_FOUND = "not_found"
    REQUIRED = "required"
    ORDER_NOT_FOUND = "order_not_found"
    LINE_ITEM_NOT_FOUND = "line_item_not_found"
    STOCK_LOCATION_NOT_FOUND = "stock_location_not_found"
    SHIPPING_METHOD_NOT_FOUND = "shipping_method_not_found"
    NOT_SHIPPED = "not_shipped"
    EMPTY_RETURN = "empty_return"
    NOT_IMPORTABLE = "not_importable"
