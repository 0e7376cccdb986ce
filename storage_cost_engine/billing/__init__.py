from .actual_cost import (
    ActualCostLookup,
    CostEntry,
    CostManagementClient,
    build_query_body,
    parse_query_rows,
)

__all__ = [
    "ActualCostLookup",
    "CostEntry",
    "CostManagementClient",
    "build_query_body",
    "parse_query_rows",
]
