"""
Tabular exports with pandas: the delivery route sheet and collection dumps.
"""

from typing import Any, Dict, List, Sequence, Tuple
from io import BytesIO, StringIO

import pandas as pd

from magicsell.schemas.order import Order
from magicsell.services.aggregator import parse_amount

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MEDIA_TYPE = "text/csv"

ROUTE_COLUMNS = [
    "Stop", "Basket No", "Delivery No", "Shop", "Customer", "Phone",
    "Address", "Postcode", "Amount", "Payment", "Status",
]


def route_rows(orders: Sequence[Order]) -> List[Dict[str, Any]]:
    return [
        {
            "Stop": stop,
            "Basket No": order.basket_no,
            "Delivery No": order.delivery_no,
            "Shop": order.shop_name or "",
            "Customer": order.customer_name or "",
            "Phone": order.customer_phone or "",
            "Address": order.customer_address or "",
            "Postcode": order.customer_postcode or "",
            "Amount": round(parse_amount(order.total_amount), 2),
            "Payment": order.payment_method or "",
            "Status": order.status,
        }
        for stop, order in enumerate(orders, start=1)
    ]


def route_summary(orders: Sequence[Order]) -> Dict[str, Any]:
    total = sum(parse_amount(o.total_amount) for o in orders)
    return {
        "Total Orders": len(orders),
        "Total Revenue": round(total, 2),
        "Average Order Value": round(total / len(orders), 2) if orders else 0,
    }


def to_csv(df: pd.DataFrame) -> str:
    output = StringIO()
    df.to_csv(output, index=False)
    return output.getvalue()


def to_xlsx(sheets: Dict[str, pd.DataFrame]) -> bytes:
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        for name, df in sheets.items():
            df.to_excel(writer, sheet_name=name, index=False)
    return output.getvalue()


def route_sheet(orders: Sequence[Order], fmt: str = "csv") -> Tuple[bytes, str]:
    """
    Route sheet as file content plus its media type.

    The summary goes on its own sheet in xlsx, and after a blank line below
    the stops in csv.
    """
    df = pd.DataFrame(route_rows(orders), columns=ROUTE_COLUMNS)
    summary = pd.DataFrame([route_summary(orders)])

    if fmt == "xlsx":
        return to_xlsx({"Route": df, "Summary": summary}), XLSX_MEDIA_TYPE
    return (to_csv(df) + "\n" + to_csv(summary)).encode("utf-8"), CSV_MEDIA_TYPE


def collection_frame(records: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    # Nested breakdown dicts become dotted columns, e.g. paymentBreakdown.Cash
    if not records:
        return pd.DataFrame()
    return pd.json_normalize(list(records))


def collection_export(records: Sequence[Dict[str, Any]], sheet: str, fmt: str = "csv") -> Tuple[bytes, str]:
    df = collection_frame(records)
    if fmt == "xlsx":
        return to_xlsx({sheet: df}), XLSX_MEDIA_TYPE
    return to_csv(df).encode("utf-8"), CSV_MEDIA_TYPE
