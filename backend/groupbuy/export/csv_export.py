"""
CSV serialisation of the catalog, order list and batch reports.

Layout (spreadsheet-friendly for Excel on Windows):
  - UTF-8 byte-order mark first
  - header row as plain comma-joined text
  - every data field quoted, embedded quotes doubled
  - one row per line, no trailing newline
Numbers keep full precision (integral floats drop the ".0"); None is "".
Only the income sheet rounds, the same way the settlement is read out.
"""
from __future__ import annotations

import csv
import io
import math
from datetime import date
from typing import Any, Iterable, Optional, Sequence

from groupbuy.engine.collation import sort_by_label
from groupbuy.engine.values import number_field, text_field
from groupbuy.schemas.responses import (
    AnalysisRow,
    DetailBucket,
    DetailLine,
    IncomeStatement,
)

BOM = "\ufeff"

PRODUCT_HEADERS = [
    "類別ID", "類別名稱", "商品ID", "商品名稱", "日幣價格", "境內運",
    "手續費", "國際運", "售價匯率", "成本匯率", "輸入價格",
]
ORDER_HEADERS = ["訂單批次", "商品類別", "商品ID", "商品名稱", "描述", "買家", "數量", "備註", "說明", "日期"]
DETAIL_HEADERS = {
    "buyer": ["買家", "商品描述", "商品原名", "數量", "單項總價", "買家總計"],
    "product": ["商品", "買家", "描述", "數量", "單項總價", "商品總計"],
}
ANALYSIS_HEADERS = {
    "buyer": ["買家", "總數量", "總金額"],
    "product": ["商品", "總數量", "總金額"],
}
DEPOSIT_HEADERS = ["訂購者", "備註欄", "說明", "商品名稱", "描述", "數量", "日期"]
INCOME_HEADERS = ["項目", "金額/數值"]


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def to_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow([format_cell(c) for c in row])
    body = buf.getvalue().rstrip("\n")
    header = ",".join(headers)
    return BOM + (f"{header}\n{body}" if body else header)


def js_round(value: float) -> int:
    """Round half up (2.5 → 3, -2.5 → -2), unlike Python's banker's rounding."""
    return math.floor(value + 0.5)


# ── Sheets ────────────────────────────────────────────────────────────────────


def products_csv(groups: Iterable[Any], items: Iterable[Any]) -> str:
    names = {text_field(g, "id"): text_field(g, "name") for g in groups}
    rows = [
        [
            text_field(i, "group_id"),
            names.get(text_field(i, "group_id"), ""),
            text_field(i, "id"),
            text_field(i, "name"),
            number_field(i, "jpy_price"),
            number_field(i, "domestic_ship"),
            number_field(i, "handling_fee"),
            number_field(i, "intl_ship"),
            number_field(i, "rate_sale"),
            number_field(i, "rate_cost"),
            number_field(i, "input_price"),
        ]
        for i in items
    ]
    return to_csv(PRODUCT_HEADERS, rows)


def orders_csv(lines: Iterable[DetailLine]) -> str:
    rows = [
        [
            line.order_group_id, line.product_group_id, line.product_item_id, line.product_name,
            line.description, line.buyer, line.quantity, line.remarks, line.note, line.date,
        ]
        for line in lines
    ]
    return to_csv(ORDER_HEADERS, rows)


def detail_csv(buckets: Iterable[DetailBucket], mode: str) -> str:
    rows: list[list[Any]] = []
    for bucket in buckets:
        for line in bucket.lines:
            if mode == "buyer":
                rows.append([bucket.label, line.description, line.product_name,
                             line.quantity, line.total, bucket.total_price])
            else:
                rows.append([bucket.label, line.buyer, line.description,
                             line.quantity, line.total, bucket.total_price])
    return to_csv(DETAIL_HEADERS[mode], rows)


def analysis_csv(rows: Iterable[AnalysisRow], mode: str) -> str:
    return to_csv(ANALYSIS_HEADERS[mode], [[r.label, r.qty, r.total] for r in rows])


def deposits_csv(lines: Iterable[DetailLine]) -> str:
    """Every remarked line of the batch, by buyer (the payment-collection sheet)."""
    remarked = sort_by_label([l for l in lines if l.remarks.strip()], lambda l: l.buyer)
    rows = [
        [l.buyer, l.remarks, l.note, l.product_name, l.description, l.quantity, l.date]
        for l in remarked
    ]
    return to_csv(DEPOSIT_HEADERS, rows)


def income_csv(statement: IncomeStatement) -> str:
    s = statement
    rows = [
        ["日幣總計", s.total_jpy],
        ["境內運總計", s.total_domestic],
        ["手續費總計", s.total_handling],
        ["商品收入", s.total_sales],
        ["包材收入", s.packaging_revenue],
        ["刷卡費(成本)", s.card_charge],
        ["刷卡手續費", s.card_fee],
        ["國際運費", s.intl_shipping],
        ["平均匯率", f"{s.avg_rate_cost:.3f}"],
        ["手續費佔比", f"{s.card_fee_rate:.2f}%"],
        ["總利潤", s.net_profit],
        ["利潤率", f"{s.profit_rate:.2f}%"],
        ["利潤(爸爸20%)", js_round(s.dad_share)],
        ["利潤(妹妹80%)", js_round(s.sister_share)],
        ["爸爸應收", s.dad_receivable],
        ["收款說明", s.payment_note],
    ]
    return to_csv(INCOME_HEADERS, rows)


def export_filename(kind: str, order_group_id: Optional[str] = None, mode: Optional[str] = None) -> str:
    if kind == "products":
        return f"產品資料_{date.today().isoformat()}.csv"
    prefix = {
        "orders": "訂單",
        "detail": "購買明細",
        "analysis": "分析資料",
        "deposits": "預收款項",
        "income": "收支計算表",
    }[kind]
    parts = [prefix] + ([mode] if mode else []) + [order_group_id or ""]
    return "_".join(parts) + ".csv"
