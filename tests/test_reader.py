from __future__ import annotations

from pathlib import Path

import pytest

from bill_convert.errors import BillFormatError, BillIOError
from bill_convert.ingest.reader import BillReader, read_bill_rows
from tests.helpers.bills import (
    alipay_fields,
    wechat_fields,
    write_alipay_bill,
    write_wechat_bill,
)


def test_skips_preamble_and_header_row(tmp_path: Path):
    path = write_alipay_bill(
        tmp_path / "alipay.csv",
        [alipay_fields("2024-03-01 08:00:00", "饿了么", "午饭", "支出", "20.00", "账户余额")],
    )

    reader = BillReader(path, encoding="gb18030", header_marker="交易时间")
    rows = list(reader)

    assert reader.header_found
    assert reader.header[0] == "交易时间"
    assert reader.preamble_lines == 8
    assert len(rows) == 1
    assert rows[0][0] == "2024-03-01 08:00:00"
    assert rows[0][2] == "饿了么"


def test_fields_are_trimmed_and_arity_is_flexible(tmp_path: Path):
    path = tmp_path / "bill.csv"
    path.write_text(
        "banner line\n交易时间,类型,金额\n  2024-03-01 08:00:00 ,  支出 ,1.00,extra,columns\nshort\n",
        encoding="utf-8",
    )

    rows = list(read_bill_rows(path, encoding="utf-8", header_marker="交易时间"))

    assert rows == [
        ["2024-03-01 08:00:00", "支出", "1.00", "extra", "columns"],
        ["short"],
    ]


def test_blank_rows_are_dropped(tmp_path: Path):
    path = tmp_path / "bill.csv"
    path.write_text("交易时间,a\n,,\n\n2024-03-01 08:00:00,x\n", encoding="utf-8")

    rows = list(read_bill_rows(path, encoding="utf-8", header_marker="交易时间"))

    assert rows == [["2024-03-01 08:00:00", "x"]]


def test_missing_header_yields_nothing(tmp_path: Path):
    path = tmp_path / "bill.csv"
    path.write_text("Date,Amount\n2024-03-01,1.00\n", encoding="utf-8")

    reader = BillReader(path, encoding="utf-8", header_marker="交易时间")

    assert list(reader) == []
    assert reader.header_found is False


def test_wechat_bom_does_not_hide_marker(tmp_path: Path):
    path = write_wechat_bill(
        tmp_path / "wechat.csv",
        [wechat_fields("2024-03-01 08:00:00", "商户消费", "永辉超市", "蔬菜", "支出", "¥5.00", "零钱")],
    )

    rows = list(read_bill_rows(path, encoding="utf-8-sig", header_marker="交易时间"))

    assert len(rows) == 1
    assert rows[0][5] == "¥5.00"


def test_missing_file_raises_io_error(tmp_path: Path):
    with pytest.raises(BillIOError, match="cannot open"):
        list(read_bill_rows(tmp_path / "nope.csv", encoding="utf-8", header_marker="交易时间"))


def test_wrong_encoding_raises_format_error(tmp_path: Path):
    path = write_alipay_bill(
        tmp_path / "alipay.csv",
        [alipay_fields("2024-03-01 08:00:00", "饿了么", "午饭", "支出", "20.00", "账户余额")],
    )

    with pytest.raises(BillFormatError, match="not valid utf-8"):
        list(read_bill_rows(path, encoding="utf-8", header_marker="交易时间"))
