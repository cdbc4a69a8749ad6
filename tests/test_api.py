from __future__ import annotations

from pathlib import Path

import pytest

from bill_convert import BillSource, Member, Provider, convert_bills, load_bill
from bill_convert.errors import BillFormatError, BillIOError, LedgerValidationError
from bill_convert.writer import read_ledger
from tests.helpers.bills import (
    alipay_fields,
    alipay_month,
    wechat_fields,
    wechat_month,
    write_alipay_bill,
    write_wechat_bill,
)


@pytest.fixture
def bills(tmp_path: Path) -> list[BillSource]:
    return [
        BillSource.of(Provider.ALIPAY, write_alipay_bill(tmp_path / "alipay.csv", alipay_month())),
        BillSource.of(Provider.WECHAT, write_wechat_bill(tmp_path / "wechat.csv", wechat_month())),
    ]


def test_two_bills_merge_into_one_sorted_ledger(tmp_path: Path, bills: list[BillSource]):
    out = tmp_path / "output.csv"

    report = convert_bills(bills, Member.YANG, out)

    records = read_ledger(out)
    assert len(records) == 25
    assert report.summary.total == 25
    assert report.summary.by_type == {"支出": 25}
    dates = [r.date for r in records]
    assert dates == sorted(dates, reverse=True)
    assert records[0].date == "2024年03月15日 08:30:15"
    assert {r.source for r in records} == {"支付宝", "微信"}
    assert {r.account1 for r in records} == {"支付宝零钱-杨", "零钱-杨"}
    assert [res.stats.emitted for res in report.results] == [10, 15]


def test_same_day_rows_from_both_providers_interleave_by_time(
    tmp_path: Path, bills: list[BillSource]
):
    out = tmp_path / "output.csv"
    convert_bills(bills, Member.HAN, out)

    first_day = [r for r in read_ledger(out) if r.date.startswith("2024年03月01日")]
    # Alipay 12:01:00 is later than WeChat 08:30:01
    assert [r.source for r in first_day] == ["支付宝", "微信"]


def test_output_is_byte_identical_across_runs(tmp_path: Path, bills: list[BillSource]):
    first = tmp_path / "first.csv"
    second = tmp_path / "second.csv"

    convert_bills(bills, Member.YANG, first)
    convert_bills(bills, Member.YANG, second)

    assert first.read_bytes() == second.read_bytes()


def test_bill_with_only_closed_transactions_yields_no_records(tmp_path: Path):
    path = write_alipay_bill(
        tmp_path / "alipay.csv",
        [alipay_fields("2024-03-02 08:15:30", "某商家", "商品", "支出", "9.90", "花呗", "交易关闭")],
    )

    result = load_bill(BillSource.of(Provider.ALIPAY, path), Member.YANG)

    assert result.records == []
    assert result.errors == []
    assert result.stats.skip_reasons == {"transaction closed": 1}


def test_row_errors_from_all_files_abort_before_writing(tmp_path: Path):
    alipay = alipay_month(3)
    alipay[1][6] = "n/a"
    wechat = wechat_month(3)
    wechat[2][5] = "¥abc"
    sources = [
        BillSource.of(Provider.ALIPAY, write_alipay_bill(tmp_path / "a.csv", alipay)),
        BillSource.of(Provider.WECHAT, write_wechat_bill(tmp_path / "w.csv", wechat)),
    ]
    out = tmp_path / "output.csv"

    with pytest.raises(BillFormatError) as exc_info:
        convert_bills(sources, Member.YANG, out)

    message = str(exc_info.value)
    assert message.startswith("2 row(s) could not be converted")
    assert "2024-03-02 12:02:00 支付宝" in message
    assert "2024-03-03 08:30:03 微信" in message
    assert not out.exists()


def test_validation_failure_leaves_previous_output_untouched(tmp_path: Path):
    rows = wechat_month(2) + [
        wechat_fields(
            "2024-03-09 10:00:00", "零钱提现", "招商银行(1234)", "/", "/", "¥500.00", "零钱", "提现已到账"
        )
    ]
    source = BillSource.of(Provider.WECHAT, write_wechat_bill(tmp_path / "w.csv", rows))
    out = tmp_path / "output.csv"
    out.write_text("previous\n", encoding="utf-8")

    with pytest.raises(LedgerValidationError) as exc_info:
        convert_bills([source], Member.YANG, out)

    assert [v.problem for v in exc_info.value.violations] == ["unknown transaction type '/'"]
    assert out.read_text(encoding="utf-8") == "previous\n"


def test_file_without_header_is_a_format_error(tmp_path: Path):
    path = tmp_path / "notes.csv"
    path.write_text("just,some\nunrelated,rows\n", encoding="utf-8")

    with pytest.raises(BillFormatError, match="header row containing '交易时间' not found"):
        load_bill(BillSource.of(Provider.WECHAT, path), Member.YANG)


def test_wechat_bill_given_as_alipay_fails_to_decode(tmp_path: Path):
    rows = [wechat_fields("2024-03-02 08:15:30", "商户消费", "霸王茶姬", "奶茶", "支出", "¥18.00", "零钱")]
    path = write_wechat_bill(tmp_path / "w.csv", rows * 20)
    alipay_view = BillSource.of(Provider.ALIPAY, path)

    # UTF-8 bytes decode as (wrong) GB18030 text; the marker then never matches.
    with pytest.raises(BillFormatError):
        load_bill(alipay_view, Member.YANG)


def test_missing_input_is_an_io_error(tmp_path: Path):
    with pytest.raises(BillIOError):
        load_bill(BillSource.of(Provider.WECHAT, tmp_path / "missing.csv"), Member.YANG)


@pytest.mark.parametrize("amount", ["¥0.125", "¥1e30"])
def test_unsupported_amount_fails_the_row_and_keeps_previous_output(
    tmp_path: Path, amount: str
):
    rows = wechat_month(3)
    rows[1][5] = amount
    source = BillSource.of(Provider.WECHAT, write_wechat_bill(tmp_path / "w.csv", rows))
    out = tmp_path / "output.csv"
    out.write_text("previous\n", encoding="utf-8")

    with pytest.raises(BillFormatError, match="unsupported amount format"):
        convert_bills([source], Member.YANG, out)

    assert out.read_text(encoding="utf-8") == "previous\n"


def test_skip_bad_rows_writes_the_rest(tmp_path: Path):
    rows = wechat_month(3)
    rows[1][5] = "¥0.125"
    source = BillSource.of(Provider.WECHAT, write_wechat_bill(tmp_path / "w.csv", rows))
    out = tmp_path / "output.csv"

    report = convert_bills([source], Member.YANG, out, skip_bad_rows=True)

    assert [r.date for r in read_ledger(out)] == [
        "2024年03月03日 08:30:03",
        "2024年03月01日 08:30:01",
    ]
    (result,) = report.results
    assert len(result.errors) == 1
    assert result.errors[0].time == "2024-03-02 08:30:02"


def test_skip_bad_rows_still_enforces_validation(tmp_path: Path):
    rows = wechat_month(1) + [
        wechat_fields("2024-03-09 10:00:00", "零钱提现", "银行", "/", "/", "¥5.00", "零钱", "提现已到账")
    ]
    source = BillSource.of(Provider.WECHAT, write_wechat_bill(tmp_path / "w.csv", rows))
    out = tmp_path / "output.csv"

    with pytest.raises(LedgerValidationError):
        convert_bills([source], Member.YANG, out, skip_bad_rows=True)

    assert not out.exists()
