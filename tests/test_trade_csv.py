from __future__ import annotations

from datetime import date

import pytest

from trade_import.parsers.base import Direction, FormatKind, Outcome
from trade_import.parsers.trade_csv import parse_trade_csv


MT4_HEADER = "Ticket,Open Time,Type,Size,Item,Open Price,Close Time,Close Price,S/L,T/P,Profit"


def fixed_today() -> date:
    return date(2030, 6, 1)


def test_mt4_end_to_end() -> None:
    text = "\n".join(
        [
            MT4_HEADER,
            "1001,2024.01.15 08:00,buy,0.10,EURUSD,1.0850,2024.01.15 10:00,1.0900,1.0800,1.0950,50.00",
        ]
    )
    result = parse_trade_csv(text)

    assert result.format is FormatKind.MT4
    assert result.errors == []
    assert len(result.trades) == 1
    trade = result.trades[0]
    assert trade.instrument == "EURUSD"
    assert trade.direction is Direction.LONG
    assert trade.outcome is Outcome.WIN
    assert trade.pnl == 50.0
    assert trade.entry_price == 1.085
    assert trade.exit_price == 1.09
    assert trade.position_size == 0.1
    assert trade.stop_loss == 1.08
    assert trade.take_profit == 1.095
    assert trade.trade_date == "2024-01-15"
    assert trade.entry_time == "08:00"
    assert trade.exit_time == "10:00"


def test_mt4_skips_ledger_rows_and_unknown_types() -> None:
    text = "\n".join(
        [
            MT4_HEADER,
            "1,2024.01.02 00:00,balance,,,,,,,,1000.00",
            "2,2024.01.02 00:00,credit,,,,,,,,50.00",
            "3,2024.01.02 00:00,deposit,,,,,,,,50.00",
            "4,2024.01.03 09:00,sell,1.00,GBPUSD,1.2700,2024.01.03 12:00,1.2650,0,0,500.00",
        ]
    )
    result = parse_trade_csv(text)

    assert result.errors == []
    assert result.skipped_rows == [2, 3, 4]
    assert len(result.trades) == 1
    trade = result.trades[0]
    assert trade.direction is Direction.SHORT
    assert trade.stop_loss is None
    assert trade.take_profit is None


def test_skip_versus_error_distinction() -> None:
    text = "\n".join(
        [
            MT4_HEADER,
            "1,2024.01.02 00:00,balance,,,,,,,,1000.00",
            "2,2024.01.03 09:00,buy,1.00,EURUSD,abc,2024.01.03 12:00,1.0900,,,10.00",
        ]
    )
    result = parse_trade_csv(text)

    assert result.trades == []
    assert len(result.errors) == 1
    issue = result.errors[0]
    assert issue.row_number == 3
    assert issue.field_name == "entry_price"
    assert issue.reason_code == "invalid"
    assert issue.message == "Row 3: Invalid entry/exit price"


def test_row_isolation_reports_correct_row_number() -> None:
    rows = [
        "1,2024.01.15 08:00,buy,0.10,EURUSD,1.0850,2024.01.15 10:00,1.0900,,,50.00",
        "2,2024.01.15 08:00,buy,0.10,EURUSD,oops,2024.01.15 10:00,1.0900,,,50.00",
        "3,2024.01.15 08:00,sell,0.10,EURUSD,1.0900,2024.01.15 10:00,1.0950,,,-50.00",
    ]
    result = parse_trade_csv("\n".join([MT4_HEADER, *rows]))

    assert len(result.trades) == 2
    assert len(result.errors) == 1
    assert result.errors[0].row_number == 3
    assert [t.outcome for t in result.trades] == [Outcome.WIN, Outcome.LOSS]


@pytest.mark.parametrize(
    ("row", "field_name", "reason_code", "message"),
    [
        ("1,2024.01.15,buy,0.10,,1.0,2024.01.15,1.1,,,5", "instrument", "missing", "Row 2: Missing instrument/item"),
        ("1,2024.01.15,buy,0,EURUSD,1.0,2024.01.15,1.1,,,5", "position_size", "not_positive", "Row 2: Invalid position size"),
        ("1,2024.01.15,buy,-1,EURUSD,1.0,2024.01.15,1.1,,,5", "position_size", "not_positive", "Row 2: Invalid position size"),
        ("1,2024.01.15,buy,x,EURUSD,1.0,2024.01.15,1.1,,,5", "position_size", "invalid", "Row 2: Invalid position size"),
        ("1,2024.01.15,buy,0.1,EURUSD,1.0,2024.01.15,1.1,,,n/a", "pnl", "invalid", "Row 2: Invalid profit value"),
    ],
)
def test_mt4_row_errors(row: str, field_name: str, reason_code: str, message: str) -> None:
    result = parse_trade_csv(f"{MT4_HEADER}\n{row}")

    assert result.trades == []
    assert len(result.errors) == 1
    issue = result.errors[0]
    assert (issue.field_name, issue.reason_code, issue.message) == (field_name, reason_code, message)


def test_outcome_breakeven_and_european_numbers() -> None:
    text = "\n".join(
        [
            "Ticket;Open Time;Type;Size;Item;Open Price;Close Time;Close Price;S/L;T/P;Profit",
            '7;2024.02.01 11:00;buy;"0,50";DE40;"16900,5";2024.02.01 11:30;"16900,5";0;0;"0,00"',
        ]
    )
    result = parse_trade_csv(text)

    assert result.format is FormatKind.MT4
    trade = result.trades[0]
    assert trade.position_size == 0.5
    assert trade.entry_price == 16900.5
    assert trade.pnl == 0.0
    assert trade.outcome is Outcome.BREAKEVEN


def test_mt5_single_price_column() -> None:
    text = "\n".join(
        [
            "Time,Position,Symbol,Type,Volume,Price,S/L,T/P,Profit",
            "2024.03.04 14:22:10,555,XAUUSD,sell,0.20,2050.10,2060.00,0,-12.40",
            "2024.03.04 15:00:00,556,XAUUSD,balance,,,,,100",
        ]
    )
    result = parse_trade_csv(text)

    assert result.format is FormatKind.MT5
    assert result.errors == []
    assert result.skipped_rows == [3]
    trade = result.trades[0]
    assert trade.entry_price == trade.exit_price == 2050.1
    assert trade.stop_loss == 2060.0
    assert trade.take_profit is None
    assert trade.outcome is Outcome.LOSS
    assert trade.trade_date == "2024-03-04"
    assert trade.entry_time == "14:22:10"
    assert trade.exit_time is None


def test_mt5_separate_open_close_prices() -> None:
    text = "\n".join(
        [
            "Time,Position,Symbol,Type,Volume,Open Price,Close Price,Profit",
            "2024.03.04 14:22,9,USDJPY,buy,1,150.10,150.60,333.00",
        ]
    )
    result = parse_trade_csv(text)

    assert result.format is FormatKind.MT5
    trade = result.trades[0]
    assert (trade.entry_price, trade.exit_price) == (150.1, 150.6)


def test_mt5_bad_volume_and_price_messages() -> None:
    text = "\n".join(
        [
            "Time,Position,Symbol,Type,Volume,Price,Profit",
            "2024.03.04 14:22,1,USDJPY,buy,0,150.10,1",
            "2024.03.04 14:22,2,USDJPY,buy,1,,1",
        ]
    )
    result = parse_trade_csv(text)

    assert [e.message for e in result.errors] == ["Row 2: Invalid volume", "Row 3: Invalid price"]


def test_generic_computed_pnl_for_short() -> None:
    text = "\n".join(
        [
            "Date,Pair,Side,Entry,Exit,Lots",
            "2024-05-01 09:15,EURUSD,short,1.2000,1.1900,2",
        ]
    )
    result = parse_trade_csv(text)

    assert result.format is FormatKind.GENERIC
    assert result.errors == []
    short = result.trades[0]
    assert short.direction is Direction.SHORT
    assert short.pnl == pytest.approx(0.02)
    assert short.outcome is Outcome.WIN
    assert short.entry_time == "09:15"


def test_generic_defaults_when_exit_and_size_columns_are_absent() -> None:
    result = parse_trade_csv("Date,Pair,Side,Entry\n2024-05-02,GBPUSD,,1.3000")

    assert result.errors == []
    default = result.trades[0]
    assert default.direction is Direction.LONG
    assert default.exit_price == default.entry_price == 1.3
    assert default.position_size == 0.01
    assert default.pnl == 0.0
    assert default.outcome is Outcome.BREAKEVEN


def test_generic_blank_exit_or_size_cell_is_a_row_error() -> None:
    text = "\n".join(
        [
            "Symbol,Entry,Exit,Size",
            "EURUSD,1.1,,",
            "EURUSD,1.1,1.2,",
        ]
    )
    result = parse_trade_csv(text)

    assert result.trades == []
    assert [(e.row_number, e.field_name, e.message) for e in result.errors] == [
        (2, "exit_price", "Row 2: Invalid exit price"),
        (3, "position_size", "Row 3: Invalid position size"),
    ]


def test_byte_order_mark_does_not_hide_first_mt5_column() -> None:
    text = "\n".join(
        [
            "\ufeffTime,Position,Symbol,Type,Volume,Price,S/L,T/P,Profit",
            "2024.03.04 14:22:10,555,XAUUSD,sell,0.20,2050.10,0,0,-12.40",
        ]
    )
    result = parse_trade_csv(text, today=fixed_today)

    assert result.format is FormatKind.MT5
    trade = result.trades[0]
    assert trade.trade_date == "2024-03-04"
    assert trade.entry_time == "14:22:10"


def test_byte_order_mark_does_not_hide_first_generic_column() -> None:
    result = parse_trade_csv("\ufeffSymbol,Entry\nEURUSD,1.1")

    assert result.errors == []
    assert result.trades[0].instrument == "EURUSD"


def test_generic_reads_pnl_column_and_optional_levels() -> None:
    text = "\n".join(
        [
            "Symbol,Direction,Entry Price,Exit Price,Size,P&L,Stop Loss,Take Profit,Timeframe",
            'NAS100,long,"15,000.5","15,100.5",1,"-1,250.00",14950,0,H1',
        ]
    )
    result = parse_trade_csv(text)

    trade = result.trades[0]
    assert trade.pnl == -1250.0
    assert trade.outcome is Outcome.LOSS
    assert trade.stop_loss == 14950.0
    assert trade.take_profit is None
    assert trade.timeframe == "H1"


def test_generic_row_errors() -> None:
    text = "\n".join(
        [
            "Instrument,Type,Entry,Exit,Size,PnL",
            ",buy,1,2,1,1",
            "AAPL,buy,x,2,1,1",
            "AAPL,buy,1,y,1,1",
            "AAPL,buy,1,2,-3,1",
            "AAPL,buy,1,2,1,??",
            "AAPL,balance,1,2,1,1",
            "AAPL,buy,1,2,1,1",
        ]
    )
    result = parse_trade_csv(text)

    assert [(e.row_number, e.field_name) for e in result.errors] == [
        (2, "instrument"),
        (3, "entry_price"),
        (4, "exit_price"),
        (5, "position_size"),
        (6, "pnl"),
    ]
    assert result.skipped_rows == [7]
    assert len(result.trades) == 1


def test_generic_missing_required_column_is_file_level() -> None:
    result = parse_trade_csv("Symbol,Side,Exit\nEURUSD,buy,1.1\nGBPUSD,sell,1.2")

    assert result.format is FormatKind.GENERIC
    assert result.trades == []
    assert len(result.errors) == 1
    issue = result.errors[0]
    assert issue.row_number is None
    assert issue.reason_code == "missing_column"
    assert issue.message == "Missing required column: entry/open price"


def test_generic_missing_instrument_column_reported_first() -> None:
    result = parse_trade_csv("Side,Price\nbuy,1.1")

    assert [e.message for e in result.errors] == ["Missing required column: instrument/symbol"]


def test_generic_without_date_uses_injected_today() -> None:
    result = parse_trade_csv("Ticker,Open\nAAPL,190.5", today=fixed_today)

    assert result.trades[0].trade_date == "2030-06-01"
    assert result.trades[0].entry_time is None


@pytest.mark.parametrize("text", ["", "\n\n", "Ticket,Item\n", "   \r\n"])
def test_empty_input(text: str) -> None:
    result = parse_trade_csv(text)

    assert result.format is FormatKind.GENERIC
    assert result.trades == []
    assert [e.message for e in result.errors] == ["File is empty or has no data rows"]
    assert result.errors[0].reason_code == "empty_file"


def test_blank_lines_do_not_shift_row_numbers_of_nonblank_rows() -> None:
    text = f"{MT4_HEADER}\n\n1,2024.01.15,buy,0.1,,1,2024.01.15,1.1,,,1\n"
    result = parse_trade_csv(text)

    assert result.errors[0].row_number == 2


def test_parse_is_deterministic() -> None:
    text = "\n".join(
        [
            MT4_HEADER,
            "1,2024.01.15 08:00,buy,0.10,EURUSD,1.0850,2024.01.15 10:00,1.0900,,,50.00",
            "2,2024.01.15 08:00,sell,0.10,EURUSD,bad,2024.01.15 10:00,1.0950,,,-5",
        ]
    )
    assert parse_trade_csv(text).to_dict() == parse_trade_csv(text).to_dict()


def test_unexpected_row_failure_is_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    from trade_import.parsers import mt4

    def boom(*_args: object, **_kwargs: object) -> str:
        raise RuntimeError("clock exploded")

    monkeypatch.setattr(mt4, "normalize_date", boom)
    result = parse_trade_csv(
        f"{MT4_HEADER}\n1,2024.01.15,buy,0.1,EURUSD,1,2024.01.15,1.1,,,1\n"
        "2,2024.01.15,balance,,,,,,,,1"
    )

    assert result.trades == []
    assert len(result.errors) == 1
    assert result.errors[0].reason_code == "unexpected"
    assert result.errors[0].message == "Row 2: clock exploded"
    assert result.skipped_rows == [3]


def test_to_dict_uses_plain_values() -> None:
    result = parse_trade_csv(
        f"{MT4_HEADER}\n1,2024.01.15 08:00,sell,0.10,EURUSD,1.09,2024.01.15 10:00,1.08,,,10"
    )
    payload = result.to_dict()

    assert payload["format"] == "mt4"
    assert payload["trades"][0]["direction"] == "short"
    assert payload["trades"][0]["outcome"] == "win"
    assert payload["errors"] == []
