from aggregation.aggregators.financial import calculate_portfolio_performance
from aggregation.models.domain import Holding, PriceQuote


def test_portfolio_gain_per_holding_and_total():
    holdings = [
        Holding(symbol="aapl", quantity=10, purchase_price=100.0),
        Holding(symbol="MSFT", quantity=5, purchase_price=200.0),
    ]
    prices = [
        PriceQuote(symbol="AAPL", price=110.0, source="Yahoo Finance"),
        PriceQuote(symbol="MSFT", price=180.0, source="Yahoo Finance"),
    ]

    perf = calculate_portfolio_performance(holdings, prices)

    aapl, msft = perf.holdings
    assert aapl.gain == 100.0
    assert aapl.gain_percent == 10.0
    assert msft.gain == -100.0
    assert msft.gain_percent == -10.0
    assert perf.summary.total_cost_basis == 2000.0
    assert perf.summary.total_current_value == 2000.0
    assert perf.summary.total_gain == 0.0
    assert perf.summary.total_gain_percent == 0.0


def test_holdings_without_quotes_are_left_out():
    perf = calculate_portfolio_performance(
        [Holding(symbol="TSLA", quantity=1, purchase_price=10.0)],
        [PriceQuote(symbol="AAPL", price=1.0, source="Finnhub")],
    )
    assert perf.holdings == []
    assert perf.summary.total_gain_percent == 0.0
