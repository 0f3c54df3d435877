"""Unit tests for PortfolioPosition and PortfolioBook."""

import pytest

from greeker.analytics.chain import ChainGenerator, find_option
from greeker.portfolio.book import PortfolioBook, aggregate_greeks, portfolio_value
from greeker.portfolio.models import PortfolioPosition
from greeker.pricing.bsm import Greeks, OptionType

from tests.conftest import make_option, make_position


class TestPortfolioPosition:
    def test_zero_quantity_rejected(self):
        with pytest.raises(ValueError):
            PortfolioPosition(option=make_option(), quantity=0)

    def test_greeks_scaled_by_quantity(self):
        pos = make_position(quantity=-2)
        assert pos.greeks.delta == pytest.approx(-2 * pos.option.greeks.delta)
        assert pos.greeks.gamma == pytest.approx(-2 * pos.option.greeks.gamma)

    def test_market_value(self):
        pos = make_position(quantity=3)
        assert pos.market_value(lot_size=50) == pytest.approx(150 * pos.option.price)

    def test_to_dict(self):
        assert make_position(quantity=4).to_dict() == {"option_id": "100-30-Call", "quantity": 4}


class TestAggregation:
    def test_empty_is_zero(self):
        assert aggregate_greeks([]) == Greeks()
        assert portfolio_value([]) == 0.0

    def test_long_call_short_put_same_strike(self):
        call = make_position(quantity=1)
        put = make_position(quantity=-1, option_type=OptionType.PUT)
        total = aggregate_greeks([call, put])
        # synthetic forward: delta ~ 1, gamma ~ 0
        assert total.delta == pytest.approx(1.0, abs=1e-9)
        assert total.gamma == pytest.approx(0.0, abs=1e-12)

    def test_value_uses_lot_size(self):
        positions = [make_position(quantity=2), make_position(quantity=1, strike=105)]
        expected = (2 * positions[0].option.price + positions[1].option.price) * 25
        assert portfolio_value(positions, lot_size=25) == pytest.approx(expected)


class TestPortfolioBook:
    def test_add_and_lookup(self):
        book = PortfolioBook()
        option = make_option()
        book.add(option, 2)
        assert len(book) == 1
        assert option.id in book
        assert book.quantity_of(option.id) == 2
        assert book.quantity_of("nope") == 0

    def test_add_duplicate_raises(self):
        book = PortfolioBook()
        option = make_option()
        book.add(option, 1)
        with pytest.raises(ValueError, match="already exists"):
            book.add(option, 1)

    def test_add_zero_raises(self):
        with pytest.raises(ValueError):
            PortfolioBook().add(make_option(), 0)

    def test_adjust_opens_and_accumulates(self):
        book = PortfolioBook()
        option = make_option()
        book.adjust(option, 1)
        pos = book.adjust(option, 2)
        assert pos.quantity == 3

    def test_adjust_to_zero_removes(self):
        book = PortfolioBook()
        option = make_option()
        book.adjust(option, 2)
        assert book.adjust(option, -2) is None
        assert book.is_empty

    def test_adjust_through_zero_flips_side(self):
        book = PortfolioBook()
        option = make_option()
        book.adjust(option, 1)
        assert book.adjust(option, -3).quantity == -2

    def test_adjust_by_zero_is_noop(self):
        book = PortfolioBook()
        assert book.adjust(make_option(), 0) is None
        assert book.is_empty

    def test_set_quantity(self):
        book = PortfolioBook()
        option = make_option()
        book.add(option, 1)
        assert book.set_quantity(option.id, 5).quantity == 5
        assert book.set_quantity(option.id, 0) is None
        assert option.id not in book

    def test_set_quantity_unknown_raises(self):
        with pytest.raises(ValueError):
            PortfolioBook().set_quantity("100-30-Call", 1)

    def test_insertion_order_kept(self):
        book = PortfolioBook()
        ids = []
        for strike in (105, 95, 100):
            opt = make_option(strike=strike)
            book.add(opt, 1)
            ids.append(opt.id)
        assert [p.option_id for p in book] == ids

    def test_strikes_deduplicated(self):
        book = PortfolioBook([
            make_position(strike=101.0),
            make_position(strike=101, option_type=OptionType.PUT),
            make_position(strike=97, maturity=60),
        ])
        assert book.strikes() == [97, 101]

    def test_clear(self):
        book = PortfolioBook([make_position()])
        book.clear()
        assert book.is_empty


class TestRelink:
    def test_positions_follow_new_chain(self, config):
        gen = ChainGenerator(config)
        old_chain = gen.generate(100.0, 0.2)
        book = PortfolioBook()
        book.add(find_option(old_chain, 100, 30, OptionType.CALL), 3)

        new_chain = gen.generate(100.0, 0.3)
        dropped = book.relink(new_chain)

        assert dropped == []
        pos = book.get("100-30-Call")
        assert pos.quantity == 3
        assert pos.option.iv == pytest.approx(0.3)

    def test_missing_ids_dropped(self, config):
        gen = ChainGenerator(config)
        book = PortfolioBook()
        book.add(find_option(gen.generate(100.0, 0.2), 100, 30, OptionType.PUT), -1)

        short_chain = ChainGenerator(config.with_overrides(maturities=(60, 90))).generate(100.0, 0.2)
        assert book.relink(short_chain) == ["100-30-Put"]
        assert book.is_empty
