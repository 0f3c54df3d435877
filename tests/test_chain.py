"""Unit tests for chain generation, chain frames and the IV surface."""

import math

import pytest

from greeker.analytics.chain import (
    ChainGenerator,
    all_options,
    chain_to_frame,
    find_option,
    index_by_id,
    normalize_strike,
    option_id,
)
from greeker.analytics.surface import volatility_surface
from greeker.pricing.bsm import BSMPricer, OptionType


class TestOptionId:
    def test_integral_strike(self):
        assert option_id(100.0, 30, OptionType.CALL) == "100-30-Call"

    def test_fractional_strike(self):
        assert option_id(101.5, 60, OptionType.PUT) == "101.5-60-Put"

    def test_normalize_strike(self):
        assert normalize_strike(95.0) == 95
        assert isinstance(normalize_strike(95.0), int)
        assert normalize_strike(95.25) == 95.25


class TestStrikes:
    def test_default_ladder(self, config):
        assert ChainGenerator(config).strikes(100.0) == [95, 98, 100, 102, 105]

    def test_rounds_half_up(self, config):
        gen = ChainGenerator(config.with_overrides(strike_multipliers=(1.0,)))
        assert gen.strikes(250.5) == [251]

    def test_merges_existing_strikes_without_duplicates(self, config):
        strikes = ChainGenerator(config).strikes(100.0, existing_strikes=[101.0, 100.0, 120])
        assert strikes == [95, 98, 100, 101, 102, 105, 120]

    def test_drops_non_positive_strikes(self, config):
        assert ChainGenerator(config).strikes(0.4, existing_strikes=[0, -5, 2]) == [2]


class TestGenerate:
    def test_low_spot_rounds_ladder_away(self, config):
        chain = ChainGenerator(config).generate(0.4, 0.3)
        assert sorted(chain) == [30, 60, 90]
        assert all(options == [] for options in chain.values())

    def test_low_spot_keeps_held_strike(self, config):
        chain = ChainGenerator(config).generate(0.4, 0.3, existing_strikes=[1])
        assert {o.strike for o in chain[30]} == {1}
        assert all(math.isfinite(o.iv) and o.price >= 0 for o in chain[30])

    def test_maturities_and_counts(self, chain):
        assert sorted(chain) == [30, 60, 90]
        for options in chain.values():
            assert len(options) == 10

    def test_order_is_strike_then_call_put(self, chain):
        options = chain[30]
        keys = [(o.strike, o.option_type) for o in options]
        expected = [(k, t) for k in (95, 98, 100, 102, 105)
                    for t in (OptionType.CALL, OptionType.PUT)]
        assert keys == expected

    def test_atm_iv_equals_hist_vol(self, chain):
        atm = find_option(chain, 100, 30, OptionType.CALL)
        assert atm.iv == pytest.approx(0.20)

    def test_smile_formula(self, config, chain):
        opt = find_option(chain, 95, 60, OptionType.PUT)
        m = math.log(95 / 100)
        assert opt.iv == pytest.approx(0.20 * (1 + 0.2 * m * m - 0.1 * m))

    def test_otm_puts_carry_higher_iv_than_otm_calls(self, chain):
        low = find_option(chain, 95, 30, OptionType.PUT)
        high = find_option(chain, 105, 30, OptionType.CALL)
        assert low.iv > high.iv

    def test_prices_match_pricer(self, chain):
        opt = find_option(chain, 102, 90, OptionType.CALL)
        expected = BSMPricer.price(100.0, 102, 90 / 252, opt.iv, 0.07, OptionType.CALL)
        assert opt.price == expected.price
        assert opt.greeks == expected.greeks
        assert opt.d1 == expected.d1

    def test_hist_vol_pricing(self, chain):
        opt = find_option(chain, 95, 30, OptionType.CALL)
        expected = BSMPricer.price(100.0, 95, 30 / 252, 0.20, 0.07, OptionType.CALL)
        assert opt.price_hist_vol == expected.price
        assert opt.greeks_hist_vol == expected.greeks

    def test_rate_override(self, config):
        gen = ChainGenerator(config)
        low = find_option(gen.generate(100.0, 0.2, 1.0), 100, 30, OptionType.CALL)
        high = find_option(gen.generate(100.0, 0.2, 10.0), 100, 30, OptionType.CALL)
        assert high.price > low.price

    def test_existing_strike_in_every_maturity(self, config):
        chain = ChainGenerator(config).generate(100.0, 0.2, existing_strikes=[101])
        for maturity in (30, 60, 90):
            assert find_option(chain, 101, maturity, OptionType.PUT) is not None

    def test_ids_unique(self, chain):
        ids = [o.id for o in all_options(chain)]
        assert len(ids) == len(set(ids)) == 30

    def test_regeneration_keeps_ids(self, config):
        gen = ChainGenerator(config)
        first = gen.generate(100.0, 0.2)
        second = gen.generate(100.2, 0.25)
        assert set(index_by_id(first)) == set(index_by_id(second))

    def test_label(self, chain):
        assert find_option(chain, 98, 60, OptionType.PUT).label == "98 Put @ 60d"


class TestChainFrame:
    def test_columns_and_rows(self, chain):
        frame = chain_to_frame(chain)
        assert len(frame) == 30
        assert list(frame.columns) == ["id", "strike", "maturity", "type", "iv", "price",
                                       "delta", "gamma", "vega", "theta", "rho"]

    def test_hist_vol_view(self, chain):
        frame = chain_to_frame(chain, use_hist_vol=True).set_index("id")
        opt = find_option(chain, 105, 30, OptionType.CALL)
        assert frame.loc[opt.id, "price"] == opt.price_hist_vol
        assert frame.loc[opt.id, "delta"] == opt.greeks_hist_vol.delta

    def test_empty_chain(self):
        assert chain_to_frame({}).empty


class TestVolatilitySurface:
    def test_shape(self, chain):
        surface = volatility_surface(chain)
        assert list(surface.columns) == ["30D IV", "60D IV", "90D IV"]
        assert list(surface.index) == [95, 98, 100, 102, 105]

    def test_iv_constant_across_maturities(self, chain):
        surface = volatility_surface(chain)
        row = surface.loc[95]
        assert row["30D IV"] == row["60D IV"] == row["90D IV"]

    def test_atm_row_is_hist_vol(self, chain):
        assert volatility_surface(chain).loc[100, "30D IV"] == pytest.approx(0.20)

    def test_empty_chain(self):
        assert volatility_surface({}).empty
