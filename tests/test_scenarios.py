"""Unit tests for spot-shock and strategy P&L scenarios."""

import pytest

from greeker.portfolio.hedging import delta_hedge_shares
from greeker.portfolio.models import StrategyLeg
from greeker.portfolio.scenarios import ScenarioEngine, scenario_label
from greeker.pricing.bsm import BSMPricer, OptionType

from tests.conftest import make_option, make_position


@pytest.fixture
def engine(config):
    return ScenarioEngine(config)


class TestScenarioLabel:
    @pytest.mark.parametrize("change, label", [
        (-0.02, "-2%"),
        (-0.01, "-1%"),
        (0.0, "0%"),
        (0.01, "1%"),
        (0.02, "2%"),
        (0.15, "15%"),
    ])
    def test_labels(self, change, label):
        assert scenario_label(change) == label


class TestSpotShockPnL:
    def test_empty_portfolio(self, engine):
        assert engine.spot_shock_pnl([], 100.0) == []

    def test_one_scenario_per_shock(self, engine):
        scenarios = engine.spot_shock_pnl([make_position()], 100.0)
        assert [s.scenario for s in scenarios] == ["-2%", "-1%", "0%", "1%", "2%"]
        assert [s.new_price for s in scenarios] == pytest.approx([98.0, 99.0, 100.0, 101.0, 102.0])

    def test_zero_shock_is_flat(self, engine):
        zero = engine.spot_shock_pnl([make_position(quantity=3)], 100.0)[2]
        assert zero.pnl_unhedged == pytest.approx(0.0, abs=1e-12)
        assert zero.pnl_delta_hedged == pytest.approx(0.0, abs=1e-12)

    def test_unhedged_pnl_is_repricing_difference(self, engine):
        pos = make_position(quantity=2)
        up = engine.spot_shock_pnl([pos], 100.0)[4]
        new_price = BSMPricer.price(102.0, 100, 30 / 252, 0.2, 0.07, OptionType.CALL).price
        assert up.pnl_unhedged == pytest.approx(2 * (new_price - pos.option.price))

    def test_delta_hedge_reduces_exposure(self, engine):
        pos = make_position(quantity=5)
        for s in engine.spot_shock_pnl([pos], 100.0):
            if s.spot_change != 0:
                assert abs(s.pnl_delta_hedged) < abs(s.pnl_unhedged)

    def test_long_gamma_hedged_pnl_positive(self, engine):
        for s in engine.spot_shock_pnl([make_position(quantity=1)], 100.0):
            if s.spot_change != 0:
                assert s.pnl_delta_hedged > 0

    def test_lot_size_scales_option_leg_only(self, config):
        pos = make_position(quantity=1)
        lots = ScenarioEngine(config.with_overrides(lot_size=10)).spot_shock_pnl([pos], 100.0)[4]
        single = ScenarioEngine(config).spot_shock_pnl([pos], 100.0)[4]
        hedge_leg = delta_hedge_shares([pos], lot_size=1) * 2.0
        assert lots.pnl_unhedged == pytest.approx(10 * single.pnl_unhedged)
        assert lots.pnl_delta_hedged == pytest.approx(lots.pnl_unhedged + hedge_leg)


class TestStrategyPnL:
    def test_no_change_is_zero(self, engine):
        legs = [StrategyLeg(make_option(), 1), StrategyLeg(make_option(option_type=OptionType.PUT), 1)]
        assert engine.strategy_pnl(legs, 100.0) == pytest.approx(0.0, abs=1e-12)

    def test_past_expiry_prices_at_intrinsic(self, engine):
        option = make_option()
        pnl = engine.strategy_pnl([StrategyLeg(option, 1)], 110.0, days_passed=40)
        assert pnl == pytest.approx(10.0 - option.price)

    def test_exactly_at_expiry(self, engine):
        option = make_option(option_type=OptionType.PUT)
        pnl = engine.strategy_pnl([StrategyLeg(option, 2)], 90.0, days_passed=30)
        assert pnl == pytest.approx(2 * (10.0 - option.price))

    def test_iv_shift_to_negative_prices_at_intrinsic(self, engine):
        option = make_option(iv=0.2)
        pnl = engine.strategy_pnl([StrategyLeg(option, 1)], 90.0, iv_shift=-0.5)
        assert pnl == pytest.approx(-option.price)

    def test_positive_iv_shift_helps_long_vol(self, engine):
        legs = [StrategyLeg(make_option(), 1)]
        assert engine.strategy_pnl(legs, 100.0, iv_shift=0.1) > 0

    def test_time_decay_hurts_long_option(self, engine):
        legs = [StrategyLeg(make_option(), 1)]
        assert engine.strategy_pnl(legs, 100.0, days_passed=10) < 0

    def test_works_on_portfolio_positions(self, engine):
        pos = make_position(quantity=-1)
        assert engine.strategy_pnl([pos], 100.0, days_passed=10) > 0

    def test_lot_size(self, engine):
        legs = [StrategyLeg(make_option(), 1)]
        assert engine.strategy_pnl(legs, 105.0, lot_size=50) == pytest.approx(
            50 * engine.strategy_pnl(legs, 105.0)
        )


class TestStrategyPnLGrid:
    def test_grid_shape(self, engine):
        grid = engine.strategy_pnl_grid([StrategyLeg(make_option(), 1)], 100.0)
        assert list(grid.columns) == ["spot", "pnl"]
        assert len(grid) == 41
        assert grid["spot"].iloc[0] == pytest.approx(80.0)
        assert grid["spot"].iloc[-1] == pytest.approx(120.0)

    def test_long_call_pnl_increases_with_spot(self, engine):
        grid = engine.strategy_pnl_grid([StrategyLeg(make_option(), 1)], 100.0, points=11)
        assert grid["pnl"].is_monotonic_increasing
