"""
Tests for the headless calculator session.
"""

import asyncio
import logging
import math

import pytest
from conftest import Reply, rate_body

from karbon_fx.calculator.models import ProviderId
from karbon_fx.calculator.session import CalculatorSession
from karbon_fx.rate_client.watcher import RateWatcher
from karbon_fx.shared.errors import InputValidationError

LIVE_RATE = 87.9536
DELAY = 0.02


@pytest.fixture
def watcher(rate_service, rate_endpoint):
    rate_endpoint.script(Reply(body=rate_body(LIVE_RATE)))
    return RateWatcher(rate_service)


@pytest.fixture
def session(watcher):
    calculator = CalculatorSession(watcher, amount_delay=DELAY, rate_delay=DELAY)
    yield calculator
    calculator.close()


async def settle():
    await asyncio.sleep(DELAY * 5)


class TestCalculatorSession:
    """Test cases for the calculator session."""

    @pytest.mark.asyncio
    async def test_uses_fallback_before_first_rate(self, session):
        """Test that the session computes against the fallback until a rate arrives."""
        assert session.live_rate == 84.5
        assert session.summary.live_rate == 84.5
        # Both default competitors beat the fallback rate.
        assert session.summary.best_provider is None

    @pytest.mark.parametrize(
        "seed,field",
        [
            ({"initial_amount": 50}, "amount"),
            ({"bank_rate": "0"}, "bank_rate"),
            ({"paypal_rate": "250"}, "paypal_rate"),
        ],
    )
    @pytest.mark.asyncio
    async def test_rejects_invalid_seed(self, watcher, seed, field):
        """Test that construction refuses out-of-range starting values."""
        with pytest.raises(InputValidationError) as exc_info:
            CalculatorSession(watcher, **seed)
        assert exc_info.value.details.get("field") == field

    @pytest.mark.asyncio
    async def test_recalculates_on_new_rate(self, session, watcher):
        """Test that a published rate triggers a recalculation."""
        summaries = []
        session.subscribe(summaries.append)

        await watcher.refetch()

        assert session.live_rate == LIVE_RATE
        assert len(summaries) == 1
        bank = session.summary.result_for(ProviderId.BANK)
        assert bank.savings_vs_reference == pytest.approx(2781.80)
        assert session.summary.best_provider is ProviderId.BANK

    @pytest.mark.asyncio
    async def test_amount_change_is_debounced(self, session):
        """Test that typing echoes at once but recalculates after the quiet period."""
        assert session.change_amount("2") == "2"
        assert session.change_amount("2,0") == "20"
        assert session.change_amount("2,000") == "2,000"
        assert session.summary.usd_amount == 1000

        await settle()

        assert session.summary.usd_amount == 2000

    @pytest.mark.asyncio
    async def test_blur_amount_commits_immediately(self, session):
        """Test that blur clamps and recalculates without waiting."""
        session.change_amount("50")

        assert session.blur_amount() == "Minimum is $100"
        assert session.amount.display == "100"
        assert session.summary.usd_amount == 100

    @pytest.mark.asyncio
    async def test_rate_edit(self, session, watcher):
        """Test that an edited bank rate changes the bank row."""
        await watcher.refetch()

        assert session.change_rate(ProviderId.BANK, "86.00") == "86.00"
        await settle()

        bank = session.summary.result_for(ProviderId.BANK)
        assert bank.total_local == pytest.approx(86000.00)
        assert bank.savings_vs_reference == pytest.approx(1953.60)
        assert session.summary.best_provider is ProviderId.PAYPAL

    @pytest.mark.asyncio
    async def test_blur_rate_commits_immediately(self, session, watcher):
        """Test that blurring a rate recalculates without waiting."""
        await watcher.refetch()

        session.change_rate(ProviderId.BANK, "86.00")
        assert session.blur_rate(ProviderId.BANK) is None

        bank = session.summary.result_for(ProviderId.BANK)
        assert bank.total_local == pytest.approx(86000.00)
        assert session.summary.best_provider is ProviderId.PAYPAL

    @pytest.mark.asyncio
    async def test_cleared_rate(self, session, watcher):
        """Test that an empty rate leaves the row uncomputable."""
        await watcher.refetch()

        session.change_rate(ProviderId.BANK, "")
        await settle()

        assert session.blur_rate(ProviderId.BANK) == "A valid rate is required."
        bank = session.summary.result_for(ProviderId.BANK)
        assert math.isnan(bank.total_local)
        row = session.formatted_rows()[1]
        assert row["provider"] == "bank"
        assert row["total_local"] == "—"

    @pytest.mark.asyncio
    async def test_platform_fee(self, session, watcher):
        """Test that the platform fee applies on change and clamps on blur."""
        await watcher.refetch()

        session.change_platform_fee("1.18")
        assert session.summary.platform_fee.percentage == 1.18

        session.change_platform_fee("25")
        assert session.blur_platform_fee() == "10"
        assert session.summary.platform_fee.percentage == 10

    @pytest.mark.asyncio
    async def test_bank_charges_with_fees(self, watcher):
        """Test that bank charges only matter when fees are included."""
        calculator = CalculatorSession(
            watcher, include_fees=True, amount_delay=DELAY, rate_delay=DELAY
        )
        await watcher.refetch()

        before = calculator.summary.result_for(ProviderId.BANK).total_local
        calculator.set_bank_charges("500")
        after = calculator.summary.result_for(ProviderId.BANK).total_local
        assert before - after == pytest.approx(500)

        calculator.set_bank_charges("abc")
        assert calculator.bank_charges == 0
        calculator.close()

    @pytest.mark.asyncio
    async def test_formatted_rows(self, session, watcher):
        """Test the display strings of every row."""
        await watcher.refetch()

        rows = session.formatted_rows()

        assert [r["provider"] for r in rows] == ["karbon", "bank", "paypal"]
        assert rows[0]["total_local"] == "₹87,953.60"
        assert rows[0]["savings"] == "₹0.00"
        assert rows[1]["offered_rate"] == "85.1718"
        assert rows[1]["markup_per_usd"] == "2.7818"
        assert rows[1]["savings"] == "₹2,781.80"
        assert rows[1]["is_best"] is True

    @pytest.mark.asyncio
    async def test_close_cancels_pending(self, watcher):
        """Test that closing drops pending edits and detaches from the watcher."""
        calculator = CalculatorSession(watcher, amount_delay=DELAY, rate_delay=DELAY)
        summaries = []
        calculator.subscribe(summaries.append)

        calculator.change_amount("5000")
        calculator.close()
        await settle()
        await watcher.refetch()

        assert summaries == []
        assert calculator.summary.usd_amount == 1000

    @pytest.mark.asyncio
    async def test_unsubscribe_twice(self, session, watcher):
        """Test that unsubscribing twice is harmless."""
        summaries = []
        unsubscribe = session.subscribe(summaries.append)

        unsubscribe()
        unsubscribe()
        await watcher.refetch()

        assert summaries == []

    @pytest.mark.asyncio
    async def test_listener_exception_isolated(self, session, watcher, caplog):
        """Test that a failing listener does not stop the others."""
        summaries = []

        def broken(summary):
            raise RuntimeError("listener failed")

        session.subscribe(broken)
        session.subscribe(summaries.append)

        with caplog.at_level(logging.ERROR):
            await watcher.refetch()

        assert len(summaries) == 1
        assert session.live_rate == LIVE_RATE
        assert "Error in summary listener" in caplog.text
