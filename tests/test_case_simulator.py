import csv
import random

import pytest

from case_api import DENOMINATIONS, GameRules
from case_simulator import (
    SimulationConfig,
    main,
    simulate_game,
    deal_regret,
    simulate_many,
    summarize_payouts,
    write_report_files,
)


def test_no_deal_strategy_always_plays_to_final_reveal() -> None:
    config = SimulationConfig(runs=1, strategy="no_deal")
    for seed in range(10):
        result = simulate_game(config, random.Random(seed))
        assert not result["dealt"]
        assert result["opened"] == 24
        assert result["payout"] == result["case_value"]
        assert result["payout"] == 0 or result["payout"] in DENOMINATIONS
        assert len(result["offers"]) + result["swaps_proposed"] <= 8


def test_threshold_strategy_accepts_generous_offers() -> None:
    config = SimulationConfig(runs=1, strategy="threshold", deal_threshold=0.01)
    rules = GameRules(bonus_trigger_probability=0.0)
    for seed in range(5):
        result = simulate_game(config, random.Random(seed), rules)
        assert result["dealt"] == bool(result["offers"])
        if result["dealt"]:
            assert len(result["offers"]) == 1
            assert result["payout"] == result["offers"][0]


def test_simulate_many_is_reproducible() -> None:
    config = SimulationConfig(runs=30, accept_swaps=True)
    first = simulate_many(config, seed=1234)
    second = simulate_many(config, seed=1234)

    assert first[1] == second[1]
    assert first[2] == second[2]
    summary = first[0]
    assert summary["runs"] == 30
    assert summary["seed"] == 1234
    assert 0.0 <= summary["deal_rate_pct"] <= 100.0
    assert summary["swaps_taken"] == summary["swaps_proposed"]


def test_summarize_payouts() -> None:
    mean_val, std_val, p50, p90, p99 = summarize_payouts([10, 20, 30, 40])
    assert mean_val == pytest.approx(25.0)
    assert std_val == pytest.approx(11.1803, rel=1e-4)
    assert p50 == pytest.approx(25.0)
    assert summarize_payouts([]) == (0.0, 0.0, 0.0, 0.0, 0.0)


def test_config_validation() -> None:
    with pytest.raises(ValueError):
        SimulationConfig(runs=0)
    with pytest.raises(ValueError):
        SimulationConfig(strategy="always_deal")
    with pytest.raises(ValueError):
        SimulationConfig(deal_threshold=0)


def test_report_files_are_written(tmp_path) -> None:
    summary, payouts, offers = simulate_many(SimulationConfig(runs=5), seed=7)
    paths = write_report_files(str(tmp_path), summary, payouts, offers)

    with open(paths["summary_txt"], encoding="utf-8") as handle:
        text = handle.read()
    assert "Briefcase Banker Report" in text
    assert "average_payout:" in text

    with open(paths["payouts_csv"], newline="", encoding="utf-8") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == ["RunIndex", "Payout"]
    assert [int(row[1]) for row in rows[1:]] == payouts


def test_cli_rejects_bad_arguments() -> None:
    with pytest.raises(SystemExit):
        main(["--runs", "0"])


def test_cli_writes_reports(tmp_path, capsys) -> None:
    main(["--runs", "3", "--seed", "11", "--out", str(tmp_path)])
    output = capsys.readouterr().out
    assert "Using RNG seed: 11" in output
    assert len(list(tmp_path.iterdir())) == 3


def test_deal_regret_ignores_item_cases() -> None:
    cash = {"dealt": True, "case_is_item": False, "case_value": 1000, "payout": 400}
    item = {"dealt": True, "case_is_item": True, "case_value": 0, "payout": 400}
    played = {"dealt": False, "case_is_item": False, "case_value": 50, "payout": 50}

    assert deal_regret(cash) == 600
    assert deal_regret(item) is None
    assert deal_regret(played) is None


def test_average_regret_covers_cash_deals_only() -> None:
    config = SimulationConfig(runs=40, deal_threshold=0.01)
    summary, _, _ = simulate_many(config, seed=21)

    rng = random.Random(21)
    results = [simulate_game(config, rng) for _ in range(config.runs)]
    regrets = [deal_regret(result) for result in results]
    cash = [regret for regret in regrets if regret is not None]
    item_deals = sum(1 for result in results if result["dealt"] and result["case_is_item"])

    assert summary["item_deals"] == item_deals
    expected = round(sum(cash) / len(cash), 2) if cash else 0.0
    assert summary["avg_deal_regret"] == expected
