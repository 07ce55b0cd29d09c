"""Monte Carlo simulator for Briefcase Banker.

Plays many complete games with an automated player and reports how the banker,
the swap mechanic and the bonus shape the payouts.  Every run is reproducible
from the printed seed.
"""
from __future__ import annotations

import argparse
import csv
import os
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from bonus_system import MULTIPLIER
from case_api import RULES_VERSION, GameRules
from game_session import (
    BonusOptionsPresented,
    GameEvent,
    GameSession,
    OfferPresented,
    Phase,
    SwapProposed,
)
from seed_utils import RandomSource, resolve_seed

STRATEGIES = ("no_deal", "threshold")

PRIMARY_SUMMARY_KEYS: Tuple[str, ...] = (
    "runs",
    "strategy",
    "deal_threshold",
    "accept_swaps",
    "seed",
)


@dataclass
class SimulationConfig:
    runs: int = 1000
    strategy: str = "threshold"
    deal_threshold: float = 0.85
    accept_swaps: bool = False

    def __post_init__(self) -> None:
        if self.runs <= 0:
            raise ValueError("SimulationConfig.runs must be a positive integer")
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"SimulationConfig.strategy must be one of: {', '.join(STRATEGIES)}"
            )
        if self.deal_threshold <= 0:
            raise ValueError("SimulationConfig.deal_threshold must be positive")


def wants_deal(
    session: GameSession, offer: OfferPresented, config: SimulationConfig
) -> bool:
    """Return True when the automated player takes ``offer``."""

    if config.strategy == "no_deal":
        return False
    expected = session.banker.expected_value(session.pool.remaining_values())
    return offer.amount >= config.deal_threshold * expected


def simulate_game(
    config: SimulationConfig,
    rng: RandomSource,
    rules: Optional[GameRules] = None,
) -> Dict[str, object]:
    """Play one game to the end and return its statistics."""

    session = GameSession(rules, rng=rng)
    session.pick_container(rng.randrange(session.rules.case_count))

    offers: List[int] = []
    swaps_proposed = 0
    swaps_taken = 0
    bonus_options_seen = 0

    while not session.is_finished():
        target = rng.choice(session.pool.swap_candidates())
        pending: Deque[GameEvent] = deque(session.open_container(target))
        while pending:
            event = pending.popleft()
            if isinstance(event, BonusOptionsPresented):
                bonus_options_seen += 1
                choice = rng.randrange(len(event.options))
                if event.kind == MULTIPLIER:
                    pending.extend(session.choose_multiplier_option(choice))
                else:
                    pending.extend(session.choose_additive_option(choice))
            elif isinstance(event, SwapProposed):
                swaps_proposed += 1
                if config.accept_swaps:
                    swaps_taken += 1
                    pending.extend(session.accept_swap(rng.choice(event.candidates)))
                else:
                    pending.extend(session.decline_swap())
            elif isinstance(event, OfferPresented):
                offers.append(event.amount)
                if wants_deal(session, event, config):
                    pending.extend(session.accept_offer())
                else:
                    pending.extend(session.decline_offer())

    content = session.pool.player_content()
    case_value = content.value if content is not None and content.value is not None else 0
    dealt = session.phase is Phase.DEAL_ACCEPTED
    payout = session.accepted_offer if dealt and session.accepted_offer is not None else case_value
    return {
        "payout": payout,
        "dealt": dealt,
        "case_value": case_value,
        "case_is_item": content is not None and content.is_item,
        "item_won": content is not None and content.is_item and not dealt,
        "offers": offers,
        "opened": session.opened_count,
        "bonus_fired": session.bonus.fired,
        "bonus_choices": bonus_options_seen,
        "swaps_proposed": swaps_proposed,
        "swaps_taken": swaps_taken,
    }


def deal_regret(result: Dict[str, object]) -> Optional[int]:
    """Cash left on the table by a deal, or None when no cash comparison exists."""

    if not result["dealt"] or result["case_is_item"]:
        return None
    return int(result["case_value"]) - int(result["payout"])  # type: ignore[arg-type]


def summarize_payouts(payouts: Sequence[float]) -> Tuple[float, float, float, float, float]:
    arr = np.asarray(payouts, dtype=float)
    if arr.size == 0:
        return 0.0, 0.0, 0.0, 0.0, 0.0
    return (
        float(np.mean(arr)),
        float(np.std(arr)),
        float(np.percentile(arr, 50)),
        float(np.percentile(arr, 90)),
        float(np.percentile(arr, 99)),
    )


def simulate_many(
    config: SimulationConfig,
    seed: Optional[int] = None,
    rules: Optional[GameRules] = None,
) -> Tuple[Dict[str, object], List[int], List[List[int]]]:
    seed_used, rng = resolve_seed(seed)

    payouts: List[int] = []
    offers_per_game: List[List[int]] = []
    deals = 0
    items_won = 0
    bonus_games = 0
    swaps_proposed = 0
    swaps_taken = 0
    regret_total = 0
    cash_deals = 0
    item_deals = 0

    for _ in range(config.runs):
        result = simulate_game(config, rng, rules)
        payouts.append(int(result["payout"]))  # type: ignore[arg-type]
        offers_per_game.append(list(result["offers"]))  # type: ignore[arg-type]
        if result["dealt"]:
            deals += 1
            regret = deal_regret(result)
            if regret is None:
                item_deals += 1
            else:
                cash_deals += 1
                regret_total += regret
        if result["item_won"]:
            items_won += 1
        if result["bonus_fired"]:
            bonus_games += 1
        swaps_proposed += int(result["swaps_proposed"])  # type: ignore[arg-type]
        swaps_taken += int(result["swaps_taken"])  # type: ignore[arg-type]

    mean_val, std_val, p50, p90, p99 = summarize_payouts(payouts)
    all_offers = [offer for game in offers_per_game for offer in game]
    runs = config.runs
    summary: Dict[str, object] = {
        "runs": runs,
        "strategy": config.strategy,
        "deal_threshold": config.deal_threshold,
        "accept_swaps": config.accept_swaps,
        "seed": seed_used,
        "average_payout": round(mean_val, 2),
        "std_payout": round(std_val, 2),
        "p50": round(p50, 2),
        "p90": round(p90, 2),
        "p99": round(p99, 2),
        "deal_rate_pct": round(100.0 * deals / runs, 1),
        "item_win_rate_pct": round(100.0 * items_won / runs, 1),
        "bonus_rate_pct": round(100.0 * bonus_games / runs, 1),
        "avg_offers_per_game": round(len(all_offers) / runs, 2),
        "average_offer": round(float(np.mean(all_offers)), 2) if all_offers else 0.0,
        "swaps_proposed": swaps_proposed,
        "swaps_taken": swaps_taken,
        "item_deals": item_deals,
        "avg_deal_regret": round(regret_total / cash_deals, 2) if cash_deals else 0.0,
    }
    return summary, payouts, offers_per_game


def iter_summary_items(summary: Dict[str, object]) -> Iterator[Tuple[str, object]]:
    """Yield summary entries in a stable order for console and reports."""

    seen: set[str] = set()
    for key in PRIMARY_SUMMARY_KEYS:
        if key in summary:
            seen.add(key)
            yield key, summary[key]
    for key, value in summary.items():
        if key not in seen:
            yield key, value


def ensure_dir(path: str) -> None:
    if path and not os.path.exists(path):
        os.makedirs(path, exist_ok=True)


def format_report_header() -> str:
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    return f"=== Briefcase Banker Report (Rules v{RULES_VERSION}) ===\nGenerated: {timestamp}\n"


def write_report_files(
    out_dir: str,
    summary: Dict[str, object],
    payouts: Sequence[int],
    offers_per_game: Sequence[Sequence[int]],
) -> Dict[str, str]:
    ensure_dir(out_dir)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    base_name = (
        f"report_{summary.get('strategy')}_runs{summary.get('runs')}"
        f"_seed{summary.get('seed')}_{timestamp}"
    )

    txt_path = os.path.join(out_dir, base_name + ".txt")
    with open(txt_path, "w", encoding="utf-8") as handle:
        handle.write(format_report_header())
        handle.write("\n")
        for key, value in iter_summary_items(summary):
            handle.write(f"{key}: {value}\n")

    csv_payouts = os.path.join(out_dir, base_name + "_payouts.csv")
    with open(csv_payouts, "w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(["RunIndex", "Payout"])
        for index, payout in enumerate(payouts):
            writer.writerow([index, payout])

    csv_offers = os.path.join(out_dir, base_name + "_offers.csv")
    with open(csv_offers, "w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(["RunIndex", "OfferIndex", "Amount"])
        for run_index, offers in enumerate(offers_per_game):
            for offer_index, amount in enumerate(offers):
                writer.writerow([run_index, offer_index, amount])

    return {
        "summary_txt": txt_path,
        "payouts_csv": csv_payouts,
        "offers_csv": csv_offers,
    }


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Briefcase Banker Simulator")
    default_config = SimulationConfig()
    parser.add_argument(
        "--runs",
        type=int,
        default=default_config.runs,
        help=f"Number of games to simulate (default={default_config.runs})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="RNG seed for reproducibility (default=None=randomized)",
    )
    parser.add_argument(
        "--strategy",
        choices=STRATEGIES,
        default=default_config.strategy,
        help=f"Automated player strategy (default={default_config.strategy})",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=default_config.deal_threshold,
        help=(
            "Accept an offer once it reaches this fraction of the remaining "
            f"average (default={default_config.deal_threshold})"
        ),
    )
    parser.add_argument(
        "--accept-swaps",
        action="store_true",
        help="Take every swap the banker proposes",
    )
    parser.add_argument(
        "--out",
        type=str,
        default="reports",
        help="Output folder for report files (default=reports)",
    )
    args = parser.parse_args(argv)

    if args.runs <= 0:
        raise SystemExit("--runs must be a positive integer")
    if args.threshold <= 0:
        raise SystemExit("--threshold must be positive")
    if args.seed is not None and args.seed < 0:
        raise SystemExit("--seed must be a non-negative integer")

    seed_used, _ = resolve_seed(args.seed)
    print(f"Using RNG seed: {seed_used}")

    config = SimulationConfig(
        runs=args.runs,
        strategy=args.strategy,
        deal_threshold=args.threshold,
        accept_swaps=args.accept_swaps,
    )
    summary, payouts, offers_per_game = simulate_many(config, seed=seed_used)

    print(f"=== SUMMARY (Rules v{RULES_VERSION}) ===")
    for key, value in iter_summary_items(summary):
        print(f"{key}: {value}")

    paths = write_report_files(args.out, summary, payouts, offers_per_game)
    print("\nFiles written:")
    for label, path in paths.items():
        print(f" - {label}: {path}")


if __name__ == "__main__":
    main()
