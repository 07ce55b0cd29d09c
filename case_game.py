"""Interactive terminal harness for Briefcase Banker.

This script drives ``game_session.GameSession`` from typed input so designers
can play full games before a graphical front end exists.

Key features:
* Optional RNG seed so a board can be replayed (share it with
  ``case_simulator.py --seed``).
* Sidebar of remaining values with opened and item-price marks.
* Bonus candidates hidden behind numbered cases, revealed after the pick.
* "Play again" starts a fresh session with new randomness.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from bonus_system import MULTIPLIER
from case_api import RULES_VERSION, GridCell, InvalidSelection, SidebarEntry, format_money
from game_session import (
    BonusOptionsPresented,
    GameEvent,
    GameSession,
    InvalidAction,
    OfferPresented,
    Phase,
    SwapProposed,
)
from seed_utils import resolve_seed


def format_sidebar_entry(entry: SidebarEntry) -> str:
    text = "ITEM PRICE" if entry.item_price else format_money(entry.denomination)
    if entry.opened:
        text = f"x {text}"
    return text


def display_sidebar(entries: Sequence[SidebarEntry]) -> None:
    half = (len(entries) + 1) // 2
    left, right = entries[:half], entries[half:]
    print("\nBoard:")
    for row, entry in enumerate(left):
        right_text = format_sidebar_entry(right[row]) if row < len(right) else ""
        print(f"  {format_sidebar_entry(entry):<16}{right_text}")


def display_grid(cells: Sequence[GridCell], columns: int = 6) -> None:
    print("\nCases:")
    row: List[str] = []
    for cell in cells:
        if cell.is_player:
            label = f"[{cell.index + 1:2d}]"
        elif cell.opened:
            label = "  --"
        else:
            label = f"  {cell.index + 1:2d}"
        row.append(label)
        if len(row) == columns:
            print("  " + " ".join(row))
            row = []
    if row:
        print("  " + " ".join(row))


def print_messages(session: GameSession) -> None:
    for message in session.consume_messages():
        print(f"  {message}")


def prompt_seed() -> Optional[int]:
    while True:
        raw = input("Optional RNG seed (blank for random): ").strip()
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            print("Please enter a valid integer seed.")


def prompt_case_number(prompt: str, allowed: Sequence[int]) -> int:
    """Ask for a 1-based case number among ``allowed`` (0-based indices)."""

    allowed_set = set(allowed)
    while True:
        raw = input(f"{prompt}: ").strip()
        if raw.isdigit() and int(raw) - 1 in allowed_set:
            return int(raw) - 1
        print("Please choose one of the listed case numbers.")


def prompt_yes_no(prompt: str) -> bool:
    while True:
        raw = input(f"{prompt} (y/n): ").strip().lower()
        if raw in {"y", "yes", "deal"}:
            return True
        if raw in {"n", "no", "no deal"}:
            return False
        print("Please answer y or n.")


def resolve_pending(session: GameSession, events: Sequence[GameEvent]) -> None:
    """Answer every decision the last action left open."""

    pending = list(events)
    while pending:
        event = pending.pop(0)
        print_messages(session)
        if isinstance(event, BonusOptionsPresented):
            count = len(event.options)
            print(f"\n{event.kind.title()} bonus: cases 1-{count} each hide a bonus.")
            choice = prompt_case_number("Pick a bonus case", range(count))
            if event.kind == MULTIPLIER:
                pending.extend(session.choose_multiplier_option(choice))
            else:
                pending.extend(session.choose_additive_option(choice))
        elif isinstance(event, SwapProposed):
            numbers = ", ".join(str(index + 1) for index in event.candidates)
            if prompt_yes_no("Swap your case?"):
                print(f"Available cases: {numbers}")
                target = prompt_case_number("Swap with case", event.candidates)
                pending.extend(session.accept_swap(target))
            else:
                pending.extend(session.decline_swap())
        elif isinstance(event, OfferPresented):
            if prompt_yes_no("Deal?"):
                pending.extend(session.accept_offer())
            else:
                pending.extend(session.decline_offer())
    print_messages(session)


def play_single_game(session: GameSession) -> Optional[int]:
    """Play until the game ends and return the accepted deal, if any."""

    print_messages(session)
    display_grid(session.grid())
    pick = prompt_case_number(
        "Pick your case", [cell.index for cell in session.grid() if cell.enabled]
    )
    resolve_pending(session, session.pick_container(pick))

    while not session.is_finished():
        display_sidebar(session.sidebar())
        display_grid(session.grid())
        allowed = [cell.index for cell in session.grid() if cell.enabled]
        target = prompt_case_number("Open case", allowed)
        try:
            events = session.open_container(target)
        except (InvalidSelection, InvalidAction) as exc:
            print(str(exc))
            continue
        resolve_pending(session, events)

    if session.phase is Phase.DEAL_ACCEPTED:
        return session.accepted_offer
    return None


def main() -> None:
    print(
        f"""
===============================================
 Briefcase Banker (terminal prototype)
 Version: {RULES_VERSION}
-----------------------------------------------
 * Pick a case to keep, then open the others.
 * Every third case the Banker calls with an offer or a swap.
 * Once per game a bonus may scale or shift the next offer.
===============================================
"""
    )

    seed, _ = resolve_seed(prompt_seed())
    print(f"\nUsing RNG seed: {seed}\n")
    session = GameSession(seed=seed)

    while True:
        deal = play_single_game(session)
        if deal is not None:
            print(f"Final winnings: {format_money(deal)}")
        else:
            content = session.pool.player_content()
            if content is not None:
                print(f"Final winnings: {content.label}")

        if not prompt_yes_no("Play again?"):
            print("Thanks for playing!")
            break
        session = session.start_new_session()
        print(f"\nUsing RNG seed: {session.seed}\n")


if __name__ == "__main__":
    main()
