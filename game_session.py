"""State machine for a single game: pick, reveal, checkpoint, deal or reveal.

A front end calls one inbound operation per player action and renders the
events it returns.  Nothing here waits, blocks or touches a widget.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from banker import Banker
from bonus_system import ADDITIVE, MULTIPLIER, BonusEngine, BonusOption
from case_api import (
    CaseContent,
    ContainerPool,
    GameRules,
    GridCell,
    InvalidSelection,
    SidebarEntry,
    format_money,
)
from seed_utils import resolve_seed


class Phase(Enum):
    AWAITING_PICK = "awaiting_pick"
    REVEALING = "revealing"
    SWAP_OFFERED = "swap_offered"
    MULTIPLIER_CHOICE = "multiplier_choice"
    ADDITIVE_CHOICE = "additive_choice"
    CASH_OFFER = "cash_offer"
    DEAL_ACCEPTED = "deal_accepted"
    GAME_OVER = "game_over"


TERMINAL_PHASES = frozenset({Phase.DEAL_ACCEPTED, Phase.GAME_OVER})


class InvalidAction(Exception):
    """Raised when an operation does not fit the session's current phase."""

    def __init__(self, message: str, phase: Phase) -> None:
        super().__init__(message)
        self.phase = phase


# ----------------- Outbound events -----------------
@dataclass(frozen=True)
class CasePicked:
    index: int


@dataclass(frozen=True)
class ContainerRevealed:
    index: int
    content: CaseContent


@dataclass(frozen=True)
class SwapProposed:
    candidates: Tuple[int, ...]


@dataclass(frozen=True)
class SwapCompleted:
    from_index: int
    to_index: int


@dataclass(frozen=True)
class BonusOptionsPresented:
    kind: str
    options: Tuple[BonusOption, ...]


@dataclass(frozen=True)
class BonusChosen:
    option: BonusOption


@dataclass(frozen=True)
class OfferPresented:
    """A cash offer; ``base_amount`` differs from ``amount`` when a bonus applied."""

    amount: int
    base_amount: int
    bonus_description: str = ""


@dataclass(frozen=True)
class FinalRevealed:
    index: int
    content: CaseContent


@dataclass(frozen=True)
class DealAccepted:
    amount: int
    actual_content: CaseContent


@dataclass(frozen=True)
class GameOver:
    deal_amount: Optional[int]
    player_content: CaseContent


GameEvent = Union[
    CasePicked,
    ContainerRevealed,
    SwapProposed,
    SwapCompleted,
    BonusOptionsPresented,
    BonusChosen,
    OfferPresented,
    FinalRevealed,
    DealAccepted,
    GameOver,
]


class GameSession:
    """Manage the board, the banker and the bonus for a single game."""

    def __init__(
        self,
        rules: Optional[GameRules] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        item_count: Optional[int] = None,
    ) -> None:
        self.rules = rules or GameRules()
        if rng is not None:
            self.rng = rng
            # an injected rng carries its own state
            self.seed: Optional[int] = None
        else:
            resolved_seed, resolved_rng = resolve_seed(seed)
            self.rng = resolved_rng
            self.seed = resolved_seed
        self._messages: List[str] = []
        self.initialize(item_count)

    def initialize(self, item_count: Optional[int] = None) -> None:
        """Deal a new board and reset every counter and bonus flag."""

        self.pool = ContainerPool(self.rules, self.rng)
        self.pool.build(item_count)
        self.banker = Banker(self.rules, self.rng)
        self.bonus = BonusEngine(self.rules, self.rng)
        self.phase = Phase.AWAITING_PICK
        self.opened_count = 0
        self.current_offer: Optional[int] = None
        self.accepted_offer: Optional[int] = None
        self.offer_history: List[int] = []
        self._bonus_options: Tuple[BonusOption, ...] = ()
        self._messages.clear()
        items = len(self.pool.item_denominations())
        if items:
            noun = "item" if items == 1 else "items"
            self._push_message(
                f"{items} {noun} hidden among the cases replace cash values on the board."
            )
        self._push_message("Pick the case you want to keep until the end.")

    # ----------------- Message helpers -----------------
    def _push_message(self, message: str) -> None:
        self._messages.append(message)

    def consume_messages(self) -> List[str]:
        messages = list(self._messages)
        self._messages.clear()
        return messages

    # ----------------- Queries -----------------
    @property
    def player_index(self) -> int:
        return self.pool.player_index

    @property
    def bonus_options(self) -> Tuple[BonusOption, ...]:
        return self._bonus_options

    def is_finished(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def sidebar(self) -> List[SidebarEntry]:
        return self.pool.sidebar()

    def grid(self) -> List[GridCell]:
        cells = self.pool.grid()
        if self.phase is Phase.AWAITING_PICK:
            return [
                GridCell(cell.index, cell.opened, cell.is_player, not cell.opened)
                for cell in cells
            ]
        if self.phase is not Phase.REVEALING:
            return [
                GridCell(cell.index, cell.opened, cell.is_player, False) for cell in cells
            ]
        return cells

    # ----------------- Player actions -----------------
    def pick_container(self, index: int) -> List[GameEvent]:
        if self.phase is not Phase.AWAITING_PICK:
            raise InvalidSelection(
                f"Case {self.player_index + 1} is already yours until the end.",
                index,
                reason="already_picked",
            )
        self.pool.select(index)
        self.phase = Phase.REVEALING
        self._push_message(f"You chose Case {index + 1}. This is your case until the end!")
        return [CasePicked(index)]

    def open_container(self, index: int) -> List[GameEvent]:
        self._require_phase(Phase.REVEALING, "open a case")
        content = self.pool.open(index)
        self.opened_count += 1
        self._push_message(f"Case {index + 1} contained {content.label}.")
        events: List[GameEvent] = [ContainerRevealed(index, content)]
        if self.opened_count % self.rules.checkpoint_interval == 0:
            events.extend(self._checkpoint())
        elif self.pool.unopened_count() == 1:
            events.extend(self._final_reveal())
        return events

    def accept_offer(self) -> List[GameEvent]:
        self._require_phase(Phase.CASH_OFFER, "accept an offer")
        amount = self.current_offer if self.current_offer is not None else 0
        content = self.pool.player_content()
        if content is None:
            raise InvalidAction("No case has been picked yet.", self.phase)
        self.accepted_offer = amount
        self.current_offer = None
        self.phase = Phase.DEAL_ACCEPTED
        self._push_message(
            f"Deal! You accepted {format_money(amount)}. "
            f"Your case (Case {self.player_index + 1}) contained {content.label}."
        )
        return [DealAccepted(amount, content), GameOver(amount, content)]

    def decline_offer(self) -> List[GameEvent]:
        self._require_phase(Phase.CASH_OFFER, "decline an offer")
        self.current_offer = None
        self.phase = Phase.REVEALING
        self._push_message("No deal. Keep opening cases.")
        return []

    def accept_swap(self, target_index: int) -> List[GameEvent]:
        self._require_phase(Phase.SWAP_OFFERED, "swap cases")
        old_index = self.player_index
        self.pool.swap(old_index, target_index)
        self.pool.player_index = target_index
        self.phase = Phase.REVEALING
        self._push_message(f"You swapped to Case {target_index + 1}.")
        return [SwapCompleted(old_index, target_index)]

    def decline_swap(self) -> List[GameEvent]:
        self._require_phase(Phase.SWAP_OFFERED, "decline a swap")
        self.phase = Phase.REVEALING
        self._push_message(f"You kept Case {self.player_index + 1}.")
        return []

    def choose_multiplier_option(self, choice_index: int) -> List[GameEvent]:
        self._require_phase(Phase.MULTIPLIER_CHOICE, "choose a multiplier")
        return self._choose_bonus(choice_index)

    def choose_additive_option(self, choice_index: int) -> List[GameEvent]:
        self._require_phase(Phase.ADDITIVE_CHOICE, "choose an additive bonus")
        return self._choose_bonus(choice_index)

    def start_new_session(self, seed: Optional[int] = None) -> "GameSession":
        """Return a brand-new game with fresh randomness and no carried state."""

        return GameSession(self.rules, seed=seed)

    # ----------------- Checkpoint flow -----------------
    def _checkpoint(self) -> List[GameEvent]:
        if self.pool.unopened_count() == 1:
            return self._final_reveal()
        if self.bonus.maybe_trigger():
            kinds = self.bonus.available_kinds()
            if kinds:
                self._push_message("Bonus round! Pick a case to reveal your bonus.")
            return self._advance_bonus_sequence()
        return self._banker_turn()

    def _advance_bonus_sequence(self) -> List[GameEvent]:
        if self.bonus.has_multiplier():
            return self._present_bonus(MULTIPLIER, Phase.MULTIPLIER_CHOICE)
        if self.bonus.has_additive():
            return self._present_bonus(ADDITIVE, Phase.ADDITIVE_CHOICE)
        self._bonus_options = ()
        return self._banker_turn()

    def _present_bonus(self, kind: str, phase: Phase) -> List[GameEvent]:
        self._bonus_options = tuple(self.bonus.options_for(kind))
        self.phase = phase
        return [BonusOptionsPresented(kind, self._bonus_options)]

    def _choose_bonus(self, choice_index: int) -> List[GameEvent]:
        if not 0 <= choice_index < len(self._bonus_options):
            raise InvalidSelection(
                f"Pick one of the {len(self._bonus_options)} bonus cases.",
                choice_index,
                reason="invalid_choice",
            )
        option = self._bonus_options[choice_index]
        self.bonus.choose(option)
        self._push_message(f"{option.kind.title()} bonus selected: you got {option.label}.")
        events: List[GameEvent] = [BonusChosen(option)]
        events.extend(self._advance_bonus_sequence())
        return events

    def _banker_turn(self) -> List[GameEvent]:
        if self.banker.should_propose_swap():
            self.phase = Phase.SWAP_OFFERED
            self._push_message(
                "The Banker offers to swap your case with another unopened one."
            )
            return [SwapProposed(tuple(self.pool.swap_candidates()))]
        return self._present_offer()

    def _present_offer(self) -> List[GameEvent]:
        base_amount = self.banker.compute_offer(self.pool.remaining_values())
        amount = base_amount
        description = ""
        if self.bonus.has_pending():
            description = self.bonus.describe()
            amount = self.bonus.apply(base_amount)
            self._push_message(
                f"Bonus applied! {description}. Original offer {format_money(base_amount)}, "
                f"new offer {format_money(amount)}."
            )
        self.current_offer = amount
        self.offer_history.append(amount)
        self.phase = Phase.CASH_OFFER
        self._push_message(f"The Banker offers you {format_money(amount)}. Deal or no deal?")
        return [OfferPresented(amount, base_amount, description)]

    def _final_reveal(self) -> List[GameEvent]:
        index = self.player_index
        content = self.pool.reveal_player()
        self.phase = Phase.GAME_OVER
        self._push_message(f"Your case (Case {index + 1}) contains {content.label}.")
        return [FinalRevealed(index, content), GameOver(None, content)]

    def _require_phase(self, expected: Phase, action: str) -> None:
        if self.phase is not expected:
            raise InvalidAction(
                f"Cannot {action} while the game is in the {self.phase.value} phase.",
                self.phase,
            )


__all__ = [
    "BonusChosen",
    "BonusOptionsPresented",
    "CasePicked",
    "ContainerRevealed",
    "DealAccepted",
    "FinalRevealed",
    "GameEvent",
    "GameOver",
    "GameSession",
    "InvalidAction",
    "OfferPresented",
    "Phase",
    "SwapCompleted",
    "SwapProposed",
]
