"""Board data, game rules and the case pool shared by every front end."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple

from seed_utils import RandomSource

RULES_VERSION = "1.2.0"

DENOMINATIONS: Tuple[int, ...] = (
    1,
    5,
    10,
    25,
    50,
    75,
    100,
    200,
    300,
    400,
    500,
    750,
    1000,
    5000,
    10000,
    12500,
    25000,
    50000,
    75000,
    100000,
    200000,
    300000,
    400000,
    500000,
    750000,
    1000000,
)

ITEM_NAMES: Tuple[str, ...] = (
    "Luxury Watch",
    "Smartphone",
    "Laptop",
    "Vacation Package",
    "TV",
    "Gaming Console",
    "Bicycle",
    "Headphones",
    "Gift Card",
    "Camera",
    "Jewelry",
    "Car Rental",
    "Concert Tickets",
    "Spa Voucher",
    "Restaurant Meal",
    "Fitness Tracker",
    "Drone",
    "Tablet",
)


def format_money(value: int) -> str:
    return f"${value:,}"


@dataclass(frozen=True)
class GameRules:
    """Every tunable constant of a game.

    The defaults describe the standard 26-case board.  Front ends never expose
    these as options; smaller boards are only built by tests.
    """

    denominations: Tuple[int, ...] = DENOMINATIONS
    item_names: Tuple[str, ...] = ITEM_NAMES
    checkpoint_interval: int = 3
    max_items: int = 3
    swap_probability: float = 0.20
    offer_factor_range: Tuple[float, float] = (0.60, 0.95)
    bonus_trigger_probability: float = 0.30
    bonus_eligibility_probability: float = 0.50
    multiplier_choice_count: int = 5
    multiplier_range: Tuple[int, int] = (2, 5)
    additive_choice_count: int = 10
    additive_step: int = 100
    additive_steps: int = 20

    def __post_init__(self) -> None:
        denominations = tuple(int(value) for value in self.denominations)
        object.__setattr__(self, "denominations", denominations)
        object.__setattr__(self, "item_names", tuple(self.item_names))
        if len(denominations) < 3:
            raise ValueError("GameRules.denominations needs at least three values")
        if any(value <= 0 for value in denominations):
            raise ValueError("GameRules.denominations must all be positive")
        if len(set(denominations)) != len(denominations):
            raise ValueError("GameRules.denominations must be distinct")
        if not 0 <= self.max_items <= len(denominations) - 2:
            raise ValueError(
                "GameRules.max_items must leave the minimum and maximum cases numeric"
            )
        if self.max_items > 0 and not self.item_names:
            raise ValueError("GameRules.item_names cannot be empty when items are enabled")
        if self.checkpoint_interval <= 0:
            raise ValueError("GameRules.checkpoint_interval must be positive")
        for name in (
            "swap_probability",
            "bonus_trigger_probability",
            "bonus_eligibility_probability",
        ):
            probability = getattr(self, name)
            if not 0.0 <= probability <= 1.0:
                raise ValueError(f"GameRules.{name} must be between 0 and 1")
        low, high = self.offer_factor_range
        if not 0.0 < low <= high:
            raise ValueError("GameRules.offer_factor_range must satisfy 0 < low <= high")
        low_q, high_q = self.multiplier_range
        if not 2 <= low_q <= high_q:
            raise ValueError("GameRules.multiplier_range must satisfy 2 <= low <= high")
        if self.multiplier_choice_count <= 0 or self.additive_choice_count <= 0:
            raise ValueError("GameRules choice counts must be positive")
        if self.additive_step <= 0 or self.additive_steps <= 0:
            raise ValueError("GameRules additive step settings must be positive")

    @property
    def case_count(self) -> int:
        return len(self.denominations)

    @property
    def lowest(self) -> int:
        return min(self.denominations)

    @property
    def highest(self) -> int:
        return max(self.denominations)


class InvalidSelection(Exception):
    """Raised when the player targets a case the current rules do not allow."""

    def __init__(self, message: str, index: Optional[int] = None, *, reason: str) -> None:
        super().__init__(message)
        self.index = index
        self.reason = reason


@dataclass(frozen=True)
class CaseContent:
    """What a case shows when it is opened."""

    value: Optional[int] = None
    item_label: str = ""

    @property
    def is_item(self) -> bool:
        return self.value is None

    @property
    def label(self) -> str:
        if self.value is None:
            return f"Item: {self.item_label}"
        return format_money(self.value)


@dataclass
class Container:
    """Runtime state for a single case on the board.

    ``value`` is ``None`` when the case holds an item; the denomination it
    displaced is kept in ``replaced_value`` so the sidebar can still mark it.
    """

    index: int
    value: Optional[int]
    item_label: str = ""
    replaced_value: Optional[int] = None
    opened: bool = False

    @property
    def is_item(self) -> bool:
        return self.value is None

    @property
    def denomination(self) -> Optional[int]:
        if self.value is None:
            return self.replaced_value
        return self.value

    def content(self) -> CaseContent:
        return CaseContent(value=self.value, item_label=self.item_label)

    def convert_to_item(self, label: str) -> None:
        if self.value is None:
            raise ValueError(f"Case {self.index + 1} already holds an item")
        self.replaced_value = self.value
        self.value = None
        self.item_label = label

    def exchange_contents(self, other: "Container") -> None:
        self.value, other.value = other.value, self.value
        self.item_label, other.item_label = other.item_label, self.item_label
        self.replaced_value, other.replaced_value = other.replaced_value, self.replaced_value


@dataclass(frozen=True)
class SidebarEntry:
    denomination: int
    opened: bool
    item_price: bool


@dataclass(frozen=True)
class GridCell:
    index: int
    opened: bool
    is_player: bool
    enabled: bool


@dataclass
class ContainerPool:
    """Own the cases of one game and answer questions about what is left."""

    rules: GameRules
    rng: RandomSource
    containers: List[Container] = field(default_factory=list)
    player_index: int = -1
    opened_denominations: Set[int] = field(default_factory=set)

    # ----------------- Construction -----------------
    def build(self, item_count: Optional[int] = None) -> None:
        """Deal the denominations into the cases and substitute items.

        ``item_count`` defaults to a uniform draw from ``0..rules.max_items``.
        Items never replace the cases holding the lowest or highest value.
        """

        if item_count is None:
            item_count = self.rng.randint(0, self.rules.max_items)
        elif not 0 <= item_count <= self.rules.max_items:
            raise ValueError(
                f"item_count must be between 0 and {self.rules.max_items}"
            )

        shuffled = list(self.rules.denominations)
        self.rng.shuffle(shuffled)
        self.containers = [
            Container(index=index, value=value) for index, value in enumerate(shuffled)
        ]
        self.player_index = -1
        self.opened_denominations = set()

        extremes = {self.rules.lowest, self.rules.highest}
        interior = [
            container.index
            for container in self.containers
            if container.value not in extremes
        ]
        for index in self.rng.sample(interior, item_count):
            self.containers[index].convert_to_item(self.rng.choice(self.rules.item_names))

    # ----------------- Player actions -----------------
    def select(self, index: int) -> None:
        if self.player_index != -1:
            raise InvalidSelection(
                f"Case {self.player_index + 1} is already yours.",
                index,
                reason="already_picked",
            )
        container = self._lookup(index)
        if container.opened:
            raise InvalidSelection(
                f"Case {index + 1} has already been opened.", index, reason="already_opened"
            )
        self.player_index = index

    def open(self, index: int) -> CaseContent:
        container = self._lookup(index)
        if index == self.player_index:
            raise InvalidSelection(
                "That's your case! You can't open it yet.", index, reason="player_case"
            )
        if container.opened:
            raise InvalidSelection(
                f"Case {index + 1} has already been opened.", index, reason="already_opened"
            )
        self._mark_opened(container)
        return container.content()

    def reveal_player(self) -> CaseContent:
        if self.player_index == -1:
            raise InvalidSelection("No case has been picked yet.", reason="no_player_case")
        container = self.containers[self.player_index]
        self._mark_opened(container)
        return container.content()

    def swap(self, from_index: int, to_index: int) -> None:
        source = self._lookup(from_index)
        target = self._lookup(to_index)
        if from_index == to_index:
            raise InvalidSelection(
                "Choose a different case to swap with.", to_index, reason="same_case"
            )
        if target.opened:
            raise InvalidSelection(
                f"Case {to_index + 1} has already been opened.",
                to_index,
                reason="already_opened",
            )
        source.exchange_contents(target)

    # ----------------- Queries -----------------
    def remaining_values(self, include_player: bool = True) -> List[int]:
        values: List[int] = []
        for container in self.containers:
            if container.opened or container.value is None:
                continue
            if not include_player and container.index == self.player_index:
                continue
            values.append(container.value)
        return values

    def unopened_count(self, exclude_player: bool = True) -> int:
        return sum(
            1
            for container in self.containers
            if not container.opened
            and not (exclude_player and container.index == self.player_index)
        )

    def swap_candidates(self) -> List[int]:
        return [
            container.index
            for container in self.containers
            if not container.opened and container.index != self.player_index
        ]

    def item_denominations(self) -> Set[int]:
        return {
            container.replaced_value
            for container in self.containers
            if container.replaced_value is not None
        }

    def player_content(self) -> Optional[CaseContent]:
        if self.player_index == -1:
            return None
        return self.containers[self.player_index].content()

    def sidebar(self) -> List[SidebarEntry]:
        item_prices = self.item_denominations()
        return [
            SidebarEntry(
                denomination=value,
                opened=value in self.opened_denominations,
                item_price=value in item_prices,
            )
            for value in self.rules.denominations
        ]

    def grid(self) -> List[GridCell]:
        cells = []
        for container in self.containers:
            is_player = container.index == self.player_index
            cells.append(
                GridCell(
                    index=container.index,
                    opened=container.opened,
                    is_player=is_player,
                    enabled=not container.opened and not is_player,
                )
            )
        return cells

    # ----------------- Internal helpers -----------------
    def _lookup(self, index: int) -> Container:
        if not 0 <= index < len(self.containers):
            raise InvalidSelection(
                f"There is no case {index + 1} on this board.", index, reason="out_of_range"
            )
        return self.containers[index]

    def _mark_opened(self, container: Container) -> None:
        container.opened = True
        denomination = container.denomination
        if denomination is not None:
            self.opened_denominations.add(denomination)


def positive_values(values: Sequence[int]) -> List[int]:
    """Return only the positive cash values of ``values``."""

    return [int(value) for value in values if value > 0]


__all__ = [
    "CaseContent",
    "Container",
    "ContainerPool",
    "DENOMINATIONS",
    "GameRules",
    "GridCell",
    "ITEM_NAMES",
    "InvalidSelection",
    "RULES_VERSION",
    "SidebarEntry",
    "format_money",
    "positive_values",
]
