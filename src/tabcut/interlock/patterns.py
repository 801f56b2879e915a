"""
Patterns of tabs and slots used to connect two pieces of cut material.

An InterlockPattern is an ordered sequence of alternating active and inactive
segments. The meaning of "active" is given by the wrapping class:

- TabsPattern: active = tooth (the edge protrudes), inactive = base
- SlotsPattern: active = opening through the material, inactive = skip

All patterns are immutable; every operation returns a new pattern.

Example:
    >>> front = TabsPattern.distributed(length=60, tab_every_len=15)
    >>> side = front.matching_tabs()  # complementary edge of the mating piece
    >>> slots = front.matching_slots()  # slots that receive the tabs
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from tabcut.errors import InvalidCount, InvalidLength


@dataclass(frozen=True)
class PatternItem:
    """A single segment of a pattern.

    Attributes:
        active: Abstract flag, interpreted by the wrapping pattern class
        length: Segment length, always positive
    """

    active: bool
    length: float


@dataclass(frozen=True)
class InterlockPattern:
    """Sequence of alternating active/inactive segments.

    No two adjacent items share the same ``active`` flag: adding a segment with
    the same flag as the last one extends the last one instead.
    """

    items: tuple[PatternItem, ...] = ()

    @classmethod
    def create(cls) -> InterlockPattern:
        return cls(())

    def first(self) -> PatternItem | None:
        return self.items[0] if self.items else None

    def last(self) -> PatternItem | None:
        return self.items[-1] if self.items else None

    def add(self, active: bool, length: float) -> InterlockPattern:
        """Add a segment, merging it with the last one if the flags match.

        Zero-length segments are ignored.

        Raises:
            InvalidLength: If length is negative
        """
        if length < 0:
            raise InvalidLength(f"Expected non-negative length, got: {length}")
        if not length:
            return self
        active = bool(active)
        last = self.last()
        if last is not None and last.active == active:
            merged = PatternItem(active, last.length + length)
            return InterlockPattern((*self.items[:-1], merged))
        return InterlockPattern((*self.items, PatternItem(active, length)))

    def add_pattern(self, other: InterlockPattern) -> InterlockPattern:
        pattern = self
        for item in other.items:
            pattern = pattern.add(item.active, item.length)
        return pattern

    def reverse(self) -> InterlockPattern:
        return InterlockPattern(tuple(reversed(self.items)))

    def invert(self) -> InterlockPattern:
        """Change active segments to inactive and vice versa."""
        return InterlockPattern(
            tuple(PatternItem(not item.active, item.length) for item in self.items)
        )

    def length(self) -> float:
        return sum(item.length for item in self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __str__(self) -> str:
        return " ".join(
            f"[{item.length:g}]" if item.active else f"{item.length:g}" for item in self.items
        )


InterlockPattern.EMPTY = InterlockPattern.create()


def _distribution(
    length: float,
    every_len: float | None,
    min_num: int,
    num: int | None,
    ratio: float,
    active_length: float | None,
    start_active: bool,
    end_active: bool,
) -> InterlockPattern:
    """Evenly distribute active segments over a length.

    Returns the pattern with active segments as teeth/slots and inactive
    segments as the gaps between them.
    """
    if num is None:
        num = math.ceil(length / every_len) if every_len else 0
    num_active = math.floor(max(num, min_num))
    num_inactive = num_active + 1 - int(start_active) - int(end_active)
    if num_active < 0 or num_inactive < 0:
        raise InvalidCount(
            f"Bad parameters (num_tabs={num_active}, num_skips={num_inactive})"
        )

    if active_length is None:
        skip_units = num_inactive + num_active * ratio
        if skip_units <= 0:
            raise InvalidCount(
                f"Bad parameters (num_tabs={num_active}, num_skips={num_inactive}, "
                f"tab_to_skip_ratio={ratio})"
            )
        skip_len = length / skip_units
        active_len = skip_len * ratio
    else:
        active_len = active_length
        remaining = length - num_active * active_len
        if num_inactive:
            skip_len = remaining / num_inactive
        elif abs(remaining) > 1e-9 * max(abs(length), 1.0):
            raise InvalidLength(
                f"{num_active} tabs of length {active_len} do not fill length {length} "
                "without any gaps"
            )
        else:
            skip_len = 0.0

    pattern = InterlockPattern.EMPTY
    for i in range(num_active):
        if not (i == 0 and start_active):
            pattern = pattern.add(False, skip_len)
        pattern = pattern.add(True, active_len)
    if not end_active:
        pattern = pattern.add(False, skip_len)
    return pattern


@dataclass(frozen=True)
class TabsPattern:
    """A pattern of tabs at the edge of material."""

    pattern: InterlockPattern = InterlockPattern.EMPTY

    @classmethod
    def create(cls, pattern: InterlockPattern = InterlockPattern.EMPTY) -> TabsPattern:
        return cls(pattern)

    @classmethod
    def distributed(
        cls,
        length: float,
        tab_every_len: float | None = None,
        min_num_tabs: int = 2,
        num_tabs: int | None = None,
        tab_to_skip_ratio: float = 1,
        tab_length: float | None = None,
        start_with_tab: bool = False,
        end_with_tab: bool = False,
    ) -> TabsPattern:
        """Create tabs of equal length distributed evenly over the length.

        The number of tabs is ``num_tabs`` if given, otherwise
        ``ceil(length / tab_every_len)``, but never less than ``min_num_tabs``.
        All tabs have equal length and all gaps have equal length. With
        ``tab_length`` unset, tabs are ``tab_to_skip_ratio`` times as long as
        the gaps; otherwise tabs have exactly ``tab_length`` and the gaps take
        the rest.

        Raises:
            InvalidCount: If the tab or gap count would be negative
            InvalidLength: If fixed-length tabs do not fit in the length
        """
        return cls(
            _distribution(
                length,
                tab_every_len,
                min_num_tabs,
                num_tabs,
                tab_to_skip_ratio,
                tab_length,
                start_with_tab,
                end_with_tab,
            )
        )

    @classmethod
    def tab(cls, tab_length: float) -> TabsPattern:
        return cls.EMPTY.add_tab(tab_length)

    @classmethod
    def base(cls, skip_length: float) -> TabsPattern:
        return cls.EMPTY.add_base(skip_length)

    def add_tab(self, tab_length: float) -> TabsPattern:
        return TabsPattern(self.pattern.add(True, tab_length))

    def add_base(self, skip_length: float) -> TabsPattern:
        return TabsPattern(self.pattern.add(False, skip_length))

    def add_pattern(self, other: TabsPattern) -> TabsPattern:
        return TabsPattern(self.pattern.add_pattern(other.pattern))

    def reverse(self) -> TabsPattern:
        return TabsPattern(self.pattern.reverse())

    def matching_tabs(self) -> TabsPattern:
        """Tabs that connect with these tabs at some angle (flags inverted)."""
        return TabsPattern(self.pattern.invert())

    def matching_slots(self) -> SlotsPattern:
        """Slots that these tabs can be inserted into."""
        return SlotsPattern(self.pattern)

    def starts_with_tab(self) -> bool:
        first = self.pattern.first()
        return bool(first and first.active)

    def ends_with_tab(self) -> bool:
        last = self.pattern.last()
        return bool(last and last.active)

    def length(self) -> float:
        return self.pattern.length()

    def __str__(self) -> str:
        return f"TabsPattern[ {self.pattern} ]"


TabsPattern.EMPTY = TabsPattern.create()


@dataclass(frozen=True)
class SlotsPattern:
    """A pattern of slots (holes) going through the material."""

    pattern: InterlockPattern = InterlockPattern.EMPTY

    @classmethod
    def create(cls, pattern: InterlockPattern = InterlockPattern.EMPTY) -> SlotsPattern:
        return cls(pattern)

    @classmethod
    def slide(cls, length: float) -> SlotsPattern:
        """A slide slot, going from the edge of the material inside it."""
        return cls.slot(length).add_skip(1e-9 * length)

    @classmethod
    def slide_pair(
        cls,
        *lengths: float,
        length: float | None = None,
        slot_lengths_ratio: float = 1,
        slot1_length_frac: float | None = None,
    ) -> tuple[SlotsPattern, SlotsPattern]:
        """Create a pair of matching slide slots.

        Can be called as:
        - ``slide_pair(length)``: each slot takes half of the length
        - ``slide_pair(len1, len2)``: slots of the given lengths
        - ``slide_pair(length=..., slot_lengths_ratio=..., slot1_length_frac=...)``:
          the slots take together the length, split by ratio or fraction

        The first pattern starts with a slot, the second with a skip.
        """
        if len(lengths) == 2:
            len1, len2 = lengths
        elif len(lengths) == 1:
            len1 = len2 = lengths[0] / 2
        elif not lengths and length is not None:
            if slot1_length_frac is None:
                slot1_length_frac = slot_lengths_ratio / (slot_lengths_ratio + 1)
            len1 = slot1_length_frac * length
            len2 = length - len1
        else:
            raise ValueError(
                f"slide_pair takes one or two lengths or a length keyword, got {lengths!r}"
            )
        first = InterlockPattern.EMPTY.add(True, len1).add(False, len2)
        return cls(first), cls(first.invert())

    @classmethod
    def distributed(
        cls,
        length: float,
        slot_every_len: float | None = None,
        min_num_slots: int = 2,
        num_slots: int | None = None,
        slot_to_skip_ratio: float = 1,
        slot_length: float | None = None,
        start_with_slot: bool = False,
        end_with_slot: bool = False,
    ) -> SlotsPattern:
        """Create slots distributed evenly over the length.

        See TabsPattern.distributed.
        """
        return TabsPattern.distributed(
            length,
            tab_every_len=slot_every_len,
            min_num_tabs=min_num_slots,
            num_tabs=num_slots,
            tab_to_skip_ratio=slot_to_skip_ratio,
            tab_length=slot_length,
            start_with_tab=start_with_slot,
            end_with_tab=end_with_slot,
        ).matching_slots()

    @classmethod
    def slot(cls, slot_length: float) -> SlotsPattern:
        return cls.EMPTY.add_slot(slot_length)

    @classmethod
    def skip(cls, skip_length: float) -> SlotsPattern:
        return cls.EMPTY.add_skip(skip_length)

    def add_slot(self, slot_length: float) -> SlotsPattern:
        return SlotsPattern(self.pattern.add(True, slot_length))

    def add_skip(self, skip_length: float) -> SlotsPattern:
        return SlotsPattern(self.pattern.add(False, skip_length))

    def add_pattern(self, other: SlotsPattern) -> SlotsPattern:
        return SlotsPattern(self.pattern.add_pattern(other.pattern))

    def reverse(self) -> SlotsPattern:
        return SlotsPattern(self.pattern.reverse())

    def matching_tabs(self) -> TabsPattern:
        """Tabs that can be inserted into these slots."""
        return TabsPattern(self.pattern)

    def starts_with_slot(self) -> bool:
        first = self.pattern.first()
        return bool(first and first.active)

    def ends_with_slot(self) -> bool:
        last = self.pattern.last()
        return bool(last and last.active)

    def length(self) -> float:
        return self.pattern.length()

    def __str__(self) -> str:
        return f"SlotsPattern[ {self.pattern} ]"


SlotsPattern.EMPTY = SlotsPattern.create()
