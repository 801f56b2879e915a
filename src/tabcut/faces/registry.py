"""
Named tab definitions stored in a face.

A face registers the exact tab parameters it used on an edge under a name.
Other faces then use the derived views:

- ``tt[name]``: the definition as used
- ``fit[name]``: reversed and flag-inverted, to draw the mating edge of an
  adjoining face traced in the usual (same) rotational direction
- ``pat[name]``: just the pattern

The views are computed eagerly when a definition is registered.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from tabcut.interlock.patterns import TabsPattern


def _invert(value: bool | None) -> bool | None:
    return None if value is None else not value


@dataclass(frozen=True)
class TabsDef:
    """Parameters of a tabbed edge.

    Attributes:
        pattern: The tabs
        start_on_tab: Required start level, or None to infer it
        end_on_tab: Required end level, or None to infer it
        options: Overrides of the face's TabsOptions fields for this edge
    """

    pattern: TabsPattern
    start_on_tab: bool | None = None
    end_on_tab: bool | None = None
    options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def create(
        cls,
        pattern: TabsPattern,
        on_tab_level: bool | None = None,
        start_on_tab: bool | None = None,
        end_on_tab: bool | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> TabsDef:
        return cls(
            pattern,
            on_tab_level if start_on_tab is None else start_on_tab,
            on_tab_level if end_on_tab is None else end_on_tab,
            MappingProxyType(dict(options or {})),
        )

    def matching(self) -> TabsDef:
        """Tabs of the mating edge, traversed in the same direction."""
        return TabsDef(
            self.pattern.matching_tabs(),
            _invert(self.start_on_tab),
            _invert(self.end_on_tab),
            self.options,
        )

    def reversed(self) -> TabsDef:
        return TabsDef(self.pattern.reverse(), self.end_on_tab, self.start_on_tab, self.options)

    def fit(self) -> TabsDef:
        return self.matching().reversed()

    def length(self) -> float:
        return self.pattern.length()


def _frozen(mapping: dict[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(mapping)


@dataclass(frozen=True)
class TabsRegistry:
    """Immutable registry of named tab definitions with derived views."""

    tt: Mapping[str, TabsDef] = field(default_factory=lambda: _frozen({}))
    fit: Mapping[str, TabsDef] = field(default_factory=lambda: _frozen({}))
    pat: Mapping[str, TabsPattern] = field(default_factory=lambda: _frozen({}))

    def add(self, name: str, tabs: TabsDef) -> TabsRegistry:
        """Register a definition under a new name.

        Raises:
            ValueError: If the name is already registered
        """
        if name in self.tt:
            raise ValueError(f"Tabs named '{name}' are already defined")
        return TabsRegistry(
            _frozen({**self.tt, name: tabs}),
            _frozen({**self.fit, name: tabs.fit()}),
            _frozen({**self.pat, name: tabs.pattern}),
        )

    def names(self) -> list[str]:
        return list(self.tt)

    def __contains__(self, name: object) -> bool:
        return name in self.tt

    def __len__(self) -> int:
        return len(self.tt)
