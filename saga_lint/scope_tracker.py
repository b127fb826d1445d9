"""
Scope Tracker — generator / yield nesting during a single walk.
"""

from dataclasses import dataclass


@dataclass
class TraversalState:
    """Nesting counters for one document's walk.

    Increments happen on node entry and are undone on the matching exit,
    so neither counter goes below zero over a complete walk.
    """
    generator_depth: int = 0
    yield_depth: int = 0

    def enter_function(self, is_generator: bool) -> None:
        if is_generator:
            self.generator_depth += 1

    def exit_function(self, is_generator: bool) -> None:
        if is_generator:
            self.generator_depth -= 1

    def enter_yield(self) -> None:
        self.yield_depth += 1

    def exit_yield(self) -> None:
        self.yield_depth -= 1

    @property
    def in_generator(self) -> bool:
        return self.generator_depth > 0

    @property
    def in_yield(self) -> bool:
        return self.yield_depth > 0
