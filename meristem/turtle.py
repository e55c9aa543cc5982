import math
from typing import List, NamedTuple, Tuple

from meristem.errors import StackUnderflow

TWO_PI = 2.0 * math.pi


def normalize_phase(phase: float) -> float:
    """Reduce ``phase`` (radians) into (-pi, pi]."""
    r = math.fmod(phase, TWO_PI)
    if r > math.pi:
        r -= TWO_PI
    elif r <= -math.pi:
        r += TWO_PI
    return r


class TurtleState(NamedTuple):
    """Heading (radians) and absolute position of the turtle."""

    phase: float
    x: float
    y: float

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def forward(self, distance: float) -> "TurtleState":
        return forward(self, distance)

    def turn(self, delta: float) -> "TurtleState":
        return turn(self, delta)


def forward(state: TurtleState, distance: float) -> TurtleState:
    """Move ``distance`` along the current heading; the heading is kept."""
    return TurtleState(
        state.phase,
        state.x + distance * math.cos(state.phase),
        state.y + distance * math.sin(state.phase),
    )


def turn(state: TurtleState, delta: float) -> TurtleState:
    """Rotate by ``delta`` radians; the position is kept."""
    return TurtleState(normalize_phase(state.phase + delta), state.x, state.y)


class BranchStack:
    """
    LIFO of turtle snapshots for '[' / ']' branching.

    The bottom element is the root turtle and stays on the stack for the whole
    interpretation. The active turtle is always the last element.
    """

    def __init__(self, root: TurtleState):
        self._stack: List[TurtleState] = [root]

    def __len__(self) -> int:
        return len(self._stack)

    @property
    def depth(self) -> int:
        """Number of open branches above the root."""
        return len(self._stack) - 1

    @property
    def current(self) -> TurtleState:
        return self._stack[-1]

    def replace(self, state: TurtleState) -> None:
        self._stack[-1] = state

    def push(self) -> None:
        """Save the current state; the copy on top stays the active turtle."""
        # states are immutable tuples, so the snapshot cannot change later
        self._stack.append(self.current)

    def pop(self) -> TurtleState:
        """Drop the top snapshot and return the new current state."""
        if len(self._stack) == 1:
            raise StackUnderflow(index=-1)
        self._stack.pop()
        return self._stack[-1]
