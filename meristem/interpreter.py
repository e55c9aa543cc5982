"""
Turtle interpretation of an expanded symbol string.

Symbols:
    F: move forward and draw a segment
    G: move forward without drawing
    +/-: turn by +/- turn_angle
    [ ]: save / restore the turtle state
Any other symbol (X, Y, ... used only for rewriting) is skipped.
"""

import logging
import math
from typing import Iterable, Iterator, List, NamedTuple, Optional, Tuple

from meristem.errors import InvalidConfiguration, StackUnderflow
from meristem.turtle import BranchStack, TurtleState, forward, turn

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class DrawCommand(NamedTuple):
    """Line segment emitted for one 'F'. ``frame`` is set only in snapshot mode."""

    start: Point
    end: Point
    frame: Optional[int] = None


class TurtleParams:
    """
    Geometry used to walk a symbol string.

    Args:
        branch_length: Distance covered by 'F' and 'G', must be > 0.
        turn_angle: Rotation applied by '+' and '-', in radians.
        initial_phase: Heading of the root turtle, in radians.
        initial_position: (x, y) of the root turtle.
    """

    def __init__(self,
                 branch_length: float,
                 turn_angle: float,
                 initial_phase: float = 0.0,
                 initial_position: Point = (0.0, 0.0)):
        if not math.isfinite(branch_length) or branch_length <= 0:
            raise InvalidConfiguration(f"branch_length must be > 0, got {branch_length}")
        if not math.isfinite(turn_angle) or not math.isfinite(initial_phase):
            raise InvalidConfiguration("turn_angle and initial_phase must be finite")
        x, y = initial_position
        self.branch_length = float(branch_length)
        self.turn_angle = float(turn_angle)
        self.initial_phase = float(initial_phase)
        self.initial_position = (float(x), float(y))

    def __repr__(self) -> str:
        return (f"TurtleParams(branch_length={self.branch_length}, turn_angle={self.turn_angle}, "
                f"initial_phase={self.initial_phase}, initial_position={self.initial_position})")

    def root_state(self) -> TurtleState:
        x, y = self.initial_position
        return TurtleState(self.initial_phase, x, y)


def iter_commands(symbols: Iterable[str],
                  params: TurtleParams,
                  snapshot_per_step: bool = False) -> Iterator[DrawCommand]:
    """
    Yield one DrawCommand per 'F' in ``symbols``, in string order.

    Raises:
        StackUnderflow: on a ']' with only the root turtle on the stack. The
            exception's ``commands`` is left empty; ``interpret`` fills it.
    """
    stack = BranchStack(params.root_state())
    frame = 0
    for idx, ch in enumerate(symbols):
        if ch == "F":
            current = stack.current
            nxt = forward(current, params.branch_length)
            yield DrawCommand(current.position, nxt.position, frame if snapshot_per_step else None)
            frame += 1
            stack.replace(nxt)
        elif ch == "G":
            stack.replace(forward(stack.current, params.branch_length))
        elif ch == "-":
            stack.replace(turn(stack.current, -params.turn_angle))
        elif ch == "+":
            stack.replace(turn(stack.current, params.turn_angle))
        elif ch == "[":
            stack.push()
        elif ch == "]":
            if stack.depth == 0:
                raise StackUnderflow(index=idx)
            stack.pop()


def interpret(symbols: Iterable[str],
              params: TurtleParams,
              snapshot_per_step: bool = False) -> List[DrawCommand]:
    """
    Walk ``symbols`` and collect the emitted segments.

    Returns:
        List[DrawCommand]: segments in emission order.

    Raises:
        StackUnderflow: unbalanced ']'; ``err.commands`` holds the segments
            emitted before it.
    """
    commands: List[DrawCommand] = []
    try:
        for command in iter_commands(symbols, params, snapshot_per_step):
            commands.append(command)
    except StackUnderflow as err:
        logger.warning("interpretation stopped at symbol %d after %d segments", err.index, len(commands))
        raise StackUnderflow(err.index, commands) from None
    logger.debug("interpreted %d segments", len(commands))
    return commands
