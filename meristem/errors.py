class MeristemError(Exception):
    """Base class for errors raised while growing or drawing an L-system."""


class InvalidConfiguration(MeristemError, ValueError):
    """Rejected input: bad rules, negative generations, non-positive lengths, ..."""


class StackUnderflow(MeristemError):
    """
    A ']' closed a branch that was never opened.

    Interpretation stops at the offending symbol. The commands emitted up to
    that point are kept on the exception so callers can still inspect them.
    """

    def __init__(self, index: int, commands=None):
        self.index = index
        self.commands = list(commands or [])
        super().__init__(
            f"unbalanced ']' at symbol {index}: branch stack holds only the root "
            f"({len(self.commands)} segments emitted before failure)"
        )
