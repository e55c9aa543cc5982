"""
Production rules and the rewriting engine.

A generation replaces every symbol of the current string in parallel: symbols
with a rule are swapped for their replacement, every other symbol is copied
through unchanged. Output length grows roughly like k**generations for a rule
with k symbols, so callers that take generations from the outside should pass
``max_length`` or check ``expanded_length`` first.
"""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Mapping
from types import MappingProxyType
from typing import Dict, Optional, Union

from meristem.errors import InvalidConfiguration

logger = logging.getLogger(__name__)


class Mutator(ABC):
    """Anything that can compute the next state of a symbol string."""

    @abstractmethod
    def apply(self, state: str) -> str:
        ...


class RuleSet(Mapping, Mutator):
    """
    Immutable symbol -> replacement table.

    Args:
        rules: Mapping of single-character symbols to their replacement
            strings (e.g. {"X": "F-[[X]+X]+F[+FX]-X", "F": "FF"}).
    """

    def __init__(self, rules: Optional[Mapping] = None):
        table: Dict[str, str] = {}
        for symbol, replacement in (rules or {}).items():
            if not isinstance(symbol, str) or len(symbol) != 1:
                raise InvalidConfiguration(f"rule key must be a single symbol, got {symbol!r}")
            if not isinstance(replacement, str):
                raise InvalidConfiguration(
                    f"replacement for {symbol!r} must be a string, got {type(replacement).__name__}"
                )
            if not replacement:
                raise InvalidConfiguration(f"empty replacement for {symbol!r}")
            table[symbol] = replacement
        self._rules = MappingProxyType(table)

    def __getitem__(self, symbol: str) -> str:
        return self._rules[symbol]

    def __iter__(self):
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __hash__(self):
        return hash(frozenset(self._rules.items()))

    def __repr__(self) -> str:
        return f"RuleSet({dict(self._rules)!r})"

    def replacement(self, symbol: str) -> str:
        """Replacement for ``symbol``; the symbol itself when no rule exists."""
        return self._rules.get(symbol, symbol)

    def apply(self, state: str) -> str:
        """One parallel rewrite pass over ``state``."""
        return "".join(self._rules.get(ch, ch) for ch in state)

    def next_length(self, state: str) -> int:
        """Length of ``apply(state)`` without building it."""
        return sum(len(self._rules.get(ch, ch)) for ch in state)


def as_rule_set(rules: Union[RuleSet, Mapping, None]) -> RuleSet:
    if isinstance(rules, RuleSet):
        return rules
    return RuleSet(rules)


def validate_generations(generations) -> int:
    # bool is an int subclass but never a meaningful generation count
    if isinstance(generations, bool) or not isinstance(generations, int):
        raise InvalidConfiguration(f"generations must be an integer, got {generations!r}")
    if generations < 0:
        raise InvalidConfiguration(f"generations must be >= 0, got {generations}")
    return generations


def simulate(state: str, generations: int, mutator: Mutator) -> str:
    """Apply ``mutator`` to ``state`` exactly ``generations`` times."""
    validate_generations(generations)
    for _ in range(generations):
        state = mutator.apply(state)
    return state


def expand(axiom: str,
           rules: Union[RuleSet, Mapping],
           generations: int,
           max_length: Optional[int] = None) -> str:
    """
    Rewrite ``axiom`` for ``generations`` passes.

    Args:
        axiom: Starting symbol string.
        rules: RuleSet or plain mapping; missing symbols map to themselves.
        generations: Number of rewrite passes, 0 returns the axiom.
        max_length: Optional upper bound on any intermediate string. The next
            length is computed before the string is built, so an oversized
            generation is rejected without allocating it.

    Returns:
        str: the expanded symbol string.
    """
    rule_set = as_rule_set(rules)
    validate_generations(generations)
    if max_length is not None and len(axiom) > max_length:
        raise InvalidConfiguration(f"axiom length {len(axiom)} exceeds max_length={max_length}")

    s = axiom
    for gen in range(generations):
        if max_length is not None:
            n = rule_set.next_length(s)
            if n > max_length:
                raise InvalidConfiguration(
                    f"generation {gen + 1} would hold {n} symbols, max_length={max_length}"
                )
        s = rule_set.apply(s)
        logger.debug("generation %d: %d symbols", gen + 1, len(s))
    return s


def expanded_length(axiom: str, rules: Union[RuleSet, Mapping], generations: int) -> int:
    """
    Length of ``expand(axiom, rules, generations)`` computed from symbol counts.

    Runs in O(generations * alphabet) instead of materialising the string.
    """
    rule_set = as_rule_set(rules)
    validate_generations(generations)
    counts = Counter(axiom)
    for _ in range(generations):
        nxt = Counter()
        for symbol, count in counts.items():
            for ch in rule_set.replacement(symbol):
                nxt[ch] += count
        counts = nxt
    return sum(counts.values())
