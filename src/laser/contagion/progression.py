"""
Stochastic disease progression.

Agents move through the phase graph below. Each arrow is a ``TransitionRule`` with a
(possibly age-dependent) branch probability and a duration distribution::

    S -> E                      (exposure, triggered by transmission or seeding)
    E -> I(A)  | E -> I(S)      p = fraction asymptomatic
    I(A) -> R
    I(S) -> I(H) | I(S) -> R    p = fraction hospitalized
    I(H) -> ICU | I(H) -> D | I(H) -> R
    ICU -> D | ICU -> R

Rules leaving a phase are tried in order. Every rule but the last draws one uniform
deviate and is taken when ``draw < probability``; the last rule is the "else" branch and
takes no draw. The branch is drawn first, then its duration is sampled, then
``advance()`` is scheduled on the scheduler at ``now + duration``.
"""

import logging

from .conditional import parse_duration
from .conditional import parse_probability
from .shared import Phase
from .utils import check_census
from .utils import get_param
from .utils import validate

__all__ = ["ProgressionStateMachine", "TransitionRule", "build_rules"]

logger = logging.getLogger(__name__)


class TransitionRule:
    """
    One edge of the phase graph.

    Args:
        source (Phase): phase the agent is in.
        target (Phase): phase the agent moves to.
        probability (callable): age -> probability of taking this branch, ``None`` for the else branch.
        duration: distribution with ``sample(prng, age)`` giving the time spent in ``source`` (hours).
    """

    def __init__(self, source: Phase, target: Phase, probability, duration):
        self.source = source
        self.target = target
        self.probability = probability
        self.duration = duration

        return

    def __repr__(self):
        return f"TransitionRule({self.source.name} -> {self.target.name}, p={self.probability!r})"


def build_rules(params) -> list:
    """Build the progression rules from a PropertySet of progression parameters."""

    def p(key):
        return parse_probability(get_param(params, key))

    def d(key):
        return parse_duration(get_param(params, key))

    return [
        TransitionRule(Phase.EXPOSED, Phase.INFECTED_ASYMPTOMATIC, p("fraction_asymptomatic"), d("incubation_period_asymptomatic")),
        TransitionRule(Phase.EXPOSED, Phase.INFECTED_SYMPTOMATIC, None, d("incubation_period_symptomatic")),
        TransitionRule(Phase.INFECTED_ASYMPTOMATIC, Phase.RECOVERED, None, d("period_asymptomatic_to_recovered")),
        TransitionRule(
            Phase.INFECTED_SYMPTOMATIC,
            Phase.HOSPITALIZED,
            p("fraction_symptomatic_to_hospitalized"),
            d("period_symptomatic_to_hospitalized"),
        ),
        TransitionRule(Phase.INFECTED_SYMPTOMATIC, Phase.RECOVERED, None, d("period_symptomatic_to_recovered")),
        TransitionRule(Phase.HOSPITALIZED, Phase.ICU, p("fraction_hospitalized_to_icu"), d("period_hospitalized_to_icu")),
        TransitionRule(Phase.HOSPITALIZED, Phase.DEAD, p("fraction_hospitalized_to_dead"), d("period_hospitalized_to_dead")),
        TransitionRule(Phase.HOSPITALIZED, Phase.RECOVERED, None, d("period_hospitalized_to_recovered")),
        TransitionRule(Phase.ICU, Phase.DEAD, p("fraction_icu_to_dead"), d("period_icu_to_dead")),
        TransitionRule(Phase.ICU, Phase.RECOVERED, None, d("period_icu_to_recovered")),
    ]


class ProgressionStateMachine:
    """
    Per-agent disease progression driven by the model's scheduler.

    The state machine reads and writes ``model.people.phase``, keeps ``model.census`` in
    step with it, draws from ``model.prng`` and reports infections and deaths to
    ``model.monitor``.
    """

    def __init__(self, model, rules=None, validating=False):
        self.model = model
        self.validating = validating
        rules = rules if rules is not None else build_rules(model.params)

        self.rules = {}
        for rule in rules:
            if rule.source in (Phase.SUSCEPTIBLE, *[phase for phase in Phase if phase.absorbing]):
                raise ValueError(f"{rule.source.name} cannot be the source of a progression rule ({rule})")
            if rule.target is Phase.SUSCEPTIBLE:
                raise ValueError(f"Reinfection is not modeled ({rule})")
            self.rules.setdefault(rule.source, []).append(rule)

        for source, branches in self.rules.items():
            if branches[-1].probability is not None:
                raise ValueError(f"Last rule leaving {source.name} must be the else branch (probability None)")
            for rule in branches[:-1]:
                if rule.probability is None:
                    raise ValueError(f"Only the last rule leaving {source.name} may be the else branch ({rule})")

        # Fails fast on a dangling phase or a cycle.
        self.paths = self.terminal_paths(Phase.EXPOSED)

        return

    def successors(self, phase: Phase) -> list:
        return [rule.target for rule in self.rules.get(phase, [])]

    def terminal_paths(self, start: Phase) -> list:
        """
        Enumerate every path through the phase graph from ``start`` to an absorbing phase.

        Raises:
            ValueError: when a reachable non-absorbing phase has no rules or a cycle exists.
        """
        paths = []

        def _walk(path):
            phase = path[-1]
            if phase.absorbing:
                paths.append(tuple(path))
                return
            if phase not in self.rules:
                raise ValueError(f"Phase {phase.name} is reachable but has no outgoing rules")
            for target in self.successors(phase):
                if target in path:
                    raise ValueError(f"Cycle in the phase graph: {' -> '.join(p.name for p in (*path, target))}")
                _walk([*path, target])

            return

        _walk([start])

        return paths

    def prevalidate(self, agent, *args) -> None:
        check_census(self.model)

        return

    def postvalidate(self, agent, *args) -> None:
        check_census(self.model)

        return

    @validate(pre=prevalidate, post=postvalidate)
    def expose(self, agent: int) -> bool:
        """
        Move a susceptible ``agent`` to EXPOSED and schedule its end of incubation.

        Agents in any other phase already have a transition pending (or are absorbed) and
        are refused, so every agent has at most one pending transition. The caller owns the
        agent's exposure time.

        Returns:
            bool: True when the next transition was scheduled.
        """
        people = self.model.people
        current = Phase(people.phase[agent])
        if current is not Phase.SUSCEPTIBLE:
            logger.error("Agent %d is %s and cannot be exposed", agent, current.name)
            return False

        self._apply(agent, current, Phase.EXPOSED)
        self.model.monitor.report_infection(agent)

        return self._schedule_next(agent, Phase.EXPOSED)

    @validate(pre=prevalidate, post=postvalidate)
    def advance(self, agent: int, target, generation=None) -> bool:
        """
        Scheduled callback moving ``agent`` into ``target`` and scheduling what follows.

        ``generation`` is the agent's transition count when the callback was scheduled; a
        callback whose generation is out of date was superseded and is dropped. Callers
        outside the scheduler pass no generation, and ``target`` must then still be a
        successor of the agent's current phase.

        Returns:
            bool: True when the transition was applied.
        """
        people = self.model.people
        if generation is not None and generation != people.generation[agent]:
            logger.debug("Dropping superseded transition of agent %d to %r", agent, target)
            return False

        try:
            target = Phase(target)
        except ValueError:
            logger.error("Agent %d has unknown next disease phase %r", agent, target)
            return False

        if target is Phase.EXPOSED:
            logger.warning("advance() called with EXPOSED for agent %d, redirecting to expose()", agent)
            return self.expose(agent)

        current = Phase(people.phase[agent])
        if current.absorbing:
            logger.error("Agent %d is %s, ignoring transition to %s", agent, current.name, target.name)
            return False
        if target not in self.successors(current):
            logger.error("Agent %d cannot progress from %s to %s", agent, current.name, target.name)
            return False

        self._apply(agent, current, target)

        if target is Phase.DEAD:
            self.model.monitor.report_death(agent)
        if target.absorbing:
            return True

        return self._schedule_next(agent, target)

    def _apply(self, agent: int, source: Phase, target: Phase) -> None:
        people = self.model.people
        self.model.census.move(source, target)
        people.phase[agent] = target.value
        # Supersedes whatever was scheduled for this agent before.
        people.generation[agent] += 1
        self.model.monitor.report_transition(agent, source, target)

        return

    def _schedule_next(self, agent: int, phase: Phase) -> bool:
        prng = self.model.prng
        people = self.model.people
        age = int(people.age[agent])
        branches = self.rules[phase]

        chosen = branches[-1]
        for rule in branches[:-1]:
            if prng.random() < rule.probability(age):
                chosen = rule
                break

        delay = chosen.duration.sample(prng, age)

        return self.model.scheduler.schedule_rel(delay, self.advance, agent, chosen.target, int(people.generation[agent]))
