"""
Purification engine.

Owns the simulation state and drives the per-round state machine

    initial -> twirled -> exchanged -> cnot -> measured -> discard
            -> initial | completed

delegating the physics of every transition to a PurificationStrategy.
Callers only ever receive deep copies of the state.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import replace
from typing import Callable, Dict, Optional, Union

from purisim.core.types import (
    EngineConfig,
    EngineType,
    PurificationStep,
    SimulationParameters,
    SimulationState,
)
from purisim.errors import ProtocolStateError
from purisim.runtime.protocol import require_transition
from purisim.runtime.strategies import PurificationStrategy, get_strategy, prepare_pairs_for_cnot
from purisim.utils.rng import RandomSource, make_rng

logger = logging.getLogger(__name__)


class PurificationEngine:
    """
    Entanglement purification simulator.

    Usage:
        params = SimulationParameters(initial_pairs=4, noise_parameter=0.1,
                                      target_fidelity=0.95)
        engine = PurificationEngine(params, EngineType.MONTE_CARLO, rng=7)
        while not engine.get_current_state().complete:
            state = engine.step()

    Args:
        params: Simulation parameters
        strategy: EngineType, its string value, or a strategy instance
        rng: Seed or random source; defaults to ``config.seed``
        config: Engine settings (round limit, validation tolerance)
    """

    def __init__(
        self,
        params: SimulationParameters,
        strategy: Union[EngineType, str, PurificationStrategy] = EngineType.AVERAGE,
        rng: Optional[Union[int, RandomSource]] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.config = config or EngineConfig()
        self.strategy = get_strategy(strategy)
        self.rng = make_rng(rng if rng is not None else self.config.seed)
        self.params = params
        self._handlers: Dict[PurificationStep, Callable[[], None]] = {
            PurificationStep.INITIAL: self.twirl,
            PurificationStep.TWIRLED: self.exchange,
            PurificationStep.EXCHANGED: self.bilateral_cnot,
            PurificationStep.CNOT: self.measure,
            PurificationStep.MEASURED: self.discard,
            PurificationStep.DISCARD: self.complete_round,
        }
        self._state = self._initial_state()

    @property
    def engine_type(self) -> EngineType:
        return self.strategy.engine_type

    # ------------------------------------------------------------------
    # Public drivers
    # ------------------------------------------------------------------

    def get_current_state(self) -> SimulationState:
        """Deep copy of the current state."""
        return copy.deepcopy(self._state)

    def next_step(self) -> SimulationState:
        """Run exactly one transition. No-op once the run is complete."""
        if self._state.complete:
            return self.get_current_state()
        self._handlers[self._state.purification_step]()
        return self.get_current_state()

    def step(self) -> SimulationState:
        """Run transitions until the current round finishes or the run completes."""
        if self._state.complete:
            return self.get_current_state()
        self.next_step()
        while not self._state.complete and self._state.purification_step is not PurificationStep.INITIAL:
            self.next_step()
        return self.get_current_state()

    def reset(self) -> SimulationState:
        """Reinitialize the pool from the current parameters."""
        self._state = self._initial_state()
        return self.get_current_state()

    def update_params(self, params: SimulationParameters) -> None:
        """Replace the parameters and reset."""
        self.params = params
        self.reset()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def twirl(self) -> None:
        self._advance(PurificationStep.TWIRLED)
        self._state.pairs = self.strategy.twirl(self._state.pairs, self.rng)
        self._after_transition()

    def exchange(self) -> None:
        self._advance(PurificationStep.EXCHANGED)
        self._state.pairs = self.strategy.exchange(self._state.pairs)
        self._after_transition()

    def bilateral_cnot(self) -> None:
        if len(self._state.pairs) < 2:
            self._advance(PurificationStep.COMPLETED)
            self._state.complete = True
            logger.info(
                f"Round {self._state.round}: {len(self._state.pairs)} pair(s) left, nothing to purify"
            )
            self._after_transition()
            return
        self._advance(PurificationStep.CNOT)
        pending = self.strategy.apply_bilateral_step(
            prepare_pairs_for_cnot(self._state.pairs)
        )
        self._state.pending_pairs = pending
        self._after_transition()

    def measure(self) -> None:
        pending = self._state.pending_pairs
        if pending is None or pending.joint_states is None:
            raise ProtocolStateError("measure requires pending pairs from the bilateral CNOT")
        self._advance(PurificationStep.MEASURED)
        results = self.strategy.measure(pending, self.rng)
        self._state.pending_pairs = replace(pending, results=results)
        successes = sum(r.successful for r in results)
        logger.debug(f"Round {self._state.round}: {successes}/{len(results)} trials succeeded")
        self._after_transition()

    def discard(self) -> None:
        pending = self._state.pending_pairs
        if pending is None or pending.results is None:
            raise ProtocolStateError("discard requires measurement results")
        self._advance(PurificationStep.DISCARD)
        self._state.pairs = self.strategy.discard_and_recycle(pending)
        self._state.pending_pairs = None
        self._after_transition()

    def complete_round(self) -> None:
        """Restore working form, bump the round counter and check termination."""
        state = self._state
        require_transition(state.purification_step, PurificationStep.INITIAL)
        state.pairs = self.strategy.twirl_exchange(state.pairs, self.rng)
        state.round += 1

        reason = self._termination_reason()
        if reason is None:
            self._advance(PurificationStep.INITIAL)
        else:
            self._advance(PurificationStep.COMPLETED)
            state.complete = True
        self._after_transition()
        logger.info(
            f"Round {state.round} finished: {state.num_pairs} pair(s), "
            f"best fidelity {state.best_fidelity:.6f}"
            + (f", complete ({reason})" if reason else "")
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _initial_state(self) -> SimulationState:
        pairs = self.strategy.initialize(self.params, self.rng)
        state = SimulationState(pairs=pairs)
        state.average_fidelity = _mean_fidelity(state)
        logger.debug(
            f"Initialized {len(pairs)} {self.engine_type.value} pair(s), "
            f"channel={self.params.noise_channel.value}, noise={self.params.noise_parameter}"
        )
        return state

    def _advance(self, target: PurificationStep) -> None:
        require_transition(self._state.purification_step, target)
        logger.debug(
            f"Round {self._state.round}: {self._state.purification_step.value} -> "
            f"{target.value} ({len(self._state.pairs)} pairs)"
        )
        self._state.purification_step = target

    def _after_transition(self) -> None:
        self._state.average_fidelity = _mean_fidelity(self._state)
        for pair in self._state.pairs:
            ok, reason = pair.density_matrix.check(self.config.tolerance)
            if not ok:
                logger.warning(f"Pair {pair.id} holds an invalid density matrix: {reason}")

    def _termination_reason(self) -> Optional[str]:
        state = self._state
        if state.num_pairs < 2:
            return "fewer than 2 pairs"
        if state.best_fidelity >= self.params.target_fidelity:
            return "target fidelity reached"
        if state.round >= self.config.max_rounds:
            return "round limit reached"
        return None


def _mean_fidelity(state: SimulationState) -> float:
    if not state.pairs:
        return 0.0
    return sum(p.fidelity for p in state.pairs) / len(state.pairs)


def create_engine(
    engine_type: Union[EngineType, str],
    params: SimulationParameters,
    rng: Optional[Union[int, RandomSource]] = None,
    config: Optional[EngineConfig] = None,
) -> PurificationEngine:
    """Build an engine for ``engine_type`` ("average" or "monte-carlo")."""
    return PurificationEngine(params, engine_type, rng=rng, config=config)
