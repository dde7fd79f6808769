"""Observer wiring around a PurificationEngine."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Union

from purisim.core.types import EngineConfig, EngineType, SimulationParameters, SimulationState
from purisim.runtime.engine import PurificationEngine, create_engine
from purisim.utils.rng import RandomSource

logger = logging.getLogger(__name__)

StateObserver = Callable[[SimulationState], None]


class SimulationController:
    """
    Drives an engine and reports every resulting state to an observer.

    The observer receives the initial state on construction and a fresh
    snapshot after each call.
    """

    def __init__(
        self,
        params: SimulationParameters,
        on_state_change: StateObserver,
        engine_type: Union[EngineType, str] = EngineType.AVERAGE,
        rng: Optional[Union[int, RandomSource]] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.engine = create_engine(engine_type, params, rng=rng, config=config)
        self.on_state_change = on_state_change
        self.on_state_change(self.engine.get_current_state())

    @classmethod
    def for_engine(cls, engine: PurificationEngine, on_state_change: StateObserver) -> SimulationController:
        """Wrap an existing engine."""
        controller = cls.__new__(cls)
        controller.engine = engine
        controller.on_state_change = on_state_change
        on_state_change(engine.get_current_state())
        return controller

    def next_step(self) -> SimulationState:
        return self._publish(self.engine.next_step())

    def step(self) -> SimulationState:
        return self._publish(self.engine.step())

    def reset(self) -> SimulationState:
        return self._publish(self.engine.reset())

    def update_parameters(self, params: SimulationParameters) -> SimulationState:
        self.engine.update_params(params)
        return self._publish(self.engine.get_current_state())

    def run_until_complete(self, max_rounds: int = 100) -> SimulationState:
        """
        Step whole rounds until the run completes or ``max_rounds`` calls.

        The observer is notified once, with the final state.
        """
        state = self.engine.get_current_state()
        rounds = 0
        while not state.complete and rounds < max_rounds:
            state = self.engine.step()
            rounds += 1
        if not state.complete:
            logger.warning(f"Stopped after {rounds} rounds without completing")
        return self._publish(state)

    def _publish(self, state: SimulationState) -> SimulationState:
        self.on_state_change(state)
        return state
