"""
Integration tests for purification engines.
"""

import math

import pytest
import numpy as np

from purisim import EngineConfig, EngineType, NoiseChannelType, SimulationController, SimulationParameters
from purisim.core.density_matrix import DensityMatrix
from purisim.core.types import Basis, PurificationStep, QubitPair
from purisim.errors import ProtocolStateError
from purisim.observables.bell import BellState, fidelity_from_bell_basis_matrix, to_bell_basis
from purisim.runtime.engine import PurificationEngine, create_engine
from purisim.runtime.protocol import PROTOCOL_GRAPH, allowed_next_steps, is_terminal, require_transition, round_sequence
from purisim.runtime.states import create_noisy_epr, create_noisy_epr_with_channel
from purisim.runtime.strategies import (
    AverageStrategy,
    MonteCarloStrategy,
    bbpssw_output_fidelity,
    bbpssw_success_probability,
    bilateral_cnot_average,
    prepare_pairs_for_cnot,
)


class FixedRandom:
    """Random source that always returns the same draw."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


ENGINES = [EngineType.AVERAGE, EngineType.MONTE_CARLO]


def make_pairs(n):
    return tuple(
        QubitPair(id=i, density_matrix=DensityMatrix.bell_phi_plus(), fidelity=1.0)
        for i in range(n)
    )


class TestInitialStates:
    """Tests for initial pair preparation."""

    def test_noiseless_epr_is_perfect(self):
        rho = create_noisy_epr(0.0, np.random.default_rng(0))
        assert np.isclose(fidelity_from_bell_basis_matrix(rho, BellState.PSI_MINUS), 1.0)

    def test_noisy_epr_is_hermitian(self):
        rho = create_noisy_epr(0.3, np.random.default_rng(0))
        assert rho.validate()
        assert np.isclose(fidelity_from_bell_basis_matrix(rho, BellState.PSI_MINUS), 0.7)

    @pytest.mark.parametrize("channel", list(NoiseChannelType))
    def test_zero_noise_for_every_channel(self, channel):
        rho = create_noisy_epr_with_channel(0.0, channel, np.random.default_rng(3))
        assert np.isclose(fidelity_from_bell_basis_matrix(rho, BellState.PSI_MINUS), 1.0)

    def test_fidelity_decreases_with_noise(self):
        fidelities = [
            fidelity_from_bell_basis_matrix(
                create_noisy_epr_with_channel(p, NoiseChannelType.AMPLITUDE_DAMPING), BellState.PSI_MINUS
            )
            for p in np.linspace(0.0, 1.0, 6)
        ]
        assert all(a > b for a, b in zip(fidelities, fidelities[1:]))

    def test_computational_basis_output(self):
        rho = create_noisy_epr_with_channel(0.2, "depolarizing", basis=Basis.COMPUTATIONAL)
        assert np.isclose(fidelity_from_bell_basis_matrix(to_bell_basis(rho), BellState.PSI_MINUS), 0.8)


class TestProtocolGraph:
    """Tests for the step transition table."""

    def test_round_sequence(self):
        S = PurificationStep
        assert round_sequence() == [S.INITIAL, S.TWIRLED, S.EXCHANGED, S.CNOT, S.MEASURED, S.DISCARD]

    def test_completed_is_terminal(self):
        assert is_terminal(PurificationStep.COMPLETED)
        assert not is_terminal(PurificationStep.DISCARD)
        assert set(allowed_next_steps(PurificationStep.DISCARD)) == {
            PurificationStep.INITIAL, PurificationStep.COMPLETED
        }

    def test_illegal_transition(self):
        with pytest.raises(ProtocolStateError):
            require_transition(PurificationStep.INITIAL, PurificationStep.MEASURED)

    def test_graph_covers_all_steps(self):
        assert set(PROTOCOL_GRAPH.nodes) == set(PurificationStep)


class TestStrategies:
    """Tests for strategy building blocks."""

    def test_prepare_pairs_even(self):
        pending = prepare_pairs_for_cnot(make_pairs(4))
        assert [p.id for p in pending.control_pairs] == [0, 2]
        assert [p.id for p in pending.target_pairs] == [1, 3]
        assert pending.unpaired is None

    def test_prepare_pairs_odd(self):
        pending = prepare_pairs_for_cnot(make_pairs(5))
        assert len(pending.control_pairs) == 2
        assert pending.unpaired.id == 4

    def test_bbpssw_formulas(self):
        assert np.isclose(bbpssw_success_probability(1.0), 1.0)
        assert np.isclose(bbpssw_output_fidelity(1.0), 1.0)
        assert np.isclose(bbpssw_output_fidelity(0.5), 0.5)
        f = 0.8
        expected = (f ** 2 + (1 - f) ** 2 / 9) / (f ** 2 + 2 * f * (1 - f) / 3 + 5 * (1 - f) ** 2 / 9)
        assert np.isclose(bbpssw_output_fidelity(f), expected)
        assert bbpssw_output_fidelity(f) > f

    def test_bilateral_cnot_average_success(self):
        control = DensityMatrix.diagonal([0.8, 0.2 / 3, 0.2 / 3, 0.2 / 3])
        ok, rho, p = bilateral_cnot_average(control, control, FixedRandom(0.0))
        assert ok
        assert np.isclose(p, bbpssw_success_probability(0.8))
        assert np.isclose(fidelity_from_bell_basis_matrix(rho, BellState.PHI_PLUS), bbpssw_output_fidelity(0.8))

    def test_bilateral_cnot_average_failure_keeps_control(self):
        control = DensityMatrix.diagonal([0.8, 0.2 / 3, 0.2 / 3, 0.2 / 3])
        ok, rho, _ = bilateral_cnot_average(control, control, FixedRandom(0.99))
        assert not ok
        assert rho is control

    def test_monte_carlo_exchange_maps_singlet_to_phi_plus(self):
        strategy = MonteCarloStrategy()
        pair = QubitPair(0, DensityMatrix.bell_psi_minus(), 1.0, Basis.COMPUTATIONAL)
        (exchanged,) = strategy.exchange((pair,))
        assert exchanged.density_matrix.allclose(DensityMatrix.bell_phi_plus())
        assert np.isclose(exchanged.fidelity, 1.0)

    def test_monte_carlo_perfect_pairs_always_succeed(self):
        strategy = MonteCarloStrategy()
        pending = strategy.apply_bilateral_step(prepare_pairs_for_cnot(make_pairs(2)))
        assert pending.joint_states[0].dim == 16
        for value in (0.1, 0.6):
            (record,) = strategy.measure(pending, FixedRandom(value))
            assert record.successful
            assert record.outcomes[0] == record.outcomes[1]
            assert np.isclose(record.control.fidelity, 1.0)

    def test_monte_carlo_bit_flip_detected(self):
        strategy = MonteCarloStrategy()
        control = QubitPair(0, DensityMatrix.bell_phi_plus(), 1.0, Basis.COMPUTATIONAL)
        target = QubitPair(1, DensityMatrix.bell_psi_plus(), 0.0, Basis.COMPUTATIONAL)
        pending = strategy.apply_bilateral_step(prepare_pairs_for_cnot((control, target)))
        (record,) = strategy.measure(pending, FixedRandom(0.3))
        assert not record.successful

    def test_average_twirl_exchange_round_trip(self):
        strategy = AverageStrategy()
        params = SimulationParameters(2, 0.2, 0.9, NoiseChannelType.DEPOLARIZING)
        pairs = strategy.initialize(params, FixedRandom(0.5))
        twirled = strategy.twirl(pairs, FixedRandom(0.5))
        restored = strategy.twirl_exchange(strategy.exchange(twirled), FixedRandom(0.5))
        for a, b in zip(twirled, restored):
            assert a.density_matrix.allclose(b.density_matrix)
            assert np.isclose(a.fidelity, 0.8)


class TestEngineScenarios:
    """End-to-end purification scenarios."""

    @pytest.mark.parametrize("engine_type", ENGINES)
    def test_first_step_twirls(self, engine_type):
        params = SimulationParameters(initial_pairs=4, noise_parameter=0.1, target_fidelity=0.95)
        engine = PurificationEngine(params, engine_type, rng=11)
        state = engine.next_step()
        assert state.purification_step is PurificationStep.TWIRLED
        assert state.num_pairs == 4
        for pair in state.pairs:
            assert 0 < pair.fidelity <= 1

    @pytest.mark.parametrize("engine_type", ENGINES)
    def test_odd_pair_carried_over(self, engine_type):
        params = SimulationParameters(initial_pairs=3, noise_parameter=0.1, target_fidelity=0.99)
        engine = PurificationEngine(params, engine_type, rng=5)
        for _ in range(3):
            state = engine.next_step()
        assert state.purification_step is PurificationStep.CNOT
        pending = state.pending_pairs
        assert len(pending.control_pairs) == 1
        assert len(pending.target_pairs) == 1
        assert pending.unpaired.id == 2
        held_back = pending.unpaired.density_matrix

        engine.next_step()
        state = engine.next_step()
        assert state.purification_step is PurificationStep.DISCARD
        carried = [p for p in state.pairs if p.id == 2]
        assert len(carried) == 1
        assert carried[0].density_matrix == held_back
        assert state.pairs[-1].id == 2

    @pytest.mark.parametrize("engine_type", ENGINES)
    def test_two_pairs_run_out(self, engine_type):
        params = SimulationParameters(initial_pairs=2, noise_parameter=0.4, target_fidelity=0.99)
        engine = PurificationEngine(params, engine_type, rng=3)
        for _ in range(10):
            state = engine.step()
            if state.complete:
                break
        assert state.complete
        assert state.round <= 10
        assert state.num_pairs < 2
        assert state.purification_step is PurificationStep.COMPLETED

    def test_sixteen_pairs_reach_target_average(self):
        params = SimulationParameters(initial_pairs=16, noise_parameter=0.01, target_fidelity=0.99)
        engine = PurificationEngine(params, EngineType.AVERAGE, rng=7)
        for _ in range(10):
            state = engine.step()
            if state.complete:
                break
        assert state.complete
        assert state.best_fidelity >= 0.99

    def test_sixteen_pairs_monte_carlo_terminates(self):
        params = SimulationParameters(initial_pairs=16, noise_parameter=0.01, target_fidelity=0.99)
        engine = PurificationEngine(params, EngineType.MONTE_CARLO, rng=7)
        for _ in range(10):
            state = engine.step()
            if state.complete:
                break
        assert state.complete
        # Pool at least halves every round
        assert state.round <= 4
        assert state.best_fidelity >= 0.99 or state.num_pairs < 2

    def test_every_trial_succeeds(self):
        params = SimulationParameters(4, 0.2, 0.999, NoiseChannelType.DEPOLARIZING)
        engine = PurificationEngine(params, EngineType.AVERAGE, rng=FixedRandom(0.0))
        state = engine.step()
        assert state.round == 1
        assert state.num_pairs == 2
        for pair in state.pairs:
            assert np.isclose(pair.fidelity, bbpssw_output_fidelity(0.8))

    def test_every_trial_fails(self):
        params = SimulationParameters(4, 0.2, 0.999, NoiseChannelType.DEPOLARIZING)
        engine = PurificationEngine(params, EngineType.AVERAGE, rng=FixedRandom(0.9999))
        state = engine.step()
        assert state.complete
        assert state.num_pairs == 0
        assert state.average_fidelity == 0.0

    def test_round_limit(self):
        params = SimulationParameters(64, 0.2, 1.0, NoiseChannelType.DEPOLARIZING)
        engine = PurificationEngine(params, EngineType.AVERAGE, rng=FixedRandom(0.0),
                                    config=EngineConfig(max_rounds=2))
        engine.step()
        state = engine.step()
        assert state.complete
        assert state.round == 2
        assert state.num_pairs == 16


class TestEngineContract:
    """Tests for the engine's public surface."""

    def _engine(self, engine_type=EngineType.AVERAGE, **kwargs):
        params = SimulationParameters(initial_pairs=4, noise_parameter=0.1, target_fidelity=0.95)
        return PurificationEngine(params, engine_type, rng=kwargs.pop("rng", 1), **kwargs)

    @pytest.mark.parametrize("engine_type", ENGINES)
    def test_calls_after_complete_are_noops(self, engine_type):
        engine = self._engine(engine_type)
        state = engine.get_current_state()
        while not state.complete:
            state = engine.step()
        assert engine.next_step() == state
        assert engine.step() == state
        assert engine.get_current_state() == state

    def test_snapshot_isolation(self):
        engine = self._engine()
        snapshot = engine.get_current_state()
        snapshot.round = 42
        snapshot.pairs = ()
        current = engine.get_current_state()
        assert current.round == 0
        assert current.num_pairs == 4

    @pytest.mark.parametrize("engine_type", ENGINES)
    def test_pending_pairs_only_mid_round(self, engine_type):
        engine = self._engine(engine_type)
        state = engine.get_current_state()
        steps = 0
        while not state.complete and steps < 200:
            state = engine.next_step()
            steps += 1
            mid_round = state.purification_step in (PurificationStep.CNOT, PurificationStep.MEASURED)
            assert (state.pending_pairs is not None) == mid_round
            assert 0 <= state.average_fidelity <= 1
            for pair in state.pairs:
                assert 0 <= pair.fidelity <= 1
        assert state.complete

    def test_average_fidelity_tracks_pairs(self):
        engine = self._engine()
        state = engine.next_step()
        assert np.isclose(state.average_fidelity, np.mean([p.fidelity for p in state.pairs]))

    def test_transition_out_of_order(self):
        engine = self._engine()
        with pytest.raises(ProtocolStateError):
            engine.measure()
        with pytest.raises(ProtocolStateError):
            engine.discard()
        with pytest.raises(ProtocolStateError):
            engine.exchange()

    def test_missing_staging_data(self):
        engine = self._engine()
        for _ in range(3):
            engine.next_step()
        engine._state.pending_pairs = None
        with pytest.raises(ProtocolStateError):
            engine.next_step()

    def test_reset(self):
        engine = self._engine()
        engine.step()
        state = engine.reset()
        assert state.round == 0
        assert state.purification_step is PurificationStep.INITIAL
        assert state.num_pairs == 4
        assert not state.complete

    def test_update_params(self):
        engine = self._engine()
        engine.next_step()
        assert engine.update_params(SimulationParameters(6, 0.05, 0.9)) is None
        state = engine.get_current_state()
        assert state.num_pairs == 6
        assert state.purification_step is PurificationStep.INITIAL

    def test_seeded_runs_reproduce(self):
        a = self._engine(EngineType.MONTE_CARLO, rng=99)
        b = self._engine(EngineType.MONTE_CARLO, rng=99)
        assert a.step() == b.step()

    def test_create_engine(self):
        params = SimulationParameters(2, 0.1, 0.9)
        assert create_engine("monte-carlo", params).engine_type is EngineType.MONTE_CARLO
        assert create_engine(EngineType.AVERAGE, params).engine_type is EngineType.AVERAGE
        with pytest.raises(ValueError):
            create_engine("quantum-annealing", params)

    def test_pair_bases(self):
        params = SimulationParameters(2, 0.1, 0.9)
        assert all(p.basis is Basis.BELL for p in create_engine("average", params).get_current_state().pairs)
        assert all(
            p.basis is Basis.COMPUTATIONAL
            for p in create_engine("monte-carlo", params).get_current_state().pairs
        )


class TestSimulationController:
    """Tests for the observer-facing controller."""

    def test_observer_notified(self):
        seen = []
        params = SimulationParameters(4, 0.1, 0.95)
        controller = SimulationController(params, seen.append, rng=2)
        assert len(seen) == 1
        controller.next_step()
        controller.step()
        controller.reset()
        assert len(seen) == 4
        assert seen[-1].round == 0

    def test_run_until_complete(self):
        seen = []
        params = SimulationParameters(8, 0.1, 0.99)
        controller = SimulationController(params, seen.append, EngineType.MONTE_CARLO, rng=4)
        state = controller.run_until_complete()
        assert state.complete
        assert seen[-1] == state

    def test_run_until_complete_bounded(self):
        params = SimulationParameters(64, 0.2, 1.0, NoiseChannelType.DEPOLARIZING)
        controller = SimulationController(params, lambda s: None, rng=FixedRandom(0.0))
        state = controller.run_until_complete(max_rounds=1)
        assert state.round == 1
        assert not state.complete

    def test_update_parameters(self):
        seen = []
        controller = SimulationController(SimulationParameters(4, 0.1, 0.95), seen.append, rng=0)
        controller.update_parameters(SimulationParameters(2, 0.1, 0.95))
        assert seen[-1].num_pairs == 2

    def test_wrap_existing_engine(self):
        seen = []
        engine = PurificationEngine(SimulationParameters(2, 0.1, 0.95), rng=0)
        controller = SimulationController.for_engine(engine, seen.append)
        controller.next_step()
        assert seen[-1].purification_step is PurificationStep.TWIRLED
        assert math.isclose(seen[-1].average_fidelity, seen[0].average_fidelity)
