"""
Purification strategies.

A strategy computes the result of each protocol transition; the engine
decides which transition runs next. Two strategies are provided:

- AverageStrategy works on Bell-basis matrices with closed-form Werner
  projections and the analytic BBPSSW success probability.
- MonteCarloStrategy works on computational-basis matrices, applying
  sampled twirls, explicit bilateral CNOTs and projective measurements.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional, Sequence, Tuple

from purisim.core.density_matrix import DensityMatrix
from purisim.core.gates import apply_cnot, apply_single_qubit_gate, ry
from purisim.core.types import (
    Basis,
    EngineType,
    MeasurementRecord,
    PendingPairs,
    QubitPair,
    SimulationParameters,
)
from purisim.errors import ProtocolStateError
from purisim.observables.bell import (
    BellState,
    depolarize,
    exchange_psi_minus_phi_plus,
    fidelity_from_bell_basis_matrix,
    fidelity_from_computational_basis_matrix,
    werner_state,
)
from purisim.observables.measurement import measure_qubit
from purisim.observables.partial_trace import partial_trace
from purisim.runtime.states import create_noisy_epr_with_channel
from purisim.runtime.twirling import pauli_twirl
from purisim.utils.rng import RandomSource, uniform


Pairs = Tuple[QubitPair, ...]


def prepare_pairs_for_cnot(pairs: Sequence[QubitPair]) -> PendingPairs:
    """
    Group pairs by position into (control, target) couples.

    Pairs 0 and 1 form the first couple, 2 and 3 the second, and so on.
    With an odd pool the last pair is held back as ``unpaired``.
    """
    pairs = tuple(pairs)
    usable = len(pairs) - len(pairs) % 2
    return PendingPairs(
        control_pairs=pairs[0:usable:2],
        target_pairs=pairs[1:usable:2],
        unpaired=pairs[-1] if len(pairs) % 2 else None,
    )


def bbpssw_success_probability(f: float) -> float:
    """p = f² + (1-f)²/9"""
    return f * f + (1 - f) ** 2 / 9


def bbpssw_output_fidelity(f: float) -> float:
    """F' = (f² + (1-f)²/9) / (f² + 2f(1-f)/3 + 5(1-f)²/9)"""
    numerator = f * f + (1 - f) ** 2 / 9
    denominator = f * f + 2 * f * (1 - f) / 3 + 5 * (1 - f) ** 2 / 9
    return numerator / denominator


def bilateral_cnot_average(
    control: DensityMatrix,
    target: DensityMatrix,
    rng: Optional[RandomSource] = None
) -> Tuple[bool, DensityMatrix, float]:
    """
    Closed-form BBPSSW trial on two Φ+-targeted Werner pairs.

    Both pairs are assumed to share the control's fidelity f = ρ_c[0][0].
    The trial succeeds when a uniform draw falls below the success
    probability; the surviving control is then the Werner state with the
    improved fidelity F'. A failed trial returns the control unchanged.

    Returns:
        (successful, control state after the trial, success probability)
    """
    if control.dim != 4 or target.dim != 4:
        raise ValueError("bilateral_cnot_average expects two 2-qubit states")
    f = fidelity_from_bell_basis_matrix(control, BellState.PHI_PLUS)
    p_success = bbpssw_success_probability(f)
    if uniform(rng) < p_success:
        return True, werner_state(bbpssw_output_fidelity(f), BellState.PHI_PLUS), p_success
    return False, control, p_success


class PurificationStrategy(ABC):
    """How each transition of a purification round is computed."""

    engine_type: EngineType
    basis: Basis

    @abstractmethod
    def fidelity(self, rho: DensityMatrix, state: BellState) -> float:
        """Fidelity of a pair state (in this strategy's basis) with ``state``."""

    @abstractmethod
    def prepare_state(self, params: SimulationParameters, rng: RandomSource) -> DensityMatrix:
        """Fresh noisy pair for the start of a run."""

    @abstractmethod
    def twirl(self, pairs: Pairs, rng: RandomSource) -> Pairs:
        """initial -> twirled"""

    @abstractmethod
    def exchange(self, pairs: Pairs) -> Pairs:
        """twirled -> exchanged"""

    @abstractmethod
    def apply_bilateral_step(self, pending: PendingPairs) -> PendingPairs:
        """exchanged -> cnot: attach the joint control/target states."""

    @abstractmethod
    def measure(self, pending: PendingPairs, rng: RandomSource) -> Tuple[MeasurementRecord, ...]:
        """cnot -> measured: one record per control pair."""

    @abstractmethod
    def twirl_exchange(self, pairs: Pairs, rng: RandomSource) -> Pairs:
        """Undo the exchange and re-twirl survivors for the next round."""

    def initialize(self, params: SimulationParameters, rng: RandomSource) -> Pairs:
        pairs = []
        for i in range(params.initial_pairs):
            rho = self.prepare_state(params, rng)
            pairs.append(QubitPair(
                id=i,
                density_matrix=rho,
                fidelity=self.fidelity(rho, BellState.PSI_MINUS),
                basis=self.basis,
            ))
        return tuple(pairs)

    def discard_and_recycle(self, pending: PendingPairs) -> Pairs:
        """measured -> discard: keep successful controls, then the held-back pair."""
        if pending.results is None:
            raise ProtocolStateError("discard requires measurement results")
        survivors = [r.control for r in pending.results if r.successful]
        if pending.unpaired is not None:
            survivors.append(pending.unpaired)
        return tuple(survivors)

    def _evolve(self, pair: QubitPair, rho: DensityMatrix, state: BellState) -> QubitPair:
        return pair.evolve(rho, self.fidelity(rho, state))


class AverageStrategy(PurificationStrategy):
    """Bell-basis, closed-form BBPSSW."""

    engine_type = EngineType.AVERAGE
    basis = Basis.BELL

    def fidelity(self, rho, state):
        return fidelity_from_bell_basis_matrix(rho, state)

    def prepare_state(self, params, rng):
        return create_noisy_epr_with_channel(
            params.noise_parameter, params.noise_channel, rng, basis=Basis.BELL
        )

    def twirl(self, pairs, rng):
        return tuple(
            self._evolve(p, depolarize(p.density_matrix), BellState.PSI_MINUS) for p in pairs
        )

    def exchange(self, pairs):
        return tuple(
            self._evolve(p, exchange_psi_minus_phi_plus(p.density_matrix), BellState.PHI_PLUS)
            for p in pairs
        )

    def apply_bilateral_step(self, pending):
        joint = tuple(
            DensityMatrix.tensor(c.density_matrix, t.density_matrix)
            for c, t in zip(pending.control_pairs, pending.target_pairs)
        )
        return replace(pending, joint_states=joint)

    def measure(self, pending, rng):
        records = []
        for control, target in zip(pending.control_pairs, pending.target_pairs):
            successful, rho, p_success = bilateral_cnot_average(
                control.density_matrix, target.density_matrix, rng
            )
            if successful:
                control = self._evolve(control, rho, BellState.PHI_PLUS)
            records.append(MeasurementRecord(control=control, successful=successful, probability=p_success))
        return tuple(records)

    def twirl_exchange(self, pairs, rng):
        return tuple(
            self._evolve(
                p, depolarize(exchange_psi_minus_phi_plus(p.density_matrix)), BellState.PSI_MINUS
            )
            for p in pairs
        )


class MonteCarloStrategy(PurificationStrategy):
    """
    Computational-basis simulation with sampled outcomes.

    Joint states order the qubits (A_c, B_c, A_t, B_t): Alice's and Bob's
    halves of the control pair, then of the target pair.
    """

    engine_type = EngineType.MONTE_CARLO
    basis = Basis.COMPUTATIONAL

    def fidelity(self, rho, state):
        return fidelity_from_computational_basis_matrix(rho, state)

    def prepare_state(self, params, rng):
        return create_noisy_epr_with_channel(
            params.noise_parameter, params.noise_channel, rng, basis=Basis.COMPUTATIONAL
        )

    def twirl(self, pairs, rng):
        return tuple(
            self._evolve(p, pauli_twirl(p.density_matrix, rng), BellState.PSI_MINUS) for p in pairs
        )

    def exchange(self, pairs):
        # Ry(π) on Alice's qubit maps Ψ− to Φ+
        return tuple(
            self._evolve(
                p, apply_single_qubit_gate(p.density_matrix, ry(math.pi), 0), BellState.PHI_PLUS
            )
            for p in pairs
        )

    def apply_bilateral_step(self, pending):
        joint = []
        for c, t in zip(pending.control_pairs, pending.target_pairs):
            rho = DensityMatrix.tensor(c.density_matrix, t.density_matrix)
            rho = apply_cnot(rho, 0, 2)
            rho = apply_cnot(rho, 1, 3)
            joint.append(rho)
        return replace(pending, joint_states=tuple(joint))

    def measure(self, pending, rng):
        if pending.joint_states is None:
            raise ProtocolStateError("measure requires joint states from the bilateral CNOT")
        records = []
        for control, joint in zip(pending.control_pairs, pending.joint_states):
            first = measure_qubit(joint, 2, rng)
            second = measure_qubit(first.post_state, 3, rng)
            reduced = partial_trace(second.post_state, [2, 3])
            records.append(MeasurementRecord(
                control=self._evolve(control, reduced, BellState.PHI_PLUS),
                successful=first.outcome == second.outcome,
                outcomes=(first.outcome, second.outcome),
                probability=first.probability * second.probability,
            ))
        return tuple(records)

    def twirl_exchange(self, pairs, rng):
        out = []
        for p in pairs:
            rho = apply_single_qubit_gate(p.density_matrix, ry(-math.pi), 0)
            out.append(self._evolve(p, pauli_twirl(rho, rng), BellState.PSI_MINUS))
        return tuple(out)


STRATEGIES = {
    EngineType.AVERAGE: AverageStrategy,
    EngineType.MONTE_CARLO: MonteCarloStrategy,
}


def get_strategy(engine_type) -> PurificationStrategy:
    """Strategy instance for an EngineType member or its string value."""
    if isinstance(engine_type, PurificationStrategy):
        return engine_type
    if isinstance(engine_type, str):
        engine_type = EngineType(engine_type.lower().replace("_", "-"))
    if engine_type not in STRATEGIES:
        raise ValueError(f"Unknown engine type: {engine_type}")
    return STRATEGIES[engine_type]()
