"""Data model for purification simulations."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

from purisim.core.density_matrix import DensityMatrix


class Basis(Enum):
    BELL = "bell"
    COMPUTATIONAL = "computational"


class NoiseChannelType(Enum):
    UNIFORM_NOISE = "uniform-noise"
    AMPLITUDE_DAMPING = "amplitude-damping"
    DEPHASING = "dephasing"
    DEPOLARIZING = "depolarizing"


class EngineType(Enum):
    AVERAGE = "average"
    MONTE_CARLO = "monte-carlo"


class PurificationStep(Enum):
    """Stages of one purification round, in execution order."""
    INITIAL = "initial"
    TWIRLED = "twirled"
    EXCHANGED = "exchanged"
    CNOT = "cnot"
    MEASURED = "measured"
    DISCARD = "discard"
    COMPLETED = "completed"


@dataclass(frozen=True)
class SimulationParameters:
    """User-facing parameters of a simulation run."""
    initial_pairs: int
    noise_parameter: float
    target_fidelity: float
    noise_channel: NoiseChannelType = NoiseChannelType.AMPLITUDE_DAMPING

    def __post_init__(self):
        if isinstance(self.noise_channel, str):
            object.__setattr__(self, "noise_channel", NoiseChannelType(self.noise_channel))
        if int(self.initial_pairs) != self.initial_pairs or self.initial_pairs <= 0:
            raise ValueError(f"initial_pairs must be a positive integer, got {self.initial_pairs}")
        if not 0.0 <= self.noise_parameter <= 1.0:
            raise ValueError(f"noise_parameter must be in [0, 1], got {self.noise_parameter}")
        if not 0.0 < self.target_fidelity <= 1.0:
            raise ValueError(f"target_fidelity must be in (0, 1], got {self.target_fidelity}")

    def with_updates(self, **changes) -> SimulationParameters:
        return replace(self, **changes)


@dataclass(frozen=True)
class EngineConfig:
    """Engine settings that are not physics parameters."""
    max_rounds: int = 100
    tolerance: float = 1e-8
    seed: Optional[int] = None

    def __post_init__(self):
        if self.max_rounds < 1:
            raise ValueError(f"max_rounds must be at least 1, got {self.max_rounds}")


@dataclass(frozen=True)
class QubitPair:
    """
    One candidate entangled pair.

    Attributes:
        id: Stable identifier assigned at initialization
        density_matrix: 2-qubit state (Bell or computational basis)
        fidelity: Overlap with the protocol's current target Bell state
        basis: Basis in which ``density_matrix`` is expressed
    """
    id: int
    density_matrix: DensityMatrix
    fidelity: float
    basis: Basis = Basis.BELL

    def evolve(self, density_matrix: DensityMatrix, fidelity: float) -> QubitPair:
        """Successor pair carrying a new state."""
        return replace(self, density_matrix=density_matrix, fidelity=fidelity)


@dataclass(frozen=True)
class MeasurementRecord:
    """Outcome of one purification trial."""
    control: QubitPair
    successful: bool
    outcomes: Optional[Tuple[int, int]] = None
    probability: Optional[float] = None


@dataclass(frozen=True)
class PendingPairs:
    """Mid-round staging data, present only in the cnot and measured steps."""
    control_pairs: Tuple[QubitPair, ...]
    target_pairs: Tuple[QubitPair, ...]
    unpaired: Optional[QubitPair] = None
    joint_states: Optional[Tuple[DensityMatrix, ...]] = None
    results: Optional[Tuple[MeasurementRecord, ...]] = None


@dataclass
class SimulationState:
    """Full engine state; callers only ever see deep copies."""
    pairs: Tuple[QubitPair, ...] = field(default_factory=tuple)
    round: int = 0
    complete: bool = False
    purification_step: PurificationStep = PurificationStep.INITIAL
    pending_pairs: Optional[PendingPairs] = None
    average_fidelity: float = 0.0

    @property
    def best_fidelity(self) -> float:
        return max((p.fidelity for p in self.pairs), default=0.0)

    @property
    def num_pairs(self) -> int:
        return len(self.pairs)
