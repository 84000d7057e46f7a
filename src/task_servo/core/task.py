"""
Task-priority visual servoing control law.

A ServoTask regulates a stack of visual features s towards their desired
values s* by computing, at each cycle,

    J1 = sign * L * cVa * aJe
    e1 = W^+W J1^+ (s - s*)          (W^+W = I when J1 has full column rank)
    q_dot = -lambda(e1) * e1

and offers the null-space projector I - W^+W to pursue secondary
objectives without disturbing the features.
"""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

import numpy as np

from .contracts import FEATURE_ALL, InteractionMatrixType, InversionType, PrintLevel, ServoType
from .exceptions import FeatureDimensionMismatchError, NotInitializedError, ServoError
from .gains import GainLike, as_gain
from .ports import GainSchedule
from .kinematics import KinematicChain
from .linalg import DEFAULT_PINV_TOLERANCE, pseudo_inverse, range_projector
from .redundancy import RedundancyProjector
from .registry import FeatureRegistry
from .stacking import StackedBuffer

if TYPE_CHECKING:
    from ..features.base import BasicFeature

logger = logging.getLogger(__name__)


class ServoTask:
    """
    Visual servoing task with a primary feature task and optional
    secondary objectives.

    The task owns the desired features it synthesizes when a feature is
    added without a desired counterpart; they are released by ``release()``
    or when leaving a ``with`` block. Every other feature is borrowed and
    must outlive the task.

    Example usage:
        with ServoTask(ServoType.EYEINHAND_CAMERA) as task:
            task.add_feature(p, p_star)
            task.set_lambda(0.5)
            v = task.compute_control_law()
    """

    def __init__(
        self,
        servo_type: ServoType = ServoType.NONE,
        interaction_matrix_type: InteractionMatrixType = InteractionMatrixType.DESIRED,
        inversion_type: InversionType = InversionType.PSEUDO_INVERSE,
        gain: GainLike = 1.0,
        pinv_tolerance: float = DEFAULT_PINV_TOLERANCE,
    ):
        """
        Initialize an empty task.

        Args:
            servo_type: Kinematic configuration linking camera and actuator
            interaction_matrix_type: Features used to compute L
            inversion_type: Pseudo-inverse or transpose of the task Jacobian
            gain: Constant gain or callable evaluated on the error
            pinv_tolerance: Relative singular value threshold
        """
        self.features = FeatureRegistry()
        self.kinematics = KinematicChain(servo_type)
        self.projector = RedundancyProjector()

        self.interaction_matrix_type = interaction_matrix_type
        self.inversion_type = inversion_type
        self.lambda_: GainSchedule = as_gain(gain)
        self.pinv_tolerance = pinv_tolerance

        # One buffer per stacked quantity, each with its own capacity
        self._L_buffer = StackedBuffer(width=6)
        self._L_star_buffer = StackedBuffer(width=6)
        self._s_buffer = StackedBuffer()
        self._s_star_buffer = StackedBuffer()
        self._error_buffer = StackedBuffer()

        self.iteration = 0
        self.dim_task = 0

        # Derived artifacts, meaningful after the first successful cycle
        self.L = np.zeros((0, 6))
        self.s = np.zeros(0)
        self.s_star = np.zeros(0)
        self.error = np.zeros(0)
        self.J1: Optional[np.ndarray] = None
        self.J1p: Optional[np.ndarray] = None
        self.rank_J1 = 0
        self.WpW: Optional[np.ndarray] = None
        self.e1: Optional[np.ndarray] = None
        self.e: Optional[np.ndarray] = None
        self.interaction_matrix_computed = False
        self.error_computed = False

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def servo_type(self) -> ServoType:
        return self.kinematics.servo_type

    def set_servo(self, servo_type: ServoType) -> None:
        self.kinematics.set_servo(servo_type)

    def set_interaction_matrix_type(
        self,
        interaction_matrix_type: InteractionMatrixType,
        inversion_type: Optional[InversionType] = None,
    ) -> None:
        self.interaction_matrix_type = interaction_matrix_type
        if inversion_type is not None:
            self.inversion_type = inversion_type

    def set_inversion_type(self, inversion_type: InversionType) -> None:
        self.inversion_type = inversion_type

    def set_lambda(self, gain: GainLike) -> None:
        """Set a constant gain or a gain schedule evaluated on the error."""
        self.lambda_ = as_gain(gain)

    def set_cVe(self, cVe) -> None:
        self.kinematics.set_cVe(cVe)

    def set_cVf(self, cVf) -> None:
        self.kinematics.set_cVf(cVf)

    def set_fVe(self, fVe) -> None:
        self.kinematics.set_fVe(fVe)

    def set_eJe(self, eJe) -> None:
        self.kinematics.set_eJe(eJe)

    def set_fJe(self, fJe) -> None:
        self.kinematics.set_fJe(fJe)

    # ------------------------------------------------------------------
    # Features
    # ------------------------------------------------------------------
    def add_feature(
        self,
        current: BasicFeature,
        desired: Optional[BasicFeature] = None,
        select: int = FEATURE_ALL,
    ) -> None:
        """
        Add a feature to the task.

        Args:
            current: Current feature
            desired: Desired feature; if None a neutral copy of current is
                created and owned by the task
            select: Selection bitmask of the regulated components
        """
        self.features.add_feature(current, desired, select)

    def get_dimension(self) -> int:
        """Recompute the task dimension from the registered features."""
        self.dim_task = self.features.get_dimension()
        return self.dim_task

    # ------------------------------------------------------------------
    # Stacked quantities
    # ------------------------------------------------------------------
    def compute_interaction_matrix(self) -> np.ndarray:
        """
        Stack the interaction matrices of the registered features.

        Returns:
            (dim_task, 6) interaction matrix L

        Raises:
            EmptyFeatureSetError: If no feature is registered
            FeatureDimensionMismatchError: In MEAN mode, if current and
                desired matrices differ in shape
        """
        entries = list(self.features)
        mode = self.interaction_matrix_type

        if mode is InteractionMatrixType.CURRENT:
            L = self._L_buffer.assemble(e.current.interaction(e.select) for e in entries)
        elif mode is InteractionMatrixType.DESIRED:
            L = self._L_buffer.assemble(e.desired.interaction(e.select) for e in entries)
        else:
            L = self._L_buffer.assemble(e.current.interaction(e.select) for e in entries)
            L_star = self._L_star_buffer.assemble(e.desired.interaction(e.select) for e in entries)
            if L.shape != L_star.shape:
                logger.error("cannot average interaction matrices of shapes %s and %s",
                             L.shape, L_star.shape)
                raise FeatureDimensionMismatchError(
                    f"current L is {L.shape} but desired L is {L_star.shape}"
                )
            L = (L + L_star) / 2.0

        self.L = L
        self.dim_task = L.shape[0]
        self.interaction_matrix_computed = True
        return L

    def compute_error(self) -> np.ndarray:
        """
        Stack s, s* and the feature errors.

        Each error contribution comes from the feature itself so that
        features may use a non-Euclidean error.

        Returns:
            (dim_task,) error vector

        Raises:
            EmptyFeatureSetError: If no feature is registered
        """
        entries = list(self.features)

        s = self._s_buffer.assemble(e.current.get_s() for e in entries)
        s_star = self._s_star_buffer.assemble(e.desired.get_s() for e in entries)
        error = self._error_buffer.assemble(e.current.error(e.desired, e.select) for e in entries)

        self.s = s
        self.s_star = s_star
        self.error = error
        self.dim_task = error.shape[0]
        self.error_computed = True
        return error

    # ------------------------------------------------------------------
    # Control law
    # ------------------------------------------------------------------
    def test_initialization(self) -> bool:
        return self.kinematics.test_initialization()

    def test_updated(self) -> bool:
        return self.kinematics.test_updated()

    def compute_control_law(self) -> np.ndarray:
        """
        Compute the velocity command of the primary task.

        Returns:
            (n,) actuator velocity -lambda(e1) * e1, n being the column
            count of the resolved Jacobian (6 in the camera frame). e1 is
            projected by W^+W unless rank(J1) reaches the 6 DOF of a twist.

        Raises:
            ServoConfigurationError: If no servo type was chosen
            NotInitializedError: If kinematic inputs are missing on the first cycle
            EmptyFeatureSetError: If no feature is registered
        """
        if self.iteration == 0 and not self.test_initialization():
            logger.error("All the matrices are not correctly initialized")
            raise NotInitializedError(
                "Cannot compute control law: all the matrices are not correctly initialized"
            )
        if not self.test_updated():
            logger.warning("All the matrices are not correctly updated")

        L = self.compute_interaction_matrix()
        error = self.compute_error()

        cVa, aJe = self.kinematics.resolve()

        J1 = L @ cVa @ aJe
        J1 = J1 * self.kinematics.sign
        # actuator DOF counted in the twist space of L
        n_dof = L.shape[1]

        if self.inversion_type is InversionType.PSEUDO_INVERSE:
            result = pseudo_inverse(J1, self.pinv_tolerance)
            J1p = result.pinv
            rank = result.rank
            WpW = range_projector(result.image_transpose)
        else:
            # no decomposition: the task is treated as full rank
            J1p = J1.T
            rank = n_dof
            WpW = np.eye(J1.shape[1])

        if rank == n_dof:
            e1 = J1p @ error
        else:
            e1 = WpW @ J1p @ error

        e = -self.lambda_(e1) * e1

        self.J1 = J1
        self.J1p = J1p
        self.rank_J1 = rank
        self.WpW = WpW
        self.e1 = e1
        self.e = e
        self.iteration += 1
        return e

    # ------------------------------------------------------------------
    # Redundancy
    # ------------------------------------------------------------------
    def secondary_task(self, *args: np.ndarray) -> np.ndarray:
        """
        Secondary task projected onto the null space of the primary task.

        Call as ``secondary_task(de2dt)`` for (I - W^+W) de2dt, or as
        ``secondary_task(e2, de2dt)`` for
        -lambda(e2) (I - W^+W) e2 + (I - W^+W) de2dt.

        compute_control_law() must have been called in the same cycle.

        Raises:
            NoFreeDofError: If the primary task uses every degree of freedom
        """
        if len(args) == 1:
            e2, de2dt = None, args[0]
        elif len(args) == 2:
            e2, de2dt = args
        else:
            raise TypeError("secondary_task expects (de2dt) or (e2, de2dt)")
        if self.J1 is None:
            raise ServoError("compute_control_law() must be called before secondary_task()")

        return self.projector.project(
            WpW=self.WpW,
            rank=self.rank_J1,
            n_dof=self.L.shape[1],
            de2dt=de2dt,
            e2=e2,
            gain=self.lambda_,
        )

    @property
    def I_WpW(self) -> Optional[np.ndarray]:
        return self.projector.I_WpW

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def release(self) -> None:
        """Release the features synthesized by the task. Idempotent."""
        self.features.release()

    def __enter__(self) -> 'ServoTask':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    def describe(self, level: PrintLevel = PrintLevel.ALL) -> str:
        lines = []
        if level is PrintLevel.ALL:
            lines.append("Visual servoing task:")
            lines.append(f"  Type of control law: {self.kinematics.describe()}")
            lines.append("  List of visual features : s")
            for entry in self.features:
                lines.append(f"    {entry.current.describe(entry.select)}")
            lines.append("  List of desired visual features : s*")
            for entry in self.features:
                lines.append(f"    {entry.desired.describe(entry.select)}")
            lines.append("  Interaction Matrix Ls:")
            if self.interaction_matrix_computed:
                lines.extend(f"    {row}" for row in np.array2string(self.L, precision=4).splitlines())
            else:
                lines.append("    not yet computed")
            lines.append("  Error vector (s-s*):")
            lines.append(f"    {self._error_string()}")
            lines.append(f"  Gain: {self.lambda_!r}")
        else:
            lines.append(f"Err (s-s*): {self._error_string()}")
        return "\n".join(lines)

    def _error_string(self) -> str:
        if not self.error_computed:
            return "not yet computed"
        return np.array2string(self.error, precision=4)

    def print_task(self, level: PrintLevel = PrintLevel.ALL) -> None:
        print(self.describe(level))
