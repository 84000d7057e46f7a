"""
Kinematic chain resolution for the supported servo configurations.

Each servo type links the feature frame (camera, c) to the actuated frame
(end-effector e, or fixed frame f) through a different product of twist
transforms and Jacobians:

    EYEINHAND_CAMERA         cVa = I,        aJe = I        (defaults)
    EYEINHAND_L_cVe_eJe      cVa = cVe,      aJe = eJe
    EYETOHAND_L_cVe_eJe      cVa = cVe,      aJe = eJe
    EYETOHAND_L_cVf_fVe_eJe  cVa = cVf fVe,  aJe = eJe
    EYETOHAND_L_cVf_fJe      cVa = cVf,      aJe = fJe

All mode dispatch lives in this module so that the required inputs, the
inputs consumed per cycle and the Jacobian sign always agree.
"""

import logging
from typing import Dict, Tuple

import numpy as np

from .contracts import KinematicInput, ServoType, TWIST_DIM
from .exceptions import (
    InvalidKinematicInputError, NotInitializedError, ServoConfigurationError,
)

logger = logging.getLogger(__name__)

# Inputs that must have been supplied once before the first cycle
_REQUIRED_AT_INIT: Dict[ServoType, Tuple[str, ...]] = {
    ServoType.EYEINHAND_CAMERA: (),
    ServoType.EYEINHAND_L_cVe_eJe: ('cVe', 'eJe'),
    ServoType.EYETOHAND_L_cVe_eJe: ('cVe', 'eJe'),
    ServoType.EYETOHAND_L_cVf_fVe_eJe: ('cVf', 'fVe', 'eJe'),
    ServoType.EYETOHAND_L_cVf_fJe: ('cVf', 'fJe'),
}

# Inputs that must be refreshed every cycle
_REQUIRED_EACH_CYCLE: Dict[ServoType, Tuple[str, ...]] = {
    ServoType.EYEINHAND_CAMERA: (),
    ServoType.EYEINHAND_L_cVe_eJe: ('eJe',),
    ServoType.EYETOHAND_L_cVe_eJe: ('cVe', 'eJe'),
    ServoType.EYETOHAND_L_cVf_fVe_eJe: ('fVe', 'eJe'),
    ServoType.EYETOHAND_L_cVf_fJe: ('fJe',),
}

_DESCRIPTIONS: Dict[ServoType, str] = {
    ServoType.NONE: "Type of task have not been chosen yet !",
    ServoType.EYEINHAND_CAMERA: "Eye-in-hand configuration, control in the camera frame",
    ServoType.EYEINHAND_L_cVe_eJe: "Eye-in-hand configuration, control in the articular frame",
    ServoType.EYETOHAND_L_cVe_eJe: "Eye-to-hand configuration, s_dot = L cVe eJe q_dot",
    ServoType.EYETOHAND_L_cVf_fVe_eJe: "Eye-to-hand configuration, s_dot = L cVf fVe eJe q_dot",
    ServoType.EYETOHAND_L_cVf_fJe: "Eye-to-hand configuration, s_dot = L cVf fJe q_dot",
}


class KinematicChain:
    """
    Holds the kinematic inputs of a task and resolves them into (cVa, aJe).

    Example usage:
        chain = KinematicChain(ServoType.EYEINHAND_L_cVe_eJe)
        chain.set_cVe(cVe)
        chain.set_eJe(eJe)          # every cycle
        if chain.test_initialization():
            cVa, aJe = chain.resolve()
    """

    def __init__(self, servo_type: ServoType = ServoType.NONE):
        self.inputs: Dict[str, KinematicInput] = {
            name: KinematicInput(name) for name in ('cVe', 'cVf', 'fVe', 'eJe', 'fJe')
        }
        self.servo_type = ServoType.NONE
        self.set_servo(servo_type)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def set_servo(self, servo_type: ServoType) -> None:
        """
        Select the servo configuration.

        In the camera frame configuration the caller is relieved from
        supplying cVe and eJe: identities are installed.
        """
        self.servo_type = servo_type
        if servo_type is ServoType.EYEINHAND_CAMERA:
            self.set_cVe(np.eye(TWIST_DIM))
            self.set_eJe(np.eye(TWIST_DIM))

    @property
    def sign(self) -> int:
        return self.servo_type.sign

    def describe(self) -> str:
        return _DESCRIPTIONS[self.servo_type]

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------
    def _set_twist(self, name: str, V) -> None:
        V = np.asarray(V, dtype=float)
        if V.shape != (TWIST_DIM, TWIST_DIM):
            raise InvalidKinematicInputError(f"{name} must be 6x6, got {V.shape}")
        self.inputs[name].update(V)

    def _set_jacobian(self, name: str, J) -> None:
        J = np.asarray(J, dtype=float)
        if J.ndim != 2 or J.shape[0] != TWIST_DIM or J.shape[1] == 0:
            raise InvalidKinematicInputError(f"{name} must be 6xn, got {J.shape}")
        self.inputs[name].update(J)

    def set_cVe(self, cVe) -> None:
        self._set_twist('cVe', cVe)

    def set_cVf(self, cVf) -> None:
        self._set_twist('cVf', cVf)

    def set_fVe(self, fVe) -> None:
        self._set_twist('fVe', fVe)

    def set_eJe(self, eJe) -> None:
        self._set_jacobian('eJe', eJe)

    def set_fJe(self, fJe) -> None:
        self._set_jacobian('fJe', fJe)

    def __getitem__(self, name: str) -> KinematicInput:
        return self.inputs[name]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def _require_servo(self) -> None:
        if self.servo_type is ServoType.NONE:
            logger.error("No control law have been yet defined")
            raise ServoConfigurationError("No control law have been yet defined")

    def test_initialization(self) -> bool:
        """
        Check that every input needed by the servo type was supplied once.

        Raises:
            ServoConfigurationError: If no servo type was chosen
        """
        self._require_servo()
        ok = True
        for name in _REQUIRED_AT_INIT[self.servo_type]:
            if not self.inputs[name].supplied:
                logger.error("%s not initialized", name)
                ok = False
        return ok

    def test_updated(self) -> bool:
        """
        Check that the per-cycle inputs were refreshed since the last cycle.

        Stale inputs are reported as warnings; the last known values remain
        usable.

        Raises:
            ServoConfigurationError: If no servo type was chosen
        """
        self._require_servo()
        ok = True
        for name in _REQUIRED_EACH_CYCLE[self.servo_type]:
            if not self.inputs[name].fresh:
                logger.warning("%s not updated", name)
                ok = False
        return ok

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------
    def resolve(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Select (cVa, aJe) for the servo type and consume the used inputs.

        Returns:
            Tuple of (cVa, aJe): 6x6 twist transform and 6xn Jacobian
        """
        self._require_servo()
        missing = [n for n in _REQUIRED_AT_INIT[self.servo_type] if not self.inputs[n].supplied]
        if missing:
            logger.error("%s not initialized", ", ".join(missing))
            raise NotInitializedError(f"{', '.join(missing)} not initialized")

        st = self.servo_type
        if st in (ServoType.EYEINHAND_CAMERA, ServoType.EYEINHAND_L_cVe_eJe,
                  ServoType.EYETOHAND_L_cVe_eJe):
            cVa = self.inputs['cVe'].consume()
            aJe = self.inputs['eJe'].consume()
        elif st is ServoType.EYETOHAND_L_cVf_fVe_eJe:
            cVa = self.inputs['cVf'].value @ self.inputs['fVe'].consume()
            aJe = self.inputs['eJe'].consume()
        else:
            cVa = self.inputs['cVf'].value
            aJe = self.inputs['fJe'].consume()
        return cVa, aJe
