"""
Exceptions raised by the servoing task.

Every failure surfaces to the immediate caller of the failing operation;
nothing is retried internally. Numerical failures reported by numpy
(``numpy.linalg.LinAlgError``) are not wrapped and propagate unchanged.
"""


class ServoError(Exception):
    """Base class for all servoing task errors."""


class ServoConfigurationError(ServoError):
    """The control law was requested before a servo type was chosen."""


class NotInitializedError(ServoError):
    """Kinematic inputs required by the servo type were never supplied."""


class EmptyFeatureSetError(ServoError):
    """Interaction matrix or error assembly attempted without any feature."""


class NoFreeDofError(ServoError):
    """The primary task spans every actuator DOF; no null space is left."""


class FeatureDimensionMismatchError(ServoError):
    """Current and desired interaction matrices cannot be averaged."""


class InvalidKinematicInputError(ServoError, ValueError):
    """A twist transform or Jacobian has an unusable shape."""
