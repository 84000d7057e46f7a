"""
Linear algebra helpers for the task-priority control law.

Wraps numpy's SVD so that the pseudo-inverse, the numerical rank and the
range images of a task Jacobian come out of a single decomposition. The
range images are what the projection operators are built from:

    W^+W   = V_r V_r^T        (projector onto the row space of J)
    I-W^+W                    (projector onto the null space of J)

where V_r holds the right singular vectors of the kept singular values.
"""

import numpy as np

from .contracts import PseudoInverseResult

# Relative singular value threshold used by the control law.
DEFAULT_PINV_TOLERANCE = 1e-6


def pseudo_inverse(J: np.ndarray, tolerance: float = DEFAULT_PINV_TOLERANCE) -> PseudoInverseResult:
    """
    Compute the pseudo-inverse of J with its rank and range images.

    Singular values lower than ``tolerance * max(sv)`` are considered null.

    Args:
        J: (m, n) matrix
        tolerance: Relative threshold on the singular values

    Returns:
        PseudoInverseResult(pinv, rank, singular_values, image, image_transpose)
    """
    J = np.atleast_2d(np.asarray(J, dtype=float))
    m, n = J.shape
    if m == 0 or n == 0:
        return PseudoInverseResult(
            pinv=np.zeros((n, m)),
            rank=0,
            singular_values=np.zeros(0),
            image=np.zeros((m, 0)),
            image_transpose=np.zeros((n, 0)),
        )

    U, sv, Vt = np.linalg.svd(J, full_matrices=False)
    # sv is sorted in descending order; an all-zero J keeps nothing
    keep = sv > tolerance * sv[0]
    rank = int(np.count_nonzero(keep))

    U_r = U[:, keep]
    V_r = Vt[keep, :].T
    pinv = (V_r / sv[keep]) @ U_r.T

    return PseudoInverseResult(
        pinv=pinv,
        rank=rank,
        singular_values=sv,
        image=U_r,
        image_transpose=V_r,
    )


def range_projector(image_transpose: np.ndarray) -> np.ndarray:
    """Projector W^+W onto the space spanned by the columns of image_transpose."""
    return image_transpose @ image_transpose.T


def null_projector(WpW: np.ndarray) -> np.ndarray:
    """Projector I - W^+W onto the complement of the range projector."""
    return np.eye(WpW.shape[0]) - WpW
