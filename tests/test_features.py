import numpy as np
import pytest

from task_servo.core.contracts import FeatureOwner
from task_servo.features import (
    FEATURE_ALL, GenericFeature, PointFeature, ThetaUFeature, selection_indices,
)


def rot_z(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def test_selection_indices() -> None:
    assert selection_indices(FEATURE_ALL, 3) == [0, 1, 2]
    assert selection_indices(0b101, 3) == [0, 2]
    assert selection_indices(0, 3) == []
    assert selection_indices(0b1000, 3) == []


def test_point_interaction_matrix() -> None:
    p = PointFeature()
    p.build_from(0.2, -0.1, 2.0)
    L = p.interaction()
    expected = np.array([
        [-0.5, 0.0, 0.1, -0.02, -1.04, -0.1],
        [0.0, -0.5, -0.05, 1.01, 0.02, -0.2],
    ])
    assert np.allclose(L, expected)
    assert np.allclose(p.interaction(PointFeature.SELECT_Y), expected[1:])
    assert p.get_dimension(PointFeature.SELECT_X) == 1


def test_point_from_pixel_and_depth_validation() -> None:
    p = PointFeature.from_pixel(420.0, 200.0, Z=1.0, fx=500.0, fy=500.0, cx=320.0, cy=240.0)
    assert np.allclose(p.get_s(), [0.2, -0.08])
    with pytest.raises(ValueError):
        p.set_Z(0.0)


def test_point_error_selection() -> None:
    p, p_star = PointFeature(), PointFeature()
    p.build_from(0.3, 0.1, 1.0)
    p_star.build_from(0.1, 0.4, 1.0)
    assert np.allclose(p.error(p_star), [0.2, -0.3])
    assert np.allclose(p.error(p_star, PointFeature.SELECT_Y), [-0.3])


def test_reset_and_duplicate() -> None:
    p = PointFeature()
    p.build_from(0.3, 0.1, 3.0)
    twin = p.duplicate()
    twin.reset()
    assert np.allclose(twin.get_s(), 0.0)
    assert twin.Z == 1.0
    assert twin.owner is FeatureOwner.USER
    assert np.allclose(p.get_s(), [0.3, 0.1])


def test_thetau_from_rotation() -> None:
    tu = ThetaUFeature()
    tu.build_from_rotation(rot_z(0.3))
    assert np.allclose(tu.get_s(), [0.0, 0.0, 0.3])
    assert np.isclose(tu.theta, 0.3)


def test_thetau_interaction_matrix() -> None:
    tu = ThetaUFeature()
    L = tu.interaction()
    assert np.allclose(L[:, :3], 0.0)
    assert np.allclose(L[:, 3:], np.eye(3))

    tu.build_from([0.0, 0.0, 0.5])
    L = tu.interaction(ThetaUFeature.SELECT_TUZ)
    # rotation about the axis itself is unaffected by the correction terms
    assert np.allclose(L, [[0.0, 0.0, 0.0, 0.0, 0.0, 1.0]])


def test_thetau_error_wraps_around_pi() -> None:
    tu, tu_star = ThetaUFeature(), ThetaUFeature()
    tu.build_from([0.0, 0.0, 3.0])
    tu_star.build_from([0.0, 0.0, -3.0])
    assert np.allclose(tu.error(tu_star), [0.0, 0.0, 6.0 - 2.0 * np.pi])
    assert np.allclose(tu.error(tu_star, ThetaUFeature.SELECT_TUX), [0.0])


def test_generic_feature_requires_interaction_matrix() -> None:
    f = GenericFeature(2)
    with pytest.raises(ValueError):
        f.interaction()
    with pytest.raises(ValueError):
        f.set_interaction_matrix(np.eye(3))
    with pytest.raises(ValueError):
        GenericFeature(0)


def test_generic_feature_custom_error() -> None:
    f, f_star = GenericFeature(3), GenericFeature(3)
    f.set_s([1.0, 2.0, 3.0])
    assert np.allclose(f.error(f_star, 0b110), [2.0, 3.0])
    f.set_error([0.5, -0.5, 0.25])
    assert np.allclose(f.error(f_star), [0.5, -0.5, 0.25])
    f.reset()
    assert np.allclose(f.error(f_star), 0.0)


def test_release_clears_value() -> None:
    f = GenericFeature(2)
    f.set_s([1.0, 1.0])
    f.release()
    assert f.released
    assert np.allclose(f.get_s(), 0.0)
