import logging

import numpy as np
import pytest

from task_servo import (
    EmptyFeatureSetError, FeatureDimensionMismatchError, FeatureOwner, GenericFeature,
    InteractionMatrixType, InversionType, NotInitializedError, PointFeature, PrintLevel,
    ServoConfigurationError, ServoTask, ServoType, ThetaUFeature,
)


def make_generic(s, L) -> GenericFeature:
    L = np.atleast_2d(np.asarray(L, dtype=float))
    f = GenericFeature(L.shape[0])
    f.set_s(s)
    f.set_interaction_matrix(L)
    return f


def make_point(x: float, y: float, Z: float) -> PointFeature:
    p = PointFeature()
    p.build_from(x, y, Z)
    return p


def make_point_task(servo_type=ServoType.EYEINHAND_CAMERA, n_points: int = 4) -> ServoTask:
    task = ServoTask(servo_type)
    coords = [(-0.1, -0.1), (0.12, -0.09), (0.1, 0.11), (-0.08, 0.1)]
    for x, y in coords[:n_points]:
        task.add_feature(make_point(x + 0.05, y - 0.02, 0.8), make_point(x, y, 0.5))
    return task


def test_scalar_feature_transpose_scenario() -> None:
    f = make_generic([1.0], [[1.0, 0.0, 0.0, 0.0, 0.0, 0.0]])
    task = ServoTask(ServoType.EYEINHAND_CAMERA)
    task.add_feature(f)
    task.set_inversion_type(InversionType.TRANSPOSE)
    task.set_lambda(1.0)

    v = task.compute_control_law()

    assert np.allclose(v, [-1.0, 0.0, 0.0, 0.0, 0.0, 0.0])
    assert task.rank_J1 == 6
    assert task.iteration == 1


def test_scalar_feature_pseudo_inverse() -> None:
    f = make_generic([1.0], [[2.0, 0.0, 0.0, 0.0, 0.0, 0.0]])
    task = ServoTask(ServoType.EYEINHAND_CAMERA, gain=0.5)
    task.add_feature(f, make_generic([0.0], [[2.0, 0.0, 0.0, 0.0, 0.0, 0.0]]))

    v = task.compute_control_law()

    assert task.rank_J1 == 1
    assert np.allclose(v, [-0.25, 0.0, 0.0, 0.0, 0.0, 0.0])


def test_camera_frame_initializes_without_kinematic_inputs() -> None:
    task = ServoTask(ServoType.EYEINHAND_CAMERA)
    assert task.test_initialization()
    task.add_feature(make_point(0.1, 0.0, 1.0))
    task.compute_control_law()
    # later cycles do not require any refresh either
    task.compute_control_law()
    assert task.iteration == 2


def test_undefined_servo_type_is_fatal() -> None:
    task = ServoTask()
    task.add_feature(make_point(0.1, 0.0, 1.0))
    with pytest.raises(ServoConfigurationError):
        task.compute_control_law()
    assert task.iteration == 0


def test_missing_kinematics_on_first_cycle() -> None:
    task = ServoTask(ServoType.EYEINHAND_L_cVe_eJe)
    task.add_feature(make_point(0.1, 0.0, 1.0))
    task.set_cVe(np.eye(6))
    with pytest.raises(NotInitializedError):
        task.compute_control_law()
    assert task.iteration == 0


def test_stale_kinematics_warn_but_continue(caplog) -> None:
    task = make_point_task(ServoType.EYEINHAND_L_cVe_eJe)
    task.set_cVe(np.eye(6))
    task.set_eJe(np.eye(6))
    first = task.compute_control_law()

    with caplog.at_level(logging.WARNING):
        second = task.compute_control_law()

    assert "eJe not updated" in caplog.text
    assert np.allclose(first, second)
    assert task.iteration == 2


def test_empty_feature_set_keeps_last_dimension() -> None:
    task = make_point_task(n_points=2)
    task.compute_control_law()
    assert task.dim_task == 4

    task.release()
    with pytest.raises(EmptyFeatureSetError):
        task.compute_control_law()
    assert task.dim_task == 4
    assert task.iteration == 1


def test_empty_feature_set_on_fresh_task() -> None:
    task = ServoTask(ServoType.EYEINHAND_CAMERA)
    with pytest.raises(EmptyFeatureSetError):
        task.compute_control_law()
    with pytest.raises(EmptyFeatureSetError):
        task.compute_error()
    assert task.dim_task == 0


def test_failed_cycle_keeps_kinematic_inputs_fresh(caplog) -> None:
    task = ServoTask(ServoType.EYEINHAND_L_cVe_eJe)
    task.set_cVe(np.eye(6))
    task.set_eJe(np.eye(6))
    with pytest.raises(EmptyFeatureSetError):
        task.compute_control_law()
    assert task.kinematics['eJe'].fresh

    task.add_feature(make_point(0.1, 0.0, 1.0))
    with caplog.at_level(logging.WARNING):
        task.compute_control_law()

    assert "not updated" not in caplog.text
    assert task.iteration == 1


def test_dimension_matches_interaction_matrix_and_error() -> None:
    task = make_point_task()
    tu = ThetaUFeature()
    tu.build_from([0.0, 0.1, 0.2])
    task.add_feature(tu, None, ThetaUFeature.SELECT_TUX | ThetaUFeature.SELECT_TUZ)
    task.add_feature(make_point(0.0, 0.2, 1.0), make_point(0.0, 0.0, 1.0), PointFeature.SELECT_Y)

    L = task.compute_interaction_matrix()
    error = task.compute_error()

    assert task.get_dimension() == 8 + 2 + 1
    assert L.shape == (11, 6)
    assert error.shape == (11,)
    assert task.dim_task == 11
    assert task.s.shape == (8 + 3 + 2,)
    assert task.s_star.shape == task.s.shape


def test_stacking_follows_registration_order() -> None:
    a = make_generic([1.0, 2.0], np.eye(6)[:2])
    b = make_generic([3.0], np.eye(6)[5:])
    task = ServoTask(ServoType.EYEINHAND_CAMERA)
    task.add_feature(a)
    task.add_feature(b)
    assert np.allclose(task.compute_error(), [1.0, 2.0, 3.0])
    assert np.allclose(task.compute_interaction_matrix(), np.vstack([np.eye(6)[:2], np.eye(6)[5:]]))


def test_mean_mode_averages_current_and_desired() -> None:
    task = make_point_task()
    task.set_interaction_matrix_type(InteractionMatrixType.CURRENT)
    L_current = task.compute_interaction_matrix()
    task.set_interaction_matrix_type(InteractionMatrixType.DESIRED)
    L_desired = task.compute_interaction_matrix()
    task.set_interaction_matrix_type(InteractionMatrixType.MEAN)
    L_mean = task.compute_interaction_matrix()

    assert not np.allclose(L_current, L_desired)
    assert np.allclose(L_mean, (L_current + L_desired) / 2.0)


def test_mean_mode_rejects_mismatched_shapes() -> None:
    current = make_generic([0.1, 0.2], np.eye(6)[:2])
    desired = make_generic([0.0, 0.0, 0.0], np.eye(6)[:3])
    task = ServoTask(ServoType.EYEINHAND_CAMERA)
    task.add_feature(current, desired)
    task.set_interaction_matrix_type(InteractionMatrixType.MEAN)
    with pytest.raises(FeatureDimensionMismatchError):
        task.compute_interaction_matrix()


def test_feature_error_is_used_instead_of_subtraction() -> None:
    tu, tu_star = ThetaUFeature(), ThetaUFeature()
    tu.build_from([0.0, 0.0, 3.0])
    tu_star.build_from([0.0, 0.0, -3.0])
    task = ServoTask(ServoType.EYEINHAND_CAMERA)
    task.add_feature(tu, tu_star)

    error = task.compute_error()

    assert np.allclose(error, [0.0, 0.0, 6.0 - 2.0 * np.pi])
    assert np.allclose(task.s - task.s_star, [0.0, 0.0, 6.0])


def test_eye_to_hand_flips_jacobian_sign() -> None:
    eye_in_hand = make_point_task(ServoType.EYEINHAND_L_cVe_eJe)
    eye_to_hand = make_point_task(ServoType.EYETOHAND_L_cVe_eJe)
    for task in (eye_in_hand, eye_to_hand):
        task.set_cVe(np.eye(6))
        task.set_eJe(np.eye(6))
        task.compute_control_law()

    assert np.allclose(eye_to_hand.J1, -eye_in_hand.J1)
    assert np.allclose(eye_to_hand.e, -eye_in_hand.e)


def test_task_jacobian_composes_kinematic_chain() -> None:
    rng = np.random.default_rng(7)
    cVf, fVe = rng.standard_normal((6, 6)), rng.standard_normal((6, 6))
    eJe = rng.standard_normal((6, 7))
    task = make_point_task(ServoType.EYETOHAND_L_cVf_fVe_eJe)
    task.set_cVf(cVf)
    task.set_fVe(fVe)
    task.set_eJe(eJe)

    v = task.compute_control_law()

    assert np.allclose(task.J1, -task.L @ cVf @ fVe @ eJe)
    assert v.shape == (7,)
    assert task.rank_J1 == 6
    assert task.WpW.shape == (7, 7)


def test_rank_deficient_task_is_projected() -> None:
    task = make_point_task(n_points=1)
    v = task.compute_control_law()

    assert task.rank_J1 == 2
    assert np.allclose(task.e1, task.WpW @ task.J1p @ task.error)
    assert np.allclose(v, -task.e1)
    # the command realises the exponential decrease of the error
    assert np.allclose(task.J1 @ v, -task.error)


def test_full_rank_task_uses_plain_pseudo_inverse() -> None:
    task = make_point_task(n_points=4)
    task.set_lambda(0.3)
    v = task.compute_control_law()
    assert task.rank_J1 == 6
    assert np.allclose(v, -0.3 * np.linalg.pinv(task.J1) @ task.error)


def test_gain_is_evaluated_on_primary_error() -> None:
    seen = []

    def gain(e1):
        seen.append(np.array(e1))
        return 2.0

    task = make_point_task(n_points=1)
    task.set_lambda(gain)
    v = task.compute_control_law()

    assert len(seen) == 1
    assert np.allclose(seen[0], task.e1)
    assert np.allclose(v, -2.0 * task.e1)


def test_iteration_counter_is_per_instance() -> None:
    a = make_point_task(n_points=1)
    b = make_point_task(n_points=1)
    for _ in range(3):
        a.compute_control_law()
    b.compute_control_law()
    assert a.iteration == 3
    assert b.iteration == 1


def test_joint_space_output_dimension() -> None:
    task = make_point_task(ServoType.EYEINHAND_L_cVe_eJe)
    task.set_cVe(np.eye(6))
    task.set_eJe(np.hstack([np.eye(6), np.zeros((6, 1))]))
    v = task.compute_control_law()
    assert v.shape == (7,)
    assert task.rank_J1 == 6


def test_context_manager_releases_synthesized_features() -> None:
    p = make_point(0.1, 0.2, 1.0)
    with ServoTask(ServoType.EYEINHAND_CAMERA) as task:
        task.add_feature(p)
        desired = task.features.desired_features()[0]
        assert desired.owner is FeatureOwner.TASK
    assert desired.released
    assert not p.released
    # early release then scope exit
    task.release()


def test_release_twice_is_a_noop() -> None:
    task = make_point_task(n_points=1)
    task.release()
    task.release()
    assert task.features.is_empty()


def test_describe_before_and_after_control_law(capsys) -> None:
    task = make_point_task(n_points=1)
    assert "not yet computed" in task.describe()

    task.compute_control_law()
    task.print_task(PrintLevel.MINIMUM)
    out = capsys.readouterr().out
    assert out.startswith("Err (s-s*):")
    assert "not yet computed" not in out

    text = task.describe(PrintLevel.ALL)
    assert "Eye-in-hand configuration" in text
    assert "PointFeature" in text
