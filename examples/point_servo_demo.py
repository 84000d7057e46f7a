#!/usr/bin/env python3
"""
Image-based visual servoing of a free-flying camera on four points.

The camera twist computed by the task is integrated on SE(3) with mink; the
scene is a 20 cm square target. A secondary task can be enabled when only a
subset of the point coordinates is regulated, in which case the camera
drifts along the free directions without disturbing the features.

Usage:
    python examples/point_servo_demo.py
    python examples/point_servo_demo.py --config configs/eye_in_hand_camera.yaml
    python examples/point_servo_demo.py --single-point --secondary 0.05
    python examples/point_servo_demo.py --realtime
"""

import argparse
import logging

import mink
import numpy as np
from loop_rate_limiters import RateLimiter
from scipy.spatial.transform import Rotation

from task_servo import (
    AdaptiveGain, PointFeature, PrintLevel, ServoTask, ServoType,
)
from task_servo.core.config import build_task, load_config
from task_servo.core.transforms import homogeneous

TARGET_POINTS = np.array([
    [-0.1, -0.1, 0.0],
    [0.1, -0.1, 0.0],
    [0.1, 0.1, 0.0],
    [-0.1, 0.1, 0.0],
])


def project(wMc: np.ndarray, P_w: np.ndarray):
    """Normalized coordinates and depth of a world point seen from wMc."""
    P_c = np.linalg.inv(wMc) @ np.append(P_w, 1.0)
    X, Y, Z = P_c[:3]
    return X / Z, Y / Z, Z


def make_pose(rpy_deg, t):
    R = Rotation.from_euler('xyz', rpy_deg, degrees=True).as_matrix()
    return homogeneous(R, np.asarray(t, dtype=float))


def main():
    parser = argparse.ArgumentParser(description="Point-based visual servoing demo")
    parser.add_argument('--config', type=str, default=None, help="YAML servo configuration")
    parser.add_argument('--iterations', type=int, default=300)
    parser.add_argument('--dt', type=float, default=0.04, help="Integration step (s)")
    parser.add_argument('--single-point', action='store_true',
                        help="Regulate only the first point (leaves free DOF)")
    parser.add_argument('--secondary', type=float, default=0.0,
                        help="Velocity along camera z pursued in the null space")
    parser.add_argument('--realtime', action='store_true', help="Run at 1/dt Hz")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if args.config is not None:
        task = build_task(load_config(args.config))
    else:
        task = ServoTask(ServoType.EYEINHAND_CAMERA)
        task.set_lambda(AdaptiveGain(gain_at_zero=4.0, gain_at_infinity=0.4, slope_at_zero=30.0))

    # Desired camera 0.5 m above the target, looking down on it
    cdMo_w = make_pose([180.0, 0.0, 0.0], [0.0, 0.0, 0.5])
    wMc = make_pose([170.0, 10.0, 20.0], [0.1, -0.05, 0.8])

    points = TARGET_POINTS[:1] if args.single_point else TARGET_POINTS
    current, desired = [], []
    for P in points:
        p, p_star = PointFeature(), PointFeature()
        p.build_from(*project(wMc, P))
        p_star.build_from(*project(cdMo_w, P))
        task.add_feature(p, p_star)
        current.append(p)
        desired.append(p_star)

    rate = RateLimiter(frequency=1.0 / args.dt, warn=False) if args.realtime else None

    with task:
        for k in range(args.iterations):
            for p, P in zip(current, points):
                p.build_from(*project(wMc, P))

            v = task.compute_control_law()
            if args.secondary and task.rank_J1 < 6:
                de2dt = np.array([0.0, 0.0, args.secondary, 0.0, 0.0, 0.0])
                v = v + task.secondary_task(de2dt)

            wMc = wMc @ mink.SE3.exp(v * args.dt).as_matrix()

            if k % 25 == 0:
                print(f"[SERVO] iter {k:4d} |e| = {np.linalg.norm(task.error):.6f} "
                      f"rank = {task.rank_J1}")
            if rate is not None:
                rate.sleep()

        task.print_task(PrintLevel.MINIMUM)


if __name__ == '__main__':
    main()
