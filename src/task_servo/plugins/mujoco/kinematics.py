"""
MuJoCo-backed kinematic source for eye-in-hand servoing tasks.

Computes, from a MuJoCo model and its current data, the two kinematic inputs
of an EYEINHAND_L_cVe_eJe task:

    eJe : 6xn Jacobian of the end-effector site expressed in the site frame
    cVe : 6x6 twist transform from the end-effector site to the camera

Requirements:
    - mujoco: pip install mujoco
    - mink: pip install mink

The caller is responsible for running mj_forward / mj_step before update()
so that the site and camera poses in data are current.
"""

from typing import Optional, Sequence

import mujoco
import numpy as np

from ...core.transforms import homogeneous, velocity_twist_from_pose

# MuJoCo cameras look along -z with y up; vision code expects z forward, y down.
_MUJOCO_TO_OPENCV = np.diag([1.0, -1.0, -1.0])


class MujocoKinematics:
    """
    Kinematic source reading cVe and eJe from a MuJoCo simulation.

    Implements the KinematicSource Protocol defined in core/ports.py.

    Example:
        model = mujoco.MjModel.from_xml_path('robot.xml')
        data = mujoco.MjData(model)
        source = MujocoKinematics(model, camera_name='wrist_cam',
                                  end_effector_site='ee_site', data=data)
        task = ServoTask(ServoType.EYEINHAND_L_cVe_eJe)

        # In control loop (after mujoco.mj_step):
        source.update(task)
        q_dot = task.compute_control_law()
    """

    def __init__(
        self,
        model: 'mujoco.MjModel',
        camera_name: str,
        end_effector_site: str,
        data: Optional['mujoco.MjData'] = None,
        joint_dofs: Optional[Sequence[int]] = None,
        opencv_camera: bool = True,
    ):
        """
        Initialize MuJoCo kinematic source.

        Args:
            model: MuJoCo model
            camera_name: Name of the camera observing the features
            end_effector_site: Site name of the end-effector frame
            data: Default MjData used when update() receives none
            joint_dofs: Velocity indices of the controlled joints (all by default)
            opencv_camera: Express the camera frame with z forward, y down
        """
        self.model = model
        self.data = data
        self.camera_id = mujoco.mj_name2id(model, mujoco.mjtObj.mjOBJ_CAMERA, camera_name)
        self.site_id = mujoco.mj_name2id(model, mujoco.mjtObj.mjOBJ_SITE, end_effector_site)
        if self.camera_id < 0:
            raise ValueError(f"camera '{camera_name}' not found in model")
        if self.site_id < 0:
            raise ValueError(f"site '{end_effector_site}' not found in model")
        self.joint_dofs = list(joint_dofs) if joint_dofs is not None else list(range(model.nv))
        self.opencv_camera = opencv_camera

    def _data(self, data: Optional['mujoco.MjData']) -> 'mujoco.MjData':
        data = data if data is not None else self.data
        if data is None:
            raise ValueError("no MjData given and no default data configured")
        return data

    def end_effector_pose(self, data: Optional['mujoco.MjData'] = None) -> np.ndarray:
        """4x4 pose of the end-effector site in the world frame."""
        data = self._data(data)
        R = data.site_xmat[self.site_id].reshape(3, 3)
        return homogeneous(R, data.site_xpos[self.site_id])

    def camera_pose(self, data: Optional['mujoco.MjData'] = None) -> np.ndarray:
        """4x4 pose of the camera in the world frame."""
        data = self._data(data)
        R = data.cam_xmat[self.camera_id].reshape(3, 3)
        if self.opencv_camera:
            R = R @ _MUJOCO_TO_OPENCV
        return homogeneous(R, data.cam_xpos[self.camera_id])

    def end_effector_jacobian(self, data: Optional['mujoco.MjData'] = None) -> np.ndarray:
        """
        Jacobian of the end-effector site expressed in the site frame.

        Returns:
            (6, n) matrix mapping joint velocities to the site twist [v; w]
        """
        data = self._data(data)
        jacp = np.zeros((3, self.model.nv))
        jacr = np.zeros((3, self.model.nv))
        mujoco.mj_jacSite(self.model, data, jacp, jacr, self.site_id)

        wRe = data.site_xmat[self.site_id].reshape(3, 3)
        eJe = np.vstack((wRe.T @ jacp, wRe.T @ jacr))
        return eJe[:, self.joint_dofs]

    def camera_to_end_effector_twist(self, data: Optional['mujoco.MjData'] = None) -> np.ndarray:
        """
        Twist transform cVe from the end-effector site frame to the camera frame.

        Returns:
            6x6 velocity twist matrix
        """
        data = self._data(data)
        cMe = np.linalg.inv(self.camera_pose(data)) @ self.end_effector_pose(data)
        return velocity_twist_from_pose(cMe)

    def update(self, task, data: Optional['mujoco.MjData'] = None) -> None:
        """
        Push cVe and eJe into the task.

        Args:
            task: ServoTask receiving the inputs
            data: MjData to read, defaults to the one given at construction
        """
        data = self._data(data)
        task.set_cVe(self.camera_to_end_effector_twist(data))
        task.set_eJe(self.end_effector_jacobian(data))
