from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import yaml

from .contracts import InteractionMatrixType, InversionType, ServoType
from .gains import AdaptiveGain, ConstantGain
from .linalg import DEFAULT_PINV_TOLERANCE
from .task import ServoTask


@dataclass
class ServoConfig:
    # Servo
    servo_type: ServoType
    interaction_matrix_type: InteractionMatrixType
    inversion_type: InversionType
    pinv_tolerance: float

    # Gain
    gain: Optional[float] = None
    gain_at_zero: Optional[float] = None
    gain_at_infinity: Optional[float] = None
    slope_at_zero: Optional[float] = None

    # Kinematics
    mujoco_xml_path: Optional[str] = None
    camera_name: Optional[str] = None
    end_effector_site: Optional[str] = None
    opencv_camera: bool = True


def _enum(enum_cls, name: str):
    members = {m.name.lower(): m for m in enum_cls}
    try:
        return members[str(name).lower()]
    except KeyError:
        choices = ", ".join(m.name for m in enum_cls)
        raise ValueError(f"unknown {enum_cls.__name__} '{name}', expected one of: {choices}") from None


def _required(section: dict, name: str, keys) -> dict:
    missing = [k for k in keys if k not in section]
    if missing:
        raise ValueError(f"{name} section is missing: {', '.join(missing)}")
    return {k: float(section[k]) for k in keys}


def load_config(path: str) -> ServoConfig:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    # Resolve ${PROJECT_ROOT} token in paths
    project_root = Path(__file__).parent.parent.parent.parent  # Go to Repository root
    kinematics = data.get("kinematics") or {}
    mujoco_xml_path = kinematics.get("mujoco_xml_path")
    if mujoco_xml_path is not None:
        mujoco_xml_path = mujoco_xml_path.replace("${PROJECT_ROOT}", str(project_root))

    servo = data.get("servo") or {}
    gain = data.get("gain") or {}
    adaptive = gain.get("adaptive") or {}
    if adaptive:
        adaptive = _required(adaptive, "gain.adaptive", ("gain_at_zero", "gain_at_infinity", "slope_at_zero"))

    return ServoConfig(
        servo_type=_enum(ServoType, servo.get("type", "EYEINHAND_CAMERA")),
        interaction_matrix_type=_enum(InteractionMatrixType, servo.get("interaction_matrix", "desired")),
        inversion_type=_enum(InversionType, servo.get("inversion", "pseudo_inverse")),
        pinv_tolerance=float(servo.get("pinv_tolerance", DEFAULT_PINV_TOLERANCE)),
        gain=float(gain["constant"]) if "constant" in gain else None,
        gain_at_zero=adaptive["gain_at_zero"] if adaptive else None,
        gain_at_infinity=adaptive["gain_at_infinity"] if adaptive else None,
        slope_at_zero=adaptive["slope_at_zero"] if adaptive else None,
        mujoco_xml_path=mujoco_xml_path,
        camera_name=kinematics.get("camera_name"),
        end_effector_site=kinematics.get("end_effector_site"),
        opencv_camera=bool(kinematics.get("opencv_camera", True)),
    )


def build_gain(config: ServoConfig):
    if config.gain_at_zero is not None:
        return AdaptiveGain(config.gain_at_zero, config.gain_at_infinity, config.slope_at_zero)
    return ConstantGain(config.gain if config.gain is not None else 1.0)


def build_task(config: ServoConfig) -> ServoTask:
    return ServoTask(
        servo_type=config.servo_type,
        interaction_matrix_type=config.interaction_matrix_type,
        inversion_type=config.inversion_type,
        gain=build_gain(config),
        pinv_tolerance=config.pinv_tolerance,
    )
