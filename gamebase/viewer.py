"""Camera controls and mesh selection for the scene and mesh viewers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

import numpy as np

from gamebase.linalg import angle_axis, quat_multiply, quat_rotate, quat_to_mat3
from gamebase.scene import Camera

_PI = 3.1415926
_TWO_PI = 2.0 * _PI
GL_TRIANGLES = 0x0004

MIN_RADIUS = 1e-1
MAX_RADIUS = 1e6


def _round_half_away(x: float) -> float:
    return math.copysign(math.floor(abs(x) + 0.5), x)


def _wrap_angle(angle: float) -> float:
    turns = angle / _TWO_PI
    turns -= _round_half_away(turns)
    return turns * _TWO_PI


@dataclass
class OrbitCamera:
    """Z-up trackball camera orbiting ``target``.

    ``azimuth`` is the angle ccw of the -y axis and ``elevation`` the angle
    above the ground, both in radians within [-pi, pi].
    """

    radius: float = 2.0
    azimuth: float = 0.3
    elevation: float = 0.2
    target: np.ndarray = field(default_factory=lambda: np.zeros(3))
    flip_x: bool = False

    def __post_init__(self) -> None:
        self.target = np.array(self.target, dtype=np.float64).reshape(3)

    def begin_drag(self) -> None:
        """Start a drag; azimuth motion is reversed while upside-down."""
        self.flip_x = abs(self.elevation) > 0.5 * _PI

    def drag(self, xrel: float, yrel: float, window_size: Sequence[int], pan: bool = False) -> None:
        """Apply a mouse motion of ``(xrel, yrel)`` pixels: pan if ``pan``, else tumble."""
        width, height = (float(v) for v in window_size)
        if width <= 0.0 or height <= 0.0:
            raise ValueError("window size must be positive")
        dx = xrel / width * 2.0
        dx *= height / width
        dy = yrel / height * -2.0

        if pan:
            frame = quat_to_mat3(self.rotation())
            self.target = self.target - (
                frame[:, 0] * (dx * self.radius) + frame[:, 1] * (dy * self.radius)
            )
        else:
            self.azimuth -= 3.0 * dx * (-1.0 if self.flip_x else 1.0)
            self.elevation -= 3.0 * dy
            self.azimuth = _wrap_angle(self.azimuth)
            self.elevation = _wrap_angle(self.elevation)

    def dolly(self, wheel: float) -> None:
        """Zoom by a mouse-wheel amount, keeping the radius within limits."""
        self.radius *= math.pow(0.5, 0.1 * wheel)
        self.radius = min(MAX_RADIUS, max(MIN_RADIUS, self.radius))

    def rotation(self) -> np.ndarray:
        """Return the camera's rotation quaternion ``(w, x, y, z)``."""
        return quat_multiply(
            angle_axis(self.azimuth, (0.0, 0.0, 1.0)),
            angle_axis(0.5 * _PI - self.elevation, (1.0, 0.0, 0.0)),
        )

    def position(self) -> np.ndarray:
        """Return the camera's position in world space."""
        return self.target + self.radius * quat_rotate(self.rotation(), (0.0, 0.0, 1.0))

    def apply(self, camera: Camera, drawable_size: Sequence[int]) -> None:
        """Place ``camera`` according to these controls and set its aspect."""
        width, height = (float(v) for v in drawable_size)
        if height == 0.0:
            raise ValueError("drawable height must be non-zero")
        transform = camera.transform
        transform.rotation = self.rotation()
        transform.position = self.position()
        transform.scale = np.ones(3)
        camera.aspect = width / height


class MeshSelector:
    """Steps through a name-to-mesh mapping in sorted name order.

    Meshes are objects with ``type``, ``start``, ``count``, ``min`` and ``max``
    attributes. The first mesh is selected on construction.
    """

    def __init__(self, meshes: Mapping[str, Any]) -> None:
        self.meshes = meshes
        self.current_name = ""
        self.current_mesh: Optional[Any] = None
        self.type = GL_TRIANGLES
        self.start = 0
        self.count = 0
        self.current_min = np.zeros(3)
        self.current_max = np.zeros(3)
        self.select_prev()

    def _names(self) -> list[str]:
        return sorted(self.meshes)

    def _select(self, name: Optional[str]) -> None:
        if name is None:
            self.current_name = ""
            self.current_mesh = None
            self.type = GL_TRIANGLES
            self.start = 0
            self.count = 0
            self.current_min = np.zeros(3)
            self.current_max = np.zeros(3)
            return
        mesh = self.meshes[name]
        self.current_name = name
        self.current_mesh = mesh
        self.type = mesh.type
        self.start = mesh.start
        self.count = mesh.count
        self.current_min = np.array(mesh.min, dtype=np.float64).reshape(3)
        self.current_max = np.array(mesh.max, dtype=np.float64).reshape(3)

    def select_prev(self) -> None:
        """Select the previous mesh, staying on the first; unknown selects the first."""
        names = self._names()
        if not names:
            self._select(None)
            return
        if self.current_name in self.meshes:
            index = max(names.index(self.current_name) - 1, 0)
        else:
            index = 0
        self._select(names[index])

    def select_next(self) -> None:
        """Select the next mesh, staying on the last; unknown selects the last."""
        names = self._names()
        if not names:
            self._select(None)
            return
        if self.current_name in self.meshes:
            index = min(names.index(self.current_name) + 1, len(names) - 1)
        else:
            index = len(names) - 1
        self._select(names[index])