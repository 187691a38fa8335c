"""A hierarchy of transforms with attached drawables, cameras and lights."""

from __future__ import annotations

import copy as _copy
import dataclasses
import enum
import math
import os
import struct
import sys
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Callable, Optional

import numpy as np

from gamebase.chunks import read_chunk, read_chunk_bytes
from gamebase.linalg import (
    infinite_perspective,
    pad_affine,
    quat_inverse,
    quat_to_mat3,
)

_NO_PARENT = 0xFFFFFFFF
_PI = 3.1415926

_HIERARCHY = struct.Struct("<III3f4f3f")
_MESH = struct.Struct("<III")
_CAMERA = struct.Struct("<I4s3f")
_LIGHT = struct.Struct("<Ic3Bfff")


class SceneFormatError(Exception):
    """Raised when a scene file holds inconsistent data."""


def _as_array(values, size: int) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    if arr.shape != (size,):
        raise ValueError(f"expected {size} components, got shape {arr.shape}")
    return arr


@dataclass(eq=False)
class Transform:
    """A position, rotation ``(w, x, y, z)`` and scale, relative to ``parent``."""

    name: str = ""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0, 0.0]))
    scale: np.ndarray = field(default_factory=lambda: np.ones(3))
    parent: Optional["Transform"] = None

    def __post_init__(self) -> None:
        self.position = _as_array(self.position, 3)
        self.rotation = _as_array(self.rotation, 4)
        self.scale = _as_array(self.scale, 3)

    def make_local_to_parent(self) -> np.ndarray:
        """Return the (3, 4) matrix translate * rotate * scale."""
        rot = quat_to_mat3(self.rotation)
        return np.column_stack([rot * self.scale[np.newaxis, :], self.position])

    def make_parent_to_local(self) -> np.ndarray:
        """Return the (3, 4) inverse of :meth:`make_local_to_parent`; zero scale stays finite."""
        inv_scale = np.array([0.0 if s == 0.0 else 1.0 / s for s in self.scale])
        inv_rot = quat_to_mat3(quat_inverse(self.rotation)) * inv_scale[:, np.newaxis]
        return np.column_stack([inv_rot, inv_rot @ -self.position])

    def make_local_to_world(self) -> np.ndarray:
        if self.parent is None:
            return self.make_local_to_parent()
        return self.parent.make_local_to_world() @ pad_affine(self.make_local_to_parent())

    def make_world_to_local(self) -> np.ndarray:
        if self.parent is None:
            return self.make_parent_to_local()
        return self.make_parent_to_local() @ pad_affine(self.parent.make_world_to_local())


def _require_transform(transform: Optional[Transform], kind: str) -> None:
    if transform is None:
        raise ValueError(f"{kind} requires a transform")


@dataclass(eq=False)
class Drawable:
    """Attaches drawing data (``pipeline``) to a transform."""

    transform: Transform
    pipeline: Any = None

    def __post_init__(self) -> None:
        _require_transform(self.transform, "Drawable")


@dataclass(eq=False)
class Camera:
    """A perspective camera looking along its transform's -z axis."""

    transform: Transform
    fovy: float = math.radians(60.0)
    aspect: float = 1.0
    near: float = 0.01

    def __post_init__(self) -> None:
        _require_transform(self.transform, "Camera")

    def make_projection(self) -> np.ndarray:
        return infinite_perspective(self.fovy, self.aspect, self.near)


class LightType(enum.Enum):
    POINT = "p"
    HEMISPHERE = "h"
    SPOT = "s"
    DIRECTIONAL = "d"


@dataclass(eq=False)
class Light:
    """A light attached to a transform; directed lights point along -z."""

    transform: Transform
    type: LightType = LightType.POINT
    energy: np.ndarray = field(default_factory=lambda: np.ones(3))
    spot_fov: float = math.radians(45.0)

    def __post_init__(self) -> None:
        _require_transform(self.transform, "Light")
        self.energy = _as_array(self.energy, 3)


OnDrawable = Callable[["Scene", Transform, str], None]


class Scene:
    """Transforms plus the drawables, cameras and lights attached to them."""

    def __init__(self, filename: str | os.PathLike | None = None, on_drawable: OnDrawable | None = None) -> None:
        self.transforms: list[Transform] = []
        self.drawables: list[Drawable] = []
        self.cameras: list[Camera] = []
        self.lights: list[Light] = []
        if filename is not None:
            self.load(filename, on_drawable)

    def load(self, filename: str | os.PathLike, on_drawable: OnDrawable | None = None) -> None:
        """Add the contents of a scene file; ``on_drawable`` is called for each mesh entry."""
        where = os.fspath(filename)
        with open(filename, "rb") as stream:
            names = read_chunk_bytes(stream, "str0")
            hierarchy = read_chunk(stream, "xfh0", _HIERARCHY)
            meshes = read_chunk(stream, "msh0", _MESH)
            cameras = read_chunk(stream, "cam0", _CAMERA)
            lights = read_chunk(stream, "lmp0", _LIGHT)

            def name_of(begin: int, end: int) -> Optional[str]:
                if begin <= end <= len(names):
                    return names[begin:end].decode("utf-8", errors="replace")
                return None

            loaded: list[Transform] = []
            for parent, begin, end, *values in hierarchy:
                t = Transform()
                self.transforms.append(t)
                if parent != _NO_PARENT:
                    if parent >= len(loaded):
                        raise SceneFormatError(
                            f"scene file '{where}' did not contain transforms in topological-sort order."
                        )
                    t.parent = loaded[parent]
                name = name_of(begin, end)
                if name is None:
                    raise SceneFormatError(
                        f"scene file '{where}' contains hierarchy entry with invalid name indices"
                    )
                t.name = name
                t.position = np.array(values[0:3], dtype=np.float64)
                qx, qy, qz, qw = values[3:7]
                t.rotation = np.array([qw, qx, qy, qz], dtype=np.float64)
                t.scale = np.array(values[7:10], dtype=np.float64)
                loaded.append(t)

            for index, begin, end in meshes:
                if index >= len(loaded):
                    raise SceneFormatError(
                        f"scene file '{where}' contains mesh entry with invalid transform index ({index})"
                    )
                name = name_of(begin, end)
                if name is None:
                    raise SceneFormatError(
                        f"scene file '{where}' contains mesh entry with invalid name indices"
                    )
                if on_drawable is not None:
                    on_drawable(self, loaded[index], name)

            for index, kind, data, clip_near, _clip_far in cameras:
                if index >= len(loaded):
                    raise SceneFormatError(
                        f"scene file '{where}' contains camera entry with invalid transform index ({index})"
                    )
                kind_text = kind.decode("latin-1")
                if kind_text != "pers":
                    print(f"Ignoring non-perspective camera ({kind_text}) stored in file.")
                    continue
                self.cameras.append(
                    Camera(loaded[index], fovy=data / 180.0 * _PI, near=clip_near)
                )

            for index, kind, r, g, b, energy, _distance, fov in lights:
                if index >= len(loaded):
                    raise SceneFormatError(
                        f"scene file '{where}' contains lamp entry with invalid transform index ({index})"
                    )
                kind_text = kind.decode("latin-1")
                try:
                    light_type = LightType(kind_text)
                except ValueError:
                    print(f"Ignoring unrecognized lamp type ({kind_text}) stored in file.")
                    continue
                self.lights.append(
                    Light(
                        loaded[index],
                        type=light_type,
                        energy=np.array([r, g, b], dtype=np.float64) / 255.0 * energy,
                        spot_fov=fov / 180.0 * _PI,
                    )
                )

            self.load_extra(stream, names, loaded)

            if stream.read(1):
                print(f"WARNING: trailing data in scene file '{where}'", file=sys.stderr)

    def load_extra(self, stream: BinaryIO, names: bytes, transforms: list[Transform]) -> None:
        """Hook for subclasses to read further chunks after the standard ones."""

    def set(self, other: "Scene") -> dict:
        """Make this scene a copy of ``other``; return the old-to-new transform mapping."""
        mapping: dict = {None: None}
        transforms: list[Transform] = []
        for t in other.transforms:
            new = Transform(
                name=t.name,
                position=t.position.copy(),
                rotation=t.rotation.copy(),
                scale=t.scale.copy(),
            )
            new.parent = t.parent
            transforms.append(new)
            mapping[t] = new
        for t in transforms:
            t.parent = mapping[t.parent]

        drawables = [
            dataclasses.replace(d, transform=mapping[d.transform], pipeline=_copy.copy(d.pipeline))
            for d in other.drawables
        ]
        cameras = [dataclasses.replace(c, transform=mapping[c.transform]) for c in other.cameras]
        lights = [
            dataclasses.replace(l, transform=mapping[l.transform], energy=l.energy.copy())
            for l in other.lights
        ]
        self.transforms = transforms
        self.drawables = drawables
        self.cameras = cameras
        self.lights = lights
        return mapping

    def copy(self) -> "Scene":
        """Return an independent copy with references fixed up."""
        result = type(self)()
        result.set(self)
        return result