"""
Scene host collaborators.

The capture pipeline only needs three things from a 3D environment: the list
of renderable objects, the active cameras, and a way to render a camera into
an image. `SceneHost` and `Camera` describe that surface; `StaticScene` is a
JSON-backed implementation used by the CLI.
"""

from pathlib import Path
from typing import Optional, Protocol

import numpy as np
from loguru import logger
from pydantic import BaseModel, Field

from config.settings import settings
from edible_capture.scene.camera import DEFAULT_FOV, PinholeCamera
from edible_capture.utils.schemas import Bounds3D, SceneObject, Vec3


class Camera(Protocol):
    name: str
    position: np.ndarray

    def world_to_viewport(self, points) -> np.ndarray: ...


class SceneHost(Protocol):
    def objects(self) -> list[SceneObject]: ...

    def cameras(self) -> list[Camera]: ...

    def render(self, camera: Camera, width: int, height: int) -> np.ndarray: ...


class Renderer(Protocol):
    def render(
        self, camera: Camera, objects: list[SceneObject], width: int, height: int
    ) -> np.ndarray: ...


# ── Scene file format ───────────────────────────────────────────────

class ObjectSpec(BaseModel):
    name: str
    min: Vec3
    max: Vec3


class CameraSpec(BaseModel):
    name: str
    position: Vec3
    look_at: Vec3
    up: Vec3 = (0.0, 1.0, 0.0)
    fov: float = Field(default=DEFAULT_FOV, gt=0.0, lt=180.0)
    enabled: bool = True


class SceneFile(BaseModel):
    objects: list[ObjectSpec] = []
    cameras: list[CameraSpec] = []


class StaticScene:
    """In-memory scene: fixed objects, fixed cameras, pluggable renderer."""

    def __init__(
        self,
        objects: list[SceneObject],
        cameras: list[Camera],
        renderer: Optional[Renderer] = None,
        disabled: Optional[set[str]] = None,
    ):
        self._objects = list(objects)
        self._cameras = list(cameras)
        self._disabled = set(disabled or ())
        if renderer is None:
            from edible_capture.scene.renderer import BoxSilhouetteRenderer
            renderer = BoxSilhouetteRenderer()
        self.renderer = renderer

    def objects(self) -> list[SceneObject]:
        return list(self._objects)

    def cameras(self) -> list[Camera]:
        """Active cameras, in scene order."""
        return [cam for cam in self._cameras if cam.name not in self._disabled]

    def render(self, camera: Camera, width: int, height: int) -> np.ndarray:
        return self.renderer.render(camera, self._objects, width, height)


def load_scene(path: str | Path, aspect: Optional[float] = None) -> StaticScene:
    """
    Build a StaticScene from a JSON scene description.

    Args:
        path: JSON file with "objects" and "cameras" lists
        aspect: camera aspect ratio, defaults to the configured output resolution

    Raises:
        FileNotFoundError: the scene file does not exist
        pydantic.ValidationError: the file content is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scene file not found: {path}")

    spec = SceneFile.model_validate_json(path.read_text(encoding="utf-8"))

    if aspect is None:
        aspect = settings.image_width / settings.image_height

    objects = [
        SceneObject(id=idx, name=o.name, bounds=Bounds3D(min=o.min, max=o.max))
        for idx, o in enumerate(spec.objects)
    ]
    cameras = [
        PinholeCamera(
            name=c.name,
            position=c.position,
            look_at=c.look_at,
            up=c.up,
            fov=c.fov,
            aspect=aspect,
        )
        for c in spec.cameras
    ]
    disabled = {c.name for c in spec.cameras if not c.enabled}

    logger.info(
        f"Scene loaded: {path} | objects={len(objects)} | "
        f"cameras={len(cameras)} ({len(disabled)} disabled)"
    )
    return StaticScene(objects, cameras, disabled=disabled)
