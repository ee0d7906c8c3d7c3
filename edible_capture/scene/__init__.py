from edible_capture.scene.camera import PinholeCamera
from edible_capture.scene.host import SceneHost, StaticScene, load_scene

__all__ = ["PinholeCamera", "SceneHost", "StaticScene", "load_scene"]
