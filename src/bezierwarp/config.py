"""
Configuration & Path Management
===============================
This module serves as the central registry for file paths and the default
editor settings.

Why is this file needed?
------------------------
1. Abstraction: Textures and sample projects are found relative to the
   assets directory instead of hardcoded paths scattered in the code.
2. Deployment: It handles the logic required by PyInstaller (sys._MEIPASS) to
   find assets when the app is frozen into an executable.
3. Defaults: The editor options a new session starts with live in one place.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory.
    DEFAULT_OPTIONS (dict): Default projection options.
"""
import sys
import os
from pathlib import Path


def get_resource_path(relative_path: str) -> str:
    """
    Get absolute path to resource, works for dev and for PyInstaller.
    """
    if hasattr(sys, '_MEIPASS'):
        # PyInstaller temp folder
        base_path: str = getattr(sys, '_MEIPASS')
        return os.path.join(base_path, relative_path)

    # Development mode: resolve relative to this file
    # config.py is in src/bezierwarp/
    current_file_path: Path = Path(__file__)
    project_root: Path = current_file_path.parent.parent.parent
    return os.path.join(str(project_root), relative_path)


def resolve_resource_path(path: str) -> str:
    """Return `path` if it exists as given, otherwise look it up in the assets directory."""
    if os.path.isabs(path) or os.path.exists(path):
        return path
    return os.path.join(ASSETS_PATH, path)


# Global Constants
ASSETS_PATH: str = get_resource_path("assets")

# Lattice resolution of the projection mesh
DEFAULT_GRID_WIDTH: int = 20
DEFAULT_GRID_HEIGHT: int = 20

# Initial patch and background size, in pixels
DEFAULT_PATCH_SIZE: tuple[int, int] = (640, 640)
DEFAULT_BACKGROUND_SIZE: tuple[int, int] = (1024, 768)

DEFAULT_OPTIONS: dict = {
    "grid_width": DEFAULT_GRID_WIDTH,
    "grid_height": DEFAULT_GRID_HEIGHT,
    "grid_color": "#666666",
    "primary_color": "#0088ff",
    "secondary_color": "#ffcc00",
    "mode": "bezier",
    "texture": None,
    "background": None,
}
