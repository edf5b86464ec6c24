"""
Input/Output Manager (HDF5 / JSON)
Handles saving and loading the ProjectState, plus patch and mesh exports.
"""
import json
import logging
import os
from importlib.metadata import version, PackageNotFoundError
from typing import Any

import h5py
import numpy as np

from bezierwarp.model.state import ProjectState, ProjectionOptions

# Get module logger
logger = logging.getLogger(__name__)

try:
    APP_VERSION = version("bezierwarp")
except PackageNotFoundError:
    APP_VERSION = "0.0.0-dev"

# HDF5 attributes are limited to 64KB
ATTRIBUTE_SIZE_LIMIT = 60000


class IOManager:

    @staticmethod
    def save_project(state: ProjectState, filepath: str) -> None:
        logger.info(f"Saving project to: {filepath}")
        try:
            # derived points must be settled before the patch is serialized
            state.update_meshes()
            with h5py.File(filepath, "w") as f:
                f.attrs["version"] = APP_VERSION
                f.attrs["project_name"] = state.project_name

                # --- 1. SAVE BACKGROUND & OPTIONS ---
                f.attrs["background_width"] = state.background_width
                f.attrs["background_height"] = state.background_height

                grp_opts = f.create_group("options")
                for key, val in state.options.to_dict().items():
                    # HDF5 has no null, a missing attribute means None
                    if val is not None:
                        grp_opts.attrs[key] = val

                # --- 2. SAVE PATCH ---
                grp_patch = f.create_group("patch")
                patch_json = json.dumps(state.patch.save())
                if len(patch_json) > ATTRIBUTE_SIZE_LIMIT:
                    logger.info(f"Patch data is large ({len(patch_json)} bytes), using dataset")
                    grp_patch.create_dataset("patch_data", data=np.void(patch_json.encode('utf-8')))
                else:
                    grp_patch.attrs["patch_data_json"] = patch_json

                # --- 3. SAVE SAMPLED MESH ---
                grp_mesh = f.create_group("mesh")
                grp_mesh.attrs["grid_width"] = state.mesh.grid_width
                grp_mesh.attrs["grid_height"] = state.mesh.grid_height
                grp_mesh.create_dataset("positions", data=state.mesh.positions, compression="gzip")
                grp_mesh.create_dataset("uvs", data=state.mesh.uvs, compression="gzip")
                grp_mesh.create_dataset("triangles", data=state.mesh.triangles, compression="gzip")

            state.filepath = filepath
            logger.info(f"Project saved to: {filepath}")

        except Exception as e:
            logger.exception(f"Failed to save project: {e}")
            raise e

    @staticmethod
    def load_project(state: ProjectState, filepath: str) -> None:
        logger.info(f"Loading project from: {filepath}")
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Project file not found: {filepath}")
        if not h5py.is_hdf5(filepath):
            msg = f"File '{filepath}' is not a valid HDF5 file."
            logger.error(msg)
            raise ValueError(msg)

        try:
            with h5py.File(filepath, "r") as f:
                if "patch" not in f:
                    raise ValueError(f"File '{filepath}' holds no patch data.")

                # --- 1. LOAD PATCH ---
                grp_patch = f["patch"]
                if "patch_data" in grp_patch:
                    # Large data stored as dataset
                    patch_json = bytes(grp_patch["patch_data"][()]).decode('utf-8')
                else:
                    patch_json = _as_str(grp_patch.attrs["patch_data_json"])

                # --- 2. LOAD OPTIONS ---
                loaded_options: dict[str, Any] = {}
                if "options" in f:
                    for key, val in f["options"].attrs.items():
                        loaded_options[key] = _as_native(val)

                data = {
                    "backgroundWidth": float(f.attrs["background_width"]),
                    "backgroundHeight": float(f.attrs["background_height"]),
                    "options": ProjectionOptions.from_dict(loaded_options).to_dict(),
                    "patchData": json.loads(patch_json),
                }

                state.restore(data)

                if "project_name" in f.attrs:
                    state.project_name = _as_str(f.attrs["project_name"])
                state.filepath = filepath

            logger.info(f"Project loaded from: {filepath}")

        except Exception as e:
            logger.exception(f"Failed to load project: {e}")
            raise e

    # ---- JSON HELPERS ----

    @staticmethod
    def export_patch_json(state: ProjectState, filepath: str) -> None:
        """Writes the project in the plain JSON layout used by `ProjectState.save`."""
        try:
            state.update_meshes()
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(state.save(), f, indent=2)
            logger.info(f"Patch exported to: {filepath}")
        except Exception as e:
            logger.exception("Failed to export patch JSON")
            raise e

    @staticmethod
    def import_patch_json(state: ProjectState, filepath: str) -> None:
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Patch file not found: {filepath}")
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
            # a bare serialized patch is accepted too
            if "patchData" not in data:
                data = {
                    "backgroundWidth": state.background_width,
                    "backgroundHeight": state.background_height,
                    "options": state.options.to_dict(),
                    "patchData": data,
                }
            state.restore(data)
            logger.info(f"Patch imported from: {filepath}")
        except Exception as e:
            logger.exception("Failed to import patch JSON")
            raise e

    # ---- EXPORT HELPERS ----

    @staticmethod
    def export_mesh(state: ProjectState, dest_path: str) -> None:
        """
        Saves the warped plane through pyvista (.vtp, .vtk, .ply, .stl, ...).
        The 4 outer corners of the patch are attached as field data.
        """
        try:
            state.update_meshes()
            mesh = state.mesh.to_polydata()
            for name, coords in state.mesh_corners().items():
                mesh.field_data[f"corner_{name}"] = np.array(coords)
            mesh.save(dest_path)
            logger.info(f"Mesh exported to: {dest_path}")
        except Exception as e:
            logger.exception("Failed to export mesh file")
            raise e


def _as_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return str(value)


def _as_native(value: Any) -> Any:
    # HDF5 often returns numpy types, convert to native python
    if isinstance(value, bytes):
        return value.decode('utf-8')
    if hasattr(value, 'item'):
        return value.item()
    return value
