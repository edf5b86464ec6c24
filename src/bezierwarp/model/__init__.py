"""
The MODEL layer contains pure data structures and the patch algorithms.
It has NO knowledge of a GUI; the only rendering it knows is building the
pyvista meshes a viewer draws.
"""
