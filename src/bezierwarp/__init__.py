"""
bezierwarp: warp a textured image onto a composite bicubic Bezier surface.
"""
