"""PS2 SVR textures and PVPL palettes."""
