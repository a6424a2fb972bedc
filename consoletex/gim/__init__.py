"""PSP GIM textures."""
