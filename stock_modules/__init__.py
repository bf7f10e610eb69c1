"""Stock modules - presentation built on top of the pure engines."""
