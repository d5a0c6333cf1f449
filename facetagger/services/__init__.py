# Submodules are imported where needed; keep this package free of eager imports.
