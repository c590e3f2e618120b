from retarity.ingest.go_loader import GoFile, GoPackage, LoadedProgram, load_program
from retarity.ingest.go_paths import PackageDir, expand_import_paths

__all__ = [
    "GoFile",
    "GoPackage",
    "LoadedProgram",
    "PackageDir",
    "expand_import_paths",
    "load_program",
]
