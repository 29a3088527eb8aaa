from loguru import logger

from script2rs.transpiler import (
    FrontendKind,
    HeaderStyle,
    TranspilerConfig,
    TranspilerError,
    default_environment,
    transpile,
    transpile_files,
)

__version__ = "0.1.0"

# Library code stays silent unless the application enables it.
logger.disable("script2rs")


__all__ = [
    "FrontendKind",
    "HeaderStyle",
    "TranspilerConfig",
    "TranspilerError",
    "default_environment",
    "transpile",
    "transpile_files",
]
