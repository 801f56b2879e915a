"""Script execution sandbox for design scripts.

Design scripts build faces, turtles and paths at module level. They are
executed with restricted imports, and every top-level variable holding a
drawable result is collected for reporting and export.
"""

from __future__ import annotations

import builtins
import sys
from pathlib import Path as FilePath
from typing import Any

from tabcut.core.path import Path
from tabcut.core.turtle import Turtle
from tabcut.faces.tabbed_face import ClosedFace, TabbedFace

# Allowed module prefixes (first component of import path)
ALLOWED_MODULES = frozenset({"tabcut", "numpy", "np", "math"})

DRAWABLE_TYPES = (ClosedFace, Turtle, Path)


class RestrictedImportError(ImportError):
    """Raised when a disallowed module import is attempted."""

    pass


def execute_design_script(
    script_path: FilePath, script_content: str, verbose: bool = False
) -> dict[str, Any]:
    """Execute a design script in a controlled namespace.

    Only tabcut, numpy and math can be imported by the script. The
    restriction applies to the script's own import statements; modules it
    calls into import as usual.

    Args:
        script_path: Path to the script file (for __file__)
        script_content: Content of the script to execute
        verbose: If True, print debug information

    Returns:
        Namespace dict containing all variables defined by the script

    Raises:
        RestrictedImportError: If script attempts to import disallowed module
        SyntaxError: If script has syntax errors
        Exception: Any exception raised by the script during execution
    """
    original_import = builtins.__import__

    def restricted_import(name, *args, **kwargs):
        """Restricted import that only allows specific modules."""
        top_level = name.split(".")[0]
        if top_level not in ALLOWED_MODULES:
            raise RestrictedImportError(
                f"Import of '{name}' is not allowed in design scripts. "
                f"Allowed modules: {', '.join(sorted(ALLOWED_MODULES))}"
            )
        return original_import(name, *args, **kwargs)

    script_builtins = dict(vars(builtins))
    script_builtins["__import__"] = restricted_import

    namespace: dict[str, Any] = {
        "__name__": "__main__",
        "__file__": str(script_path),
        "__builtins__": script_builtins,
    }

    if verbose:
        print(f"Executing script: {script_path}", file=sys.stderr)

    exec(compile(script_content, str(script_path), "exec"), namespace)

    if verbose:
        defined_vars = [k for k in namespace if not k.startswith("__")]
        print(f"Script defined variables: {', '.join(defined_vars)}", file=sys.stderr)

    return namespace


def collect_outputs(
    namespace: dict[str, Any], allow_open: bool = False
) -> dict[str, ClosedFace | Turtle | Path]:
    """Collect the drawable top-level variables of a script namespace.

    TabbedFace variables that the script did not close are closed here;
    with allow_open, without requiring them to return to their start.

    Raises:
        ValueError: If the script defines nothing drawable
        FaceNotClosed: If an unclosed TabbedFace does not close
    """
    outputs: dict[str, ClosedFace | Turtle | Path] = {}
    for name, value in namespace.items():
        if name.startswith("_"):
            continue
        if isinstance(value, DRAWABLE_TYPES):
            outputs[name] = value
        elif isinstance(value, TabbedFace):
            outputs[name] = value.close_face(allow_open=allow_open)

    if not outputs:
        raise ValueError(
            "Script must define at least one ClosedFace, TabbedFace, Turtle or Path "
            "variable. Example: face = TabbedFace.create(options).forward(10).close_face()"
        )
    return outputs
