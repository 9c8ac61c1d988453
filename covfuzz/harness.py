"""
Subprocess entry point that runs one implementation on one test case.

Usage: python harness.py <implementation.py> <function_name>

Reads {"args": "<repr of the argument tuple>"} from stdin and writes exactly one
JSON envelope to stdout:
    {"status": "returned", "value": "<repr>", "type": "<type name>"}
    {"status": "raised", "error": "<exception type>", "message": "..."}
    {"status": "load_error", "error": "..."}
Anything the implementation prints goes to stderr.
"""

import ast
import contextlib
import importlib.util
import json
import os
import sys

MODULE_NAME = "covfuzz_implementation"


def load_function(path, function_name):
    spec = importlib.util.spec_from_file_location(MODULE_NAME, path)
    if spec is None or spec.loader is None:
        raise ImportError(f"cannot load a Python module from {path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[MODULE_NAME] = module
    spec.loader.exec_module(module)
    func = getattr(module, function_name, None)
    if not callable(func):
        raise AttributeError(f"{path} does not define a function named {function_name!r}")
    return func


def run(path, function_name, payload):
    try:
        args = ast.literal_eval(json.loads(payload)["args"])
    except (ValueError, KeyError, TypeError, SyntaxError) as e:
        return {"status": "load_error", "error": f"malformed arguments: {e}"}

    with contextlib.redirect_stdout(sys.stderr):
        try:
            func = load_function(path, function_name)
        except Exception as e:
            return {"status": "load_error", "error": f"{type(e).__name__}: {e}"}

        try:
            value = func(*args)
        except (Exception, SystemExit) as e:
            return {"status": "raised", "error": type(e).__name__, "message": str(e)}

    type_name = type(value).__name__
    try:
        text = repr(value)
    except Exception:
        text = f"<unreprable {type_name}>"
    return {"status": "returned", "value": text, "type": type_name}


def main(argv):
    if len(argv) != 3:
        print(__doc__, file=sys.stderr)
        return 2
    # Resolve imports from the implementation's directory rather than this package
    sys.path[0] = os.path.dirname(os.path.abspath(argv[1]))
    if hasattr(sys, "set_int_max_str_digits"):
        sys.set_int_max_str_digits(0)
    envelope = run(argv[1], argv[2], sys.stdin.read())
    sys.stdout.write(json.dumps(envelope) + "\n")
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
