"""
textX metamodels for the bundled IDL grammars.

Building a metamodel runs textX's grammar-language parser, which is shared
module state inside textX, so every grammar is built under one lock no matter
which loader asks for it.
"""

import threading
from os.path import abspath, dirname, join

from textx import metamodel_from_file

GRAMMAR_DIR = join(dirname(abspath(__file__)), "grammar")

_metamodels = {}
_lock = threading.Lock()


def grammar_metamodel(grammar_name: str):
    """Return the metamodel of grammar/<grammar_name>.tx, building it on first use."""
    with _lock:
        metamodel = _metamodels.get(grammar_name)
        if metamodel is None:
            metamodel = metamodel_from_file(join(GRAMMAR_DIR, f"{grammar_name}.tx"), autokwd=True)
            _metamodels[grammar_name] = metamodel
        return metamodel


def reset_metamodels() -> None:
    """Forget every built metamodel; the next request rebuilds it."""
    with _lock:
        _metamodels.clear()
