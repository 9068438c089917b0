"""
ctypes binding to the Qrack P/Invoke shared library.

NativeEngine loads ``libqrack_pinvoke`` and declares the argument and return
types of every entry point the control plane uses. Calls are forwarded
unchanged: the caller passes handles, counts and ctypes arrays in the native
argument order, and reads the error register with :meth:`get_error`.
"""

import ctypes
import ctypes.util
import logging
import os
from typing import Dict, List, Optional, Tuple

from ..errors import EngineLoadError

logger = logging.getLogger(__name__)

LIBRARY_NAME = "qrack_pinvoke"
PATH_VARIABLES = ("QCONTROL_LIBRARY_PATH", "QRACK_SHARED_LIB_PATH")

uintq = ctypes.c_ulonglong
double = ctypes.c_double
flag = ctypes.c_bool
P_uintq = ctypes.POINTER(uintq)
P_double = ctypes.POINTER(double)
P_int = ctypes.POINTER(ctypes.c_int)
P_bool = ctypes.POINTER(ctypes.c_bool)
P_byte = ctypes.POINTER(ctypes.c_ubyte)
P_float = ctypes.POINTER(ctypes.c_float)

_SINGLE = ("X", "Y", "Z", "H", "S", "T", "AdjS", "AdjT")
_LOGIC = ("AND", "OR", "XOR", "NAND", "NOR", "XNOR")

# name -> (restype, argtypes)
_PROTOTYPES: Dict[str, Tuple[object, List[object]]] = {
    "get_error": (ctypes.c_int, [uintq]),
    "init_count_type": (uintq, [uintq, flag, flag, flag, flag, flag, flag, flag, flag, flag, flag]),
    "init_count": (uintq, [uintq, flag]),
    "init_count_pager": (uintq, [uintq, flag]),
    "init_clone": (uintq, [uintq]),
    "destroy": (None, [uintq]),
    "seed": (None, [uintq, uintq]),
    "set_concurrency": (None, [uintq, uintq]),

    "Prob": (double, [uintq, uintq]),
    "PermutationProb": (double, [uintq, uintq, P_uintq, P_bool]),
    "PermutationExpectation": (double, [uintq, uintq, P_uintq]),
    "InKet": (None, [uintq, P_float]),
    "OutKet": (None, [uintq, P_float]),
    "PhaseParity": (None, [uintq, double, uintq, P_uintq]),
    "JointEnsembleProbability": (double, [uintq, uintq, P_int, P_uintq]),
    "ResetAll": (None, [uintq]),
    "allocateQubit": (None, [uintq, uintq]),
    "release": (flag, [uintq, uintq]),
    "num_qubits": (uintq, [uintq]),

    "U": (None, [uintq, uintq, double, double, double]),
    "Mtrx": (None, [uintq, P_double, uintq]),
    "MCU": (None, [uintq, uintq, P_uintq, uintq, double, double, double]),
    "MCMtrx": (None, [uintq, uintq, P_uintq, P_double, uintq]),
    "MACU": (None, [uintq, uintq, P_uintq, uintq, double, double, double]),
    "MACMtrx": (None, [uintq, uintq, P_uintq, P_double, uintq]),
    "UCMtrx": (None, [uintq, uintq, P_uintq, P_double, uintq, uintq]),
    "Multiplex1Mtrx": (None, [uintq, uintq, P_uintq, uintq, P_double]),
    "MX": (None, [uintq, uintq, P_uintq]),
    "MY": (None, [uintq, uintq, P_uintq]),
    "MZ": (None, [uintq, uintq, P_uintq]),
    "R": (None, [uintq, uintq, double, uintq]),
    "MCR": (None, [uintq, uintq, double, uintq, P_uintq, uintq]),
    "Exp": (None, [uintq, uintq, P_int, double, P_uintq]),
    "MCExp": (None, [uintq, uintq, P_int, double, uintq, P_uintq, P_uintq]),

    "M": (uintq, [uintq, uintq]),
    "ForceM": (uintq, [uintq, uintq, flag]),
    "MAll": (uintq, [uintq]),
    "Measure": (uintq, [uintq, uintq, P_int, P_uintq]),
    "MeasureShots": (None, [uintq, uintq, P_uintq, uintq, P_uintq]),

    "SWAP": (None, [uintq, uintq, uintq]),
    "ISWAP": (None, [uintq, uintq, uintq]),
    "AdjISWAP": (None, [uintq, uintq, uintq]),
    "FSim": (None, [uintq, double, double, uintq, uintq]),
    "CSWAP": (None, [uintq, uintq, P_uintq, uintq, uintq]),
    "ACSWAP": (None, [uintq, uintq, P_uintq, uintq, uintq]),

    "Compose": (None, [uintq, uintq, P_uintq]),
    "Decompose": (uintq, [uintq, uintq, P_uintq]),
    "Dispose": (None, [uintq, uintq, P_uintq]),

    "QFT": (None, [uintq, uintq, P_uintq]),
    "IQFT": (None, [uintq, uintq, P_uintq]),

    "ADD": (None, [uintq, uintq, P_uintq, uintq, P_uintq]),
    "SUB": (None, [uintq, uintq, P_uintq, uintq, P_uintq]),
    "ADDS": (None, [uintq, uintq, P_uintq, uintq, uintq, P_uintq]),
    "SUBS": (None, [uintq, uintq, P_uintq, uintq, uintq, P_uintq]),
    "MCADD": (None, [uintq, uintq, P_uintq, uintq, P_uintq, uintq, P_uintq]),
    "MCSUB": (None, [uintq, uintq, P_uintq, uintq, P_uintq, uintq, P_uintq]),
    "MUL": (None, [uintq, uintq, P_uintq, uintq, P_uintq, P_uintq]),
    "DIV": (None, [uintq, uintq, P_uintq, uintq, P_uintq, P_uintq]),
    "MULN": (None, [uintq, uintq, P_uintq, P_uintq, uintq, P_uintq, P_uintq]),
    "DIVN": (None, [uintq, uintq, P_uintq, P_uintq, uintq, P_uintq, P_uintq]),
    "POWN": (None, [uintq, uintq, P_uintq, P_uintq, uintq, P_uintq, P_uintq]),
    "MCMUL": (None, [uintq, uintq, P_uintq, uintq, P_uintq, uintq, P_uintq, P_uintq]),
    "MCDIV": (None, [uintq, uintq, P_uintq, uintq, P_uintq, uintq, P_uintq, P_uintq]),
    "MCMULN": (None, [uintq, uintq, P_uintq, uintq, P_uintq, P_uintq, uintq, P_uintq, P_uintq]),
    "MCDIVN": (None, [uintq, uintq, P_uintq, uintq, P_uintq, P_uintq, uintq, P_uintq, P_uintq]),
    "MCPOWN": (None, [uintq, uintq, P_uintq, uintq, P_uintq, P_uintq, uintq, P_uintq, P_uintq]),

    "LDA": (None, [uintq, uintq, P_uintq, uintq, P_uintq, P_byte]),
    "ADC": (None, [uintq, uintq, uintq, P_uintq, uintq, P_uintq, P_byte]),
    "SBC": (None, [uintq, uintq, uintq, P_uintq, uintq, P_uintq, P_byte]),
    "Hash": (None, [uintq, uintq, P_uintq, P_byte]),

    "TrySeparate1Qb": (flag, [uintq, uintq]),
    "TrySeparate2Qb": (flag, [uintq, uintq, uintq]),
    "TrySeparateTol": (flag, [uintq, uintq, P_uintq, double]),
    "GetUnitaryFidelity": (double, [uintq]),
    "ResetUnitaryFidelity": (None, [uintq]),
    "SetSdrp": (None, [uintq, double]),
    "SetReactiveSeparate": (None, [uintq, flag]),
    "SetTInjection": (None, [uintq, flag]),
}

for _name in _SINGLE:
    _PROTOTYPES[_name] = (None, [uintq, uintq])
    _PROTOTYPES["MC" + _name] = (None, [uintq, uintq, P_uintq, uintq])
    _PROTOTYPES["MAC" + _name] = (None, [uintq, uintq, P_uintq, uintq])

for _name in _LOGIC:
    _PROTOTYPES[_name] = (None, [uintq, uintq, uintq, uintq])
    _PROTOTYPES["CL" + _name] = (None, [uintq, flag, uintq, uintq])

ENTRY_POINTS = tuple(sorted(_PROTOTYPES))


def find_library(path: Optional[str] = None) -> str:
    """
    Locate the shared library.

    Args:
        path: Explicit path; takes precedence over the environment

    Returns:
        A path or name that ctypes can load

    Raises:
        EngineLoadError: if no candidate is found
    """
    if path:
        return path
    for variable in PATH_VARIABLES:
        if os.environ.get(variable):
            return os.environ[variable]
    found = ctypes.util.find_library(LIBRARY_NAME)
    if found is None:
        raise EngineLoadError(
            f"Could not find lib{LIBRARY_NAME}; set {PATH_VARIABLES[0]} to its path"
        )
    return found


class NativeEngine:
    """
    Entry points of ``libqrack_pinvoke`` with their prototypes declared.

    Attribute access returns the underlying ctypes function, so
    ``engine.MCX(sid, n, controls, target)`` calls the native ``MCX``.
    """

    def __init__(self, path: Optional[str] = None):
        self.path = find_library(path)
        try:
            self._lib = ctypes.CDLL(self.path)
        except OSError as exc:
            raise EngineLoadError(f"Could not load {self.path}: {exc}") from exc

        missing = []
        for name, (restype, argtypes) in _PROTOTYPES.items():
            try:
                func = getattr(self._lib, name)
            except AttributeError:
                missing.append(name)
                continue
            func.restype = restype
            func.argtypes = argtypes
        if missing:
            logger.debug("%s lacks entry points: %s", self.path, ", ".join(missing))
        logger.debug("Loaded native engine from %s", self.path)

    @classmethod
    def from_config(cls, config) -> "NativeEngine":
        return cls(config.library_path)

    def __getattr__(self, name):
        if name.startswith("_") or name not in _PROTOTYPES:
            raise AttributeError(name)
        return getattr(self._lib, name)
