# eeglst/__init__.py
"""
eeglst: segmented EEG data as three pandas tables tied by `.id`.

    from eeglst import col, eeg_baseline, eeg_group_by, eeg_segment, eeg_summarize
    from eeglst.io import from_arrays

    eeg = from_arrays(data, 500, ["Fz", "Cz", "Pz"], events=events)
    erp = (
        eeg_segment(eeg, col(".type") == "stim", lim=(-0.2, 0.8))
        .pipe(eeg_baseline)
        .pipe(eeg_group_by, ".sample")
        .pipe(eeg_summarize)
    )
"""

import logging

from .config import DEFAULT_LAYOUT, DEFAULTS, EdgePolicy, LayoutConfig, Settings
from .log import setup_logging
from .core import *  # noqa: F401,F403
from .core import __all__ as _core_all
from .verbs import *  # noqa: F401,F403
from .verbs import __all__ as _verbs_all

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    "DEFAULTS",
    "DEFAULT_LAYOUT",
    "EdgePolicy",
    "LayoutConfig",
    "Settings",
    "setup_logging",
    *_core_all,
    *_verbs_all,
]
