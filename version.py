"""
FET Sweep Engine Version Information
"""

__version__ = "1.1.0"
__author__ = "Bilal Bera Meriç"
__email__ = "b.berameric@gmail.com"
__description__ = "FET transfer/output sweep engine for multi-channel SMUs"
__url__ = "https://github.com/berameric/fet_characterization"

# Version history
VERSION_HISTORY = {
    "1.0.0": {
        "date": "2025-01-20",
        "features": [
            "Initial release",
            "Output and Transfer curve measurements",
            "Keithley 2401 and 2635A support",
            "Demo mode with mock instruments",
            "CSV data export",
        ],
        "bug_fixes": [],
        "breaking_changes": []
    },
    "1.1.0": {
        "date": "2026-10-19",
        "features": [
            "Channel roles mapped onto multi-channel instruments",
            "Four-point-probe voltage channels for transfer sweeps",
            "Step-count sweep axes with reverse, bidirectional and interleaved patterns",
            "All start-up problems reported together",
            "Outputs always disabled on stop or failure",
        ],
        "bug_fixes": [],
        "breaking_changes": [
            "Sweep axes are defined by number of steps instead of step size",
        ]
    }
}

def get_version():
    """Return the current version string."""
    return __version__
