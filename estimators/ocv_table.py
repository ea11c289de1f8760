"""
    OCV Table

    Open circuit voltage vs. state of charge model of the cell chemistry,
    stored as breakpoints and evaluated by piecewise linear interpolation
    in both directions.

"""

# Python Imports
# =============================================================================
import numpy as np

# Constants
# =============================================================================
# (SoC %, open circuit voltage) per LiFePO4 cell
LIFEPO4 = (
    (0,   2.50),
    (10,  2.90),
    (20,  3.00),
    (30,  3.10),
    (40,  3.15),
    (50,  3.20),
    (60,  3.25),
    (70,  3.28),
    (80,  3.30),
    (90,  3.35),
    (100, 3.40),
)


class OCVTable:
    """ Ascending (SoC %, voltage) breakpoints, usable in both directions """

    def __init__(self, breakpoints):
        if len(breakpoints) < 2:
            raise ValueError('OCV table needs at least two breakpoints, got {}'.format(len(breakpoints)))

        table = np.array(breakpoints, dtype=float)
        if table.ndim != 2 or table.shape[1] != 2:
            raise ValueError('OCV table rows must be (soc, voltage) pairs')

        self.socs     = table[:, 0]
        self.voltages = table[:, 1]

        # np.interp needs strictly increasing x in both lookup directions
        if np.any(np.diff(self.socs) <= 0) or np.any(np.diff(self.voltages) <= 0):
            raise ValueError('OCV table must increase monotonically in both soc and voltage')

    def voltage_at(self, soc: float) -> float:
        '''Expected open circuit voltage for a SoC, clamped to the table range.'''
        return float(np.interp(soc, self.socs, self.voltages))

    def soc_at(self, voltage: float) -> float:
        '''SoC for a resting cell voltage, clamped to the table range.'''
        return float(np.interp(voltage, self.voltages, self.socs))

