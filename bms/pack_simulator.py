"""
    Pack Simulator

    Stands in for the sensor front end. Produces a deterministic 120 s
    profile, repeated forever:

        0 - 40 s   charging at 1.5 A, cells rising from 3.0 V to 3.4 V
        40 - 80 s  discharging at 1.2 A, cells falling from 3.4 V to 3.0 V
        80 - 120 s idle, cells resting around 3.2 V

    Temperature swings 5 degC around 25 degC, with 2 degC added while
    charging and 3 degC while discharging.

    Each completed period counts as one cycle, and the simulated pack
    loses capacity_fade of its base capacity per cycle, down to 70 %.

"""

# Python Imports
# =============================================================================
import math

import numpy as np

from .measurement import Measurement

# Constants
# =============================================================================
PERIOD          = 120.0
CHARGE_END      = 40.0
DISCHARGE_END   = 80.0

CHARGE_CURRENT    = 1.5
DISCHARGE_CURRENT = -1.2

LOW_VOLTAGE  = 3.0
HIGH_VOLTAGE = 3.4
REST_VOLTAGE = 3.2

# Spread between the cells, one entry per cell
CELL_OFFSETS = (0.01, 0.005, -0.005, -0.01)

BASE_CAPACITY = 6.0   # Ah
CAPACITY_FADE = 0.001 # fraction of BASE_CAPACITY lost per cycle
MIN_CAPACITY  = 0.7   # fraction of BASE_CAPACITY


class PackSimulator:

    def __init__(self, start_time: float = 0.0, cell_offsets=CELL_OFFSETS, balance_threshold: float = 0.01,
                 base_capacity: float = BASE_CAPACITY, capacity_fade: float = CAPACITY_FADE):
        self.start_time = start_time
        self.cell_offsets = tuple(cell_offsets)
        self.balance_threshold = balance_threshold
        self.base_capacity = base_capacity
        self.capacity_fade = capacity_fade

    @property
    def cell_count(self):
        return len(self.cell_offsets)

    def cycles(self, elapsed: float) -> int:
        return int(elapsed // PERIOD)

    def capacity(self, elapsed: float) -> float:
        ''' Simulated pack capacity (Ah) after elapsed seconds of cycling '''
        capacity = self.base_capacity * (1.0 - self.capacity_fade * self.cycles(elapsed))
        return float(np.clip(capacity, self.base_capacity * MIN_CAPACITY, self.base_capacity))

    def read(self, elapsed: float) -> Measurement:
        ''' Sensor readings elapsed seconds after start_time '''
        phase = elapsed % PERIOD

        if phase < CHARGE_END:
            current = CHARGE_CURRENT
            base = LOW_VOLTAGE + (phase / CHARGE_END) * (HIGH_VOLTAGE - LOW_VOLTAGE)
            heating = 2.0
        elif phase < DISCHARGE_END:
            current = DISCHARGE_CURRENT
            progress = (phase - CHARGE_END) / (DISCHARGE_END - CHARGE_END)
            base = HIGH_VOLTAGE - progress * (HIGH_VOLTAGE - LOW_VOLTAGE)
            heating = 3.0
        else:
            current = 0.0
            base = REST_VOLTAGE
            heating = 0.0

        cells = [base + offset for offset in self.cell_offsets]

        temperature = 25.0 + math.sin(elapsed * 0.01) * 5.0 + heating
        temperature = float(np.clip(temperature, 10.0, 50.0))

        # Bleed the high cells while charging
        if current > 0:
            lowest = min(cells)
            balancing = [v - lowest > self.balance_threshold for v in cells]
        else:
            balancing = [False] * len(cells)

        return Measurement(cell_voltages=cells,
                           current=current,
                           temperature=temperature,
                           timestamp=self.start_time + elapsed,
                           balancing_cells=balancing)

    def run(self, duration: float, interval: float):
        ''' Yields a measurement every interval seconds, up to and including duration '''
        steps = int(duration // interval)
        for i in range(steps + 1):
            yield self.read(i * interval)
