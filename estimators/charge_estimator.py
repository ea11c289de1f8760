"""
    Charge Estimator

    Coulomb counting SoC estimator with temperature compensation on
    discharge, charge efficiency on charge, and OCV recalibration once
    the pack has rested. SoH follows a linear ageing model driven by the
    number of full equivalent cycles.

"""

# Python Imports
# =============================================================================
import logging
import math
import time
from copy import copy
from dataclasses import dataclass

import numpy as np

from .ocv_table import LIFEPO4, OCVTable

logger = logging.getLogger(__name__)

# Constants
# =============================================================================
SECONDS_PER_HOUR = 3600.0

# Bounds of the discharge temperature factor
MIN_TEMPERATURE_FACTOR = 0.8
MAX_TEMPERATURE_FACTOR = 1.2


class CalibrationRefused(Exception):
    """ Raised when an OCV calibration cannot be trusted, usually for lack of rest """

    def __init__(self, rest_duration, required, message=None):
        self.rest_duration = rest_duration
        self.required = required
        if message is None:
            message = 'Battery not rested enough for OCV calibration: {:.0f}s of {:.0f}s'.format(rest_duration, required)
        super().__init__(message)


@dataclass
class ChargeState:
    """ Mutable charge bookkeeping, owned by a single ChargeEstimator """
    accumulated_charge: float  # Ah
    capacity: float            # Ah
    total_charge_in: float = 0.0
    total_charge_out: float = 0.0
    cycle_count: int = 0
    last_update: float = 0.0   # monotonic seconds

    @property
    def soc(self):
        return self.accumulated_charge / self.capacity * 100.0


class ChargeEstimator:
    """ Class to hold the charge state and the coulomb counting methods """

    def __init__(self, capacity=6.0, initial_soc=100.0, timestamp=None,
                 charge_efficiency=0.97, reference_temperature=25.0, temperature_coefficient=0.6,
                 max_elapsed_hours=1.0, min_rest_seconds=1800.0, coulomb_weight=0.7,
                 cycle_life=2000, max_degradation=20.0, health_floor=50.0, ocv_table=None):
        if capacity <= 0:
            raise ValueError('Capacity must be positive, got {}'.format(capacity))

        if ocv_table is None:
            ocv_table = LIFEPO4
        self.ocv = ocv_table if isinstance(ocv_table, OCVTable) else OCVTable(ocv_table)

        self.charge_efficiency       = charge_efficiency
        self.reference_temperature   = reference_temperature
        self.temperature_coefficient = temperature_coefficient
        self.max_elapsed_hours       = max_elapsed_hours
        self.min_rest_seconds        = min_rest_seconds
        self.coulomb_weight          = coulomb_weight

        self.cycle_life      = cycle_life
        self.max_degradation = max_degradation
        self.health_floor    = health_floor

        initial_soc = float(np.clip(initial_soc, 0.0, 100.0))
        self._state = ChargeState(accumulated_charge=initial_soc / 100.0 * capacity,
                                  capacity=capacity,
                                  last_update=time.monotonic() if timestamp is None else timestamp)

    # Coulomb counting update
    def update(self, current: float, temperature: float, now: float):
        state = self._state
        elapsed = (now - state.last_update) / SECONDS_PER_HOUR  # hours
        if math.isfinite(now):
            state.last_update = now

        # Zero or backwards steps and long suspensions are skipped, not integrated
        if not 0 < elapsed <= self.max_elapsed_hours:
            return
        if not (math.isfinite(current) and math.isfinite(temperature)):
            logger.debug('Skipping non-finite sample: current=%s temperature=%s', current, temperature)
            return

        if current > 0:
            state.accumulated_charge += current * elapsed * self.charge_efficiency
            state.total_charge_in += current * elapsed

        elif current < 0:
            discharge = abs(current) * elapsed
            state.accumulated_charge -= discharge * self.temperature_factor(temperature)
            state.total_charge_out += discharge

        state.accumulated_charge = float(np.clip(state.accumulated_charge, 0.0, state.capacity))
        state.cycle_count = int(state.total_charge_out // state.capacity)

    def temperature_factor(self, temperature: float) -> float:
        factor = 1.0 + self.temperature_coefficient * (temperature - self.reference_temperature) / 100.0
        return float(np.clip(factor, MIN_TEMPERATURE_FACTOR, MAX_TEMPERATURE_FACTOR))

    def calibrate(self, avg_cell_voltage: float, rest_duration: float) -> float:
        '''
        Blends the coulomb counted SoC with the SoC read off the OCV table.

        Only valid once the pack has been at rest for min_rest_seconds; load current drags
        the terminal voltage away from the OCV. Raises CalibrationRefused otherwise, leaving
        the state untouched.

        :return: the calibrated SoC (%)
        '''
        if rest_duration < self.min_rest_seconds:
            logger.warning('OCV calibration refused: rested %.0fs, need %.0fs',
                           rest_duration, self.min_rest_seconds)
            raise CalibrationRefused(rest_duration, self.min_rest_seconds)

        coulomb_soc = self.soc
        ocv_soc = self.ocv.soc_at(avg_cell_voltage)
        calibrated = self.coulomb_weight * coulomb_soc + (1 - self.coulomb_weight) * ocv_soc

        logger.info('SoC calibration: coulomb %.2f%%, ocv %.2f%% (from %.3fV), calibrated %.2f%%',
                    coulomb_soc, ocv_soc, avg_cell_voltage, calibrated)

        state = self._state
        state.accumulated_charge = float(np.clip(calibrated / 100.0 * state.capacity, 0.0, state.capacity))
        return self.soc

    def reset(self, soc=100.0, now=None):
        state = self._state
        soc = float(np.clip(soc, 0.0, 100.0))
        state.accumulated_charge = soc / 100.0 * state.capacity
        state.last_update = time.monotonic() if now is None else now
        logger.info('SoC reset to %.1f%%', soc)

    @property
    def soc(self) -> float:
        return self._state.soc

    @property
    def soh(self) -> float:
        degradation = self._state.cycle_count / self.cycle_life * self.max_degradation
        return float(np.clip(100.0 - degradation, self.health_floor, 100.0))

    @property
    def remaining_capacity(self) -> float:
        return self._state.accumulated_charge

    @property
    def expected_voltage(self) -> float:
        return self.ocv.voltage_at(self.soc)

    @property
    def capacity(self) -> float:
        return self._state.capacity

    @property
    def cycle_count(self) -> int:
        return self._state.cycle_count

    @property
    def total_charge_in(self) -> float:
        return self._state.total_charge_in

    @property
    def total_charge_out(self) -> float:
        return self._state.total_charge_out

    @property
    def last_update(self) -> float:
        return self._state.last_update

    @property
    def state(self) -> ChargeState:
        return copy(self._state)
