"""
    BMS Monitor

    Runs one measurement cycle at a time: the charge estimator is updated,
    the protection classifier runs against the result, and a new snapshot
    is published. The monitor owns the estimator; nothing else should call
    update() or calibrate() on it.

"""

# Python Imports
# =============================================================================
import logging
from collections import deque

from estimators import CalibrationRefused, ChargeEstimator
from protection import ExternalLevels, Thresholds, classify

from .measurement import IDLE_CURRENT, Measurement
from .snapshot import BMSSnapshot

logger = logging.getLogger(__name__)

# Cycles of SoC/SoH history kept for plotting
HISTORY_LENGTH = 10000


class BMSMonitor:

    def __init__(self, estimator: ChargeEstimator, thresholds: Thresholds = None, history: int = HISTORY_LENGTH):
        self.estimator = estimator
        self.thresholds = thresholds if thresholds is not None else Thresholds()

        self._snapshot = None
        self._last = None
        self._rest_start = None
        self._calibrated_rest = None

        # Per cycle history for plotting, only the latest cycles are kept
        self.time   = deque(maxlen=history)
        self.soc    = deque(maxlen=history)
        self.soh    = deque(maxlen=history)
        self.alerts = deque(maxlen=history)

    def step(self, measurement: Measurement, external: ExternalLevels = None) -> BMSSnapshot:
        ''' Feeds one measurement through the estimator and the classifier '''
        estimator = self.estimator
        estimator.update(measurement.current, measurement.temperature, measurement.timestamp)
        self._track_rest(measurement)

        levels, alerts = classify(measurement, estimator.soc, self.thresholds, external)

        snapshot = BMSSnapshot(
            measurement=measurement,
            soc=estimator.soc,
            soh=estimator.soh,
            remaining_capacity=estimator.remaining_capacity,
            expected_voltage=estimator.expected_voltage,
            cycle_count=estimator.cycle_count,
            protection=levels,
            alerts=tuple(alerts)
        )
        self._snapshot = snapshot
        self._last = measurement

        self.time.append(measurement.timestamp)
        self.soc.append(snapshot.soc)
        self.soh.append(snapshot.soh)
        self.alerts.append(len(alerts))

        for alert in alerts:
            logger.debug('%s: %s', alert.severity, alert.message)

        return snapshot

    def snapshot(self) -> BMSSnapshot:
        '''Latest published snapshot, None before the first cycle.'''
        return self._snapshot

    def _track_rest(self, measurement):
        if abs(measurement.current) <= IDLE_CURRENT:
            if self._rest_start is None:
                self._rest_start = measurement.timestamp
        else:
            self._rest_start = None

    @property
    def rest_duration(self) -> float:
        '''Seconds the current has stayed in the idle band, up to the latest measurement.'''
        if self._rest_start is None or self._last is None:
            return 0.0
        return self._last.timestamp - self._rest_start

    @property
    def calibrated_this_rest(self) -> bool:
        return self._rest_start is not None and self._calibrated_rest == self._rest_start

    def calibrate(self) -> float:
        '''
        OCV calibration from the latest average cell voltage and the tracked rest time.
        CalibrationRefused from the estimator is passed on to the caller, and raised here
        when no cell voltage has been measured yet.
        '''
        if self._last is None or not self._last.cell_voltages:
            logger.warning('OCV calibration refused: no cell voltage measured')
            raise CalibrationRefused(self.rest_duration, self.estimator.min_rest_seconds,
                                     'No cell voltage measured for OCV calibration')

        soc = self.estimator.calibrate(self._last.average_cell_voltage, self.rest_duration)
        self._calibrated_rest = self._rest_start
        return soc

    def get_plotables(self):
        ''' Returns (time, soc, soh) lists relative to the oldest recorded cycle '''
        if not self.time:
            return [], [], []
        t0 = self.time[0]
        return [t - t0 for t in self.time], list(self.soc), list(self.soh)
