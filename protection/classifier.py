"""
    Protection Classifier

    Maps one cycle of measurements and the estimated SoC onto a level per
    fault category and a list of alerts. Nothing is carried over between
    cycles, so a value sitting on a threshold can toggle an alert from one
    cycle to the next.

    Alerts come out in a fixed order: SoC (over voltage proxy), under
    voltage, over current, over temperature, then cell imbalance. Short
    circuit has a level but never raises an alert; it is left to the
    hardware protection.

"""

# Python Imports
# =============================================================================
from dataclasses import dataclass, fields
from enum import IntEnum
from typing import List, Optional, Tuple

import numpy as np


class ProtectionLevel(IntEnum):
    NORMAL  = 0
    WARNING = 1
    ALARM   = 2

    @property
    def label(self):
        return self.name.lower()


@dataclass(frozen=True)
class ProtectionLevels:
    over_voltage: ProtectionLevel = ProtectionLevel.NORMAL
    under_voltage: ProtectionLevel = ProtectionLevel.NORMAL
    over_current: ProtectionLevel = ProtectionLevel.NORMAL
    over_temperature: ProtectionLevel = ProtectionLevel.NORMAL
    short_circuit: ProtectionLevel = ProtectionLevel.NORMAL

    def merged(self, other: 'ProtectionLevels') -> 'ProtectionLevels':
        '''Per fault, the higher of the two levels.'''
        return ProtectionLevels(**{f.name: max(getattr(self, f.name), getattr(other, f.name))
                                   for f in fields(self)})

    @property
    def highest(self) -> ProtectionLevel:
        return max(getattr(self, f.name) for f in fields(self))

    def items(self):
        return [(f.name, getattr(self, f.name)) for f in fields(self)]


# Levels reported by sensors or the protection hardware itself
ExternalLevels = ProtectionLevels


@dataclass(frozen=True)
class Alert:
    severity: str  # 'warning' or 'critical'
    message: str
    value: Optional[float] = None


@dataclass(frozen=True)
class Thresholds:
    # Over voltage is judged on the SoC
    soc_warning: float = 100.0
    soc_alarm: float = 105.0

    under_voltage_warning: float = 2.8
    under_voltage_alarm: float = 2.5

    over_current_warning: float = 5.0
    over_current_alarm: float = 6.0

    over_temperature_warning: float = 45.0
    over_temperature_alarm: float = 55.0

    imbalance: float = 0.05

    def __post_init__(self):
        for name in ('soc', 'over_current', 'over_temperature'):
            warning, alarm = getattr(self, name + '_warning'), getattr(self, name + '_alarm')
            if alarm < warning:
                raise ValueError('{} alarm ({}) must not be below its warning ({})'.format(name, alarm, warning))

        if self.under_voltage_alarm > self.under_voltage_warning:
            raise ValueError('under_voltage alarm ({}) must not be above its warning ({})'
                             .format(self.under_voltage_alarm, self.under_voltage_warning))

        if self.imbalance < 0:
            raise ValueError('imbalance threshold must not be negative, got {}'.format(self.imbalance))


# Functions
# =============================================================================
def grade(value: float, warning: float, alarm: float, above: bool = True) -> ProtectionLevel:
    '''
    Level of a value against a warning and an alarm threshold. The alarm is checked first,
    so a value past both is always an ALARM.

    :param above: True if exceeding the thresholds is the fault, False if falling under them
    '''
    if above:
        if value > alarm:
            return ProtectionLevel.ALARM
        if value > warning:
            return ProtectionLevel.WARNING
    else:
        if value < alarm:
            return ProtectionLevel.ALARM
        if value < warning:
            return ProtectionLevel.WARNING
    return ProtectionLevel.NORMAL


def _leveled_alert(level, alarm_message, warning_message, value=None):
    if level == ProtectionLevel.ALARM:
        return Alert('critical', alarm_message, value)
    if level == ProtectionLevel.WARNING:
        return Alert('warning', warning_message, value)
    return None


def classify(measurement, soc: float, thresholds: Thresholds = None,
             external: ExternalLevels = None) -> Tuple[ProtectionLevels, List[Alert]]:
    '''
    Classifies a single cycle. Pure: the same inputs always give the same output.

    :param measurement: a Measurement, or anything with its cell_voltages, cell_delta,
                        current, temperature and balancing_active
    :param soc:         estimated state of charge (%)
    :param thresholds:  warning/alarm cut-offs, defaults if None
    :param external:    levels reported outside the classifier; the higher level wins

    :return: (levels, alerts)
    '''
    if thresholds is None:
        thresholds = Thresholds()

    cells = np.asarray(measurement.cell_voltages, dtype=float)
    min_cell = cells.min() if cells.size else np.nan

    levels = ProtectionLevels(
        over_voltage=grade(soc, thresholds.soc_warning, thresholds.soc_alarm),
        under_voltage=grade(min_cell, thresholds.under_voltage_warning, thresholds.under_voltage_alarm,
                            above=False),
        over_current=grade(abs(measurement.current), thresholds.over_current_warning,
                           thresholds.over_current_alarm),
        over_temperature=grade(measurement.temperature, thresholds.over_temperature_warning,
                               thresholds.over_temperature_alarm)
    )
    if external is not None:
        levels = levels.merged(external)

    alerts = [
        _leveled_alert(levels.over_voltage,
                       'SOC exceeds {:g}% - possible overcharge condition!'.format(thresholds.soc_alarm),
                       'SOC above {:g}% - battery fully charged.'.format(thresholds.soc_warning),
                       value=soc),
        _leveled_alert(levels.under_voltage, 'Under Voltage ALARM!', 'Under Voltage Warning'),
        _leveled_alert(levels.over_current, 'Over Current ALARM!', 'Over Current Warning'),
        _leveled_alert(levels.over_temperature, 'Over Temperature ALARM!', 'High Temperature Warning'),
    ]
    # No alert for levels.short_circuit

    # cell_delta is rounded to the 1 mV reading resolution
    if measurement.balancing_active and measurement.cell_delta > thresholds.imbalance:
        alerts.append(Alert('warning', 'Cell voltage imbalance detected'))

    return levels, [alert for alert in alerts if alert is not None]
