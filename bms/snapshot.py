"""
    BMS Snapshot

    Everything known about the pack after one cycle. A new snapshot is
    built every cycle; published snapshots are never modified.

"""

from dataclasses import dataclass
from typing import Tuple

from protection import Alert, ProtectionLevels

from .measurement import Measurement

# Keys the dashboard expects for each protection level
PROTECTION_KEYS = {
    'over_voltage'     : 'overVoltage',
    'under_voltage'    : 'underVoltage',
    'over_current'     : 'overCurrent',
    'over_temperature' : 'overTemperature',
    'short_circuit'    : 'shortCircuit'
}


@dataclass(frozen=True)
class BMSSnapshot:
    measurement: Measurement
    soc: float
    soh: float
    remaining_capacity: float  # Ah
    expected_voltage: float    # V, OCV at the current SoC
    cycle_count: int
    protection: ProtectionLevels
    alerts: Tuple[Alert, ...] = ()

    @property
    def balancing_active(self) -> bool:
        return self.measurement.balancing_active

    @property
    def balancing_cells(self) -> Tuple[int, ...]:
        '''1-based numbers of the cells currently balancing.'''
        return tuple(i + 1 for i, balancing in enumerate(self.measurement.balancing_cells) if balancing)

    def as_dict(self) -> dict:
        '''Nested plain-dict view, grouped the way the dashboard reads it.'''
        m = self.measurement
        alerts = []
        for alert in self.alerts:
            entry = {'severity': alert.severity, 'message': alert.message}
            if alert.value is not None:
                entry['soc'] = round(alert.value, 1)
            alerts.append(entry)

        return {
            'measurement': {
                'cellVoltages'    : [{'cell': i + 1, 'voltage': v} for i, v in enumerate(m.cell_voltages)],
                'packVoltage'     : round(m.pack_voltage, 2),
                'current'         : round(m.current, 2),
                'packTemperature' : round(m.temperature, 1)
            },
            'calculation': {
                'soc'               : round(self.soc, 1),
                'soh'               : round(self.soh, 1),
                'remainingCapacity' : round(self.remaining_capacity, 3),
                'expectedVoltage'   : round(self.expected_voltage, 3),
                'cycleCount'        : self.cycle_count
            },
            'status': {
                'charging'  : m.charge_status,
                'balancing' : {
                    'active' : self.balancing_active,
                    'cells'  : list(self.balancing_cells)
                }
            },
            'protection': {PROTECTION_KEYS[name]: level.label for name, level in self.protection.items()},
            'alerts': alerts
        }
