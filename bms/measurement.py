from dataclasses import dataclass, field
from typing import Tuple

# Below this magnitude (A) the pack is considered idle
IDLE_CURRENT = 0.1

# Cell voltages are read at 1 mV resolution
VOLTAGE_DECIMALS = 3


@dataclass(frozen=True)
class Measurement:
    """ One cycle of sensor readings for the pack """
    cell_voltages: Tuple[float, ...]
    current: float      # A, positive = charging
    temperature: float  # degC
    timestamp: float    # monotonic seconds
    balancing_cells: Tuple[bool, ...] = field(default=())

    def __post_init__(self):
        # Frozen, so normalise through object.__setattr__
        object.__setattr__(self, 'cell_voltages', tuple(round(float(v), VOLTAGE_DECIMALS) for v in self.cell_voltages))
        object.__setattr__(self, 'balancing_cells', tuple(bool(b) for b in self.balancing_cells))

    @property
    def cell_count(self) -> int:
        return len(self.cell_voltages)

    @property
    def pack_voltage(self) -> float:
        return sum(self.cell_voltages)

    @property
    def average_cell_voltage(self) -> float:
        if not self.cell_voltages:
            return 0.0
        return self.pack_voltage / self.cell_count

    @property
    def cell_delta(self) -> float:
        '''Spread between the highest and lowest cell, at the 1 mV resolution of the readings.'''
        if not self.cell_voltages:
            return 0.0
        return round(max(self.cell_voltages) - min(self.cell_voltages), VOLTAGE_DECIMALS)

    @property
    def balancing_active(self) -> bool:
        return any(self.balancing_cells)

    @property
    def charge_status(self) -> str:
        if self.current > IDLE_CURRENT:
            return 'charging'
        if self.current < -IDLE_CURRENT:
            return 'discharging'
        return 'idle'
