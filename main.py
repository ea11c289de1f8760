"""
    BMS SoC Estimator Program

    This program reads a log file of pack measurements, or
    simulates one, and runs every sample through the charge
    estimator and the protection classifier. Status reports
    are printed as it goes; SoC and SoH can be graphed at
    the end.

    Usage: python main.py [log file] [-s] [-c] [-j] [-p] [-v]

        -s  use the pack simulator instead of a log file
        -c  attempt an OCV calibration at each report while the pack is idle
        -j  print every snapshot as a JSON line
        -p  plot SoC and SoH
        -v  verbose logging

"""


# Python Imports
# =============================================================================
import json
import logging
import sys

import matplotlib.patches as mpatches
import matplotlib.pyplot as plt

import config
from bms import BMSMonitor, InputFile, PackSimulator
from estimators import CalibrationRefused, ChargeEstimator
from protection import Thresholds


# Functions
# =============================================================================
def plot(max_pos, pos, t, data, title, xlabel, ylabel, label, colour, lb, ub):
    plt.subplot(max_pos, 1, pos)
    plt.plot(t, data, colour)
    plt.axis([t[0], t[len(t) - 1] if len(t) > 1 else t[0] + 1, lb, ub])
    plt.title(title)
    plt.xlabel(xlabel)
    plt.ylabel(ylabel)
    plt.legend(handles=[mpatches.Patch(color=colour[0], label=label)], loc=4, prop={'size': 7})


def print_status(snapshot):
    m = snapshot.measurement
    print('\n========================================')
    print('BMS STATUS REPORT  t={:.1f}s'.format(m.timestamp))
    print('========================================')

    print('CELLS:')
    balancing = snapshot.balancing_cells
    for i, voltage in enumerate(m.cell_voltages):
        print('  Cell {}: {:.3f}V{}'.format(i + 1, voltage, ' [BALANCING]' if i + 1 in balancing else ''))

    print('\nPACK:')
    print('  Voltage: {:.2f}V'.format(m.pack_voltage))
    print('  Current: {:.2f}A [{}]'.format(m.current, m.charge_status.upper()))
    print('  Cell delta: {:.3f}V'.format(m.cell_delta))
    print('  Temperature: {:.1f}C'.format(m.temperature))

    print('\nSTATE:')
    print('  SOC: {:.1f}%'.format(snapshot.soc))
    print('  SOH: {:.1f}%'.format(snapshot.soh))
    print('  Remaining: {:.3f}Ah (expected OCV {:.3f}V)'.format(snapshot.remaining_capacity,
                                                                 snapshot.expected_voltage))

    print('\nPROTECTION:')
    print('  Highest: {}'.format(snapshot.protection.highest.label.upper()))
    for name, level in snapshot.protection.items():
        print('  {}: {}'.format(name.replace('_', ' ').title(), level.label.upper()))

    for alert in snapshot.alerts:
        print('  !! [{}] {}'.format(alert.severity, alert.message))
    print('========================================')


# Main Program
# =============================================================================
if __name__ == '__main__':

    logging.basicConfig(level=logging.DEBUG if '-v' in sys.argv else logging.INFO,
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    estimator_config, protection_config = config.get()  # Read config file
    sim = config.simulation

    files = [arg for arg in sys.argv[1:] if not arg.startswith('-')]
    if files:
        inputF = InputFile(files[0])
        estimator_config, protection_config = inputF.adjust_config(estimator_config, protection_config)
        measurements = list(inputF)
        fileName = files[0]
        simulator = None
    elif '-s' in sys.argv:
        simulator = PackSimulator(balance_threshold=sim['balance_threshold'],
                                  base_capacity=estimator_config['capacity'],
                                  capacity_fade=sim['capacity_fade'])
        measurements = list(simulator.run(sim['duration'], sim['sample_interval']))
        fileName = 'simulation'
    else:
        print(__doc__)
        sys.exit(1)

    if not measurements:
        print('No measurements in {}'.format(fileName))
        sys.exit(1)

    # The first sample only anchors the clock
    estimator = ChargeEstimator(timestamp=measurements[0].timestamp, **estimator_config)
    monitor = BMSMonitor(estimator, Thresholds(**protection_config), history=sim['history'])

    last_report = None
    for measurement in measurements:
        snapshot = monitor.step(measurement)

        if '-j' in sys.argv:
            print(json.dumps(snapshot.as_dict()))

        if last_report is None or measurement.timestamp - last_report >= sim['report_interval']:
            last_report = measurement.timestamp
            if '-j' not in sys.argv:
                print_status(snapshot)

            if '-c' in sys.argv and measurement.charge_status == 'idle' and not monitor.calibrated_this_rest:
                try:
                    soc = monitor.calibrate()
                    print('Calibrated SoC: {:.2f}%'.format(soc))
                except CalibrationRefused as e:
                    # Not fatal, the next report tries again
                    print('Calibration refused: {}'.format(e))

    final = monitor.snapshot()
    print('\nFinal SoC: {:.2f}%\tSoH: {:.2f}%\tCycles: {}'.format(final.soc, final.soh, final.cycle_count))
    print('Charge in: {:.4f}Ah\tCharge out: {:.4f}Ah'.format(estimator.total_charge_in, estimator.total_charge_out))

    if simulator is not None:
        elapsed = final.measurement.timestamp - simulator.start_time
        capacity = simulator.capacity(elapsed)
        print('Simulated capacity: {:.2f}Ah ({:.1f}%) after {} cycles'.format(
            capacity, capacity / simulator.base_capacity * 100, simulator.cycles(elapsed)))

    if '-p' in sys.argv:
        time, soc, soh = monitor.get_plotables()
        plt.figure(1).suptitle(fileName)
        plot(2, 1, time, soc, 'SoC Estimation', 'Time (s)', 'SoC (%)', 'Coulomb counted SoC', 'r-', 0, 110)
        plot(2, 2, time, soh, 'SoH Estimation', 'Time (s)', 'SoH (%)', 'SoH', 'g-', 40, 110)
        plt.tight_layout()
        plt.show()

    print('Done')
