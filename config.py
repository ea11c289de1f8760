"""
    Config File for the BMS SoC Estimator

    Contains charge estimator parameters, protection thresholds and
    simulation settings, as well as the OCV table of the cell chemistry.
    Also contains a 'get' function that returns copies of the
    appropriate parameters.

"""

from copy import deepcopy

from estimators.ocv_table import LIFEPO4


# OCV Table
# =============================================================================
# Swap for the table of another chemistry, keeping (SoC %, voltage) rows
OCV_TABLE = LIFEPO4


# Charge Estimator Parameters
# =============================================================================
estimator = dict(
    capacity                = 6.0,    # Ah
    initial_soc             = 100.0,  # %
    charge_efficiency       = 0.97,
    reference_temperature   = 25.0,   # degC
    temperature_coefficient = 0.6,    # %/degC
    max_elapsed_hours       = 1.0,
    min_rest_seconds        = 1800.0,
    coulomb_weight          = 0.7,    # OCV gets the remainder

    # Linear ageing model
    cycle_life      = 2000,
    max_degradation = 20.0,  # % lost after cycle_life cycles
    health_floor    = 50.0,

    ocv_table = OCV_TABLE
)


# Protection Thresholds
# =============================================================================
protection = dict(
    soc_warning = 100.0,
    soc_alarm   = 105.0,

    # Minimum cell voltage
    under_voltage_warning = 2.8,
    under_voltage_alarm   = 2.5,

    # Absolute pack current
    over_current_warning = 5.0,
    over_current_alarm   = 6.0,

    over_temperature_warning = 45.0,
    over_temperature_alarm   = 55.0,

    imbalance = 0.05  # 50 mV
)


# Simulation
# =============================================================================
simulation = dict(
    cell_count        = 4,
    sample_interval   = 0.5,   # s
    report_interval   = 5.0,   # s
    duration          = 600.0, # s
    balance_threshold = 0.01,  # V
    capacity_fade     = 0.001, # fraction of the base capacity lost per simulated cycle
    history           = 10000  # cycles kept for plotting
)


# Functions
# =============================================================================
def get():
    '''
    Returns the configs required by the charge estimator and the protection classifier

    :return: estimator_config:  keyword arguments for ChargeEstimator (ocv_table included)

             protection_config: keyword arguments for Thresholds
    '''
    # Copies, so input file headers can adjust them without touching the defaults
    return deepcopy(estimator), deepcopy(protection)
