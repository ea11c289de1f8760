from .ocv_table import OCVTable
from .charge_estimator import ChargeEstimator, ChargeState, CalibrationRefused
