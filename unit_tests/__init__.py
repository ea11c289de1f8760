from .test_ocv_table import OCVTableTest
from .test_charge_estimator import ChargeEstimatorTest
from .test_classifier import ClassifierTest
from .test_monitor import MeasurementTest, BMSMonitorTest, BMSSnapshotTest
from .test_pack_simulator import PackSimulatorTest
from .test_input_file import InputFileTest
from .test_config import ConfigTest
