from .measurement import Measurement
from .snapshot import BMSSnapshot
from .monitor import BMSMonitor
from .pack_simulator import PackSimulator
from .input_file import InputFile
