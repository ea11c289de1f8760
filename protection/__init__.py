from .classifier import (Alert, ExternalLevels, ProtectionLevel, ProtectionLevels, Thresholds,
                         classify, grade)
