from bms import Measurement
from protection import Alert, ProtectionLevel, ProtectionLevels, Thresholds, classify, grade
import unittest

NORMAL  = ProtectionLevel.NORMAL
WARNING = ProtectionLevel.WARNING
ALARM   = ProtectionLevel.ALARM


class ClassifierTest(unittest.TestCase):

    def gen_measurement(self, cells=(3.30, 3.30, 3.30, 3.30), current=-1.0, temperature=25.0, balancing=()):
        return Measurement(cell_voltages=cells, current=current, temperature=temperature,
                           timestamp=0.0, balancing_cells=balancing)


    def test_grade_alarm_takes_precedence(self):
        self.assertEqual(grade(110, 100, 105), ALARM)
        self.assertEqual(grade(102, 100, 105), WARNING)
        self.assertEqual(grade(100, 100, 105), NORMAL)
        self.assertEqual(grade(2.4, 2.8, 2.5, above=False), ALARM)
        self.assertEqual(grade(2.6, 2.8, 2.5, above=False), WARNING)
        self.assertEqual(grade(3.3, 2.8, 2.5, above=False), NORMAL)


    def test_normal_cycle(self):
        levels, alerts = classify(self.gen_measurement(), 80.0)
        self.assertEqual(levels, ProtectionLevels())
        self.assertEqual(levels.highest, NORMAL)
        self.assertEqual(alerts, [])


    def test_soc_alarm(self):
        levels, alerts = classify(self.gen_measurement(), 106.0, Thresholds())
        self.assertEqual(levels.over_voltage, ALARM)
        self.assertEqual(alerts, [Alert('critical', 'SOC exceeds 105% - possible overcharge condition!', 106.0)])


    def test_soc_warning(self):
        levels, alerts = classify(self.gen_measurement(), 102.5)
        self.assertEqual(levels.over_voltage, WARNING)
        self.assertEqual(len(alerts), 1)
        self.assertEqual(alerts[0].severity, 'warning')
        self.assertEqual(alerts[0].message, 'SOC above 100% - battery fully charged.')
        self.assertEqual(alerts[0].value, 102.5)


    def test_alert_order(self):
        measurement = self.gen_measurement(cells=(2.40, 3.30, 3.30, 3.30), current=-5.5, temperature=60.0,
                                           balancing=(False, True, True, True))
        levels, alerts = classify(measurement, 102.0)

        self.assertEqual(levels.under_voltage, ALARM)
        self.assertEqual(levels.over_current, WARNING)
        self.assertEqual(levels.over_temperature, ALARM)
        self.assertEqual([a.message for a in alerts], [
            'SOC above 100% - battery fully charged.',
            'Under Voltage ALARM!',
            'Over Current Warning',
            'Over Temperature ALARM!',
            'Cell voltage imbalance detected'
        ])
        self.assertEqual([a.severity for a in alerts], ['warning', 'critical', 'warning', 'critical', 'warning'])


    def test_warning_messages(self):
        measurement = self.gen_measurement(cells=(2.70, 3.30, 3.30, 3.30), current=6.5, temperature=50.0)
        levels, alerts = classify(measurement, 50.0)
        self.assertEqual([a.message for a in alerts], [
            'Under Voltage Warning',
            'Over Current ALARM!',
            'High Temperature Warning'
        ])


    def test_short_circuit_never_alerts(self):
        levels, alerts = classify(self.gen_measurement(), 50.0, external=ProtectionLevels(short_circuit=ALARM))
        self.assertEqual(levels.short_circuit, ALARM)
        self.assertEqual(levels.highest, ALARM)
        self.assertEqual(alerts, [])


    def test_external_levels_merge_upwards(self):
        levels, alerts = classify(self.gen_measurement(), 50.0, external=ProtectionLevels(under_voltage=WARNING))
        self.assertEqual(levels.under_voltage, WARNING)
        self.assertEqual(alerts, [Alert('warning', 'Under Voltage Warning')])

        # An external NORMAL does not clear a measured alarm
        levels, _ = classify(self.gen_measurement(temperature=70.0), 50.0, external=ProtectionLevels())
        self.assertEqual(levels.over_temperature, ALARM)


    def test_imbalance_over_50mv(self):
        measurement = self.gen_measurement(cells=(3.40, 3.40, 3.40, 3.46), balancing=(False, False, False, True))
        _, alerts = classify(measurement, 50.0)
        self.assertEqual(alerts, [Alert('warning', 'Cell voltage imbalance detected')])


    def test_imbalance_under_50mv(self):
        measurement = self.gen_measurement(cells=(3.40, 3.40, 3.40, 3.44), balancing=(False, False, False, True))
        _, alerts = classify(measurement, 50.0)
        self.assertEqual(alerts, [])


    def test_imbalance_exactly_50mv(self):
        # 3.45 - 3.40 is not exactly 0.05 in binary floating point
        for low in (3.40, 3.30, 3.20, 3.10, 2.90):
            cells = (low, low, low, low + 0.05)
            measurement = self.gen_measurement(cells=cells, balancing=(False, False, False, True))
            _, alerts = classify(measurement, 50.0)
            self.assertEqual(alerts, [], msg='cells {}'.format(cells))

        measurement = self.gen_measurement(cells=(3.40, 3.40, 3.40, 3.451), balancing=(False, False, False, True))
        self.assertEqual(len(classify(measurement, 50.0)[1]), 1)


    def test_imbalance_ignored_without_balancing(self):
        measurement = self.gen_measurement(cells=(3.40, 3.40, 3.40, 3.46))
        _, alerts = classify(measurement, 50.0)
        self.assertEqual(alerts, [])


    def test_no_state_between_calls(self):
        alarm = self.gen_measurement(temperature=70.0)
        first = classify(alarm, 50.0)
        classify(self.gen_measurement(), 50.0)
        self.assertEqual(classify(alarm, 50.0), first)

        # Right on the threshold, then just past it, then back
        self.assertEqual(classify(self.gen_measurement(temperature=45.0), 50.0)[1], [])
        self.assertEqual(len(classify(self.gen_measurement(temperature=45.1), 50.0)[1]), 1)
        self.assertEqual(classify(self.gen_measurement(temperature=45.0), 50.0)[1], [])


    def test_custom_thresholds(self):
        thresholds = Thresholds(over_temperature_warning=30.0, over_temperature_alarm=40.0)
        levels, _ = classify(self.gen_measurement(temperature=35.0), 50.0, thresholds)
        self.assertEqual(levels.over_temperature, WARNING)


    def test_rejects_inverted_thresholds(self):
        with self.assertRaises(ValueError):
            Thresholds(soc_warning=110.0, soc_alarm=105.0)
        with self.assertRaises(ValueError):
            Thresholds(under_voltage_warning=2.5, under_voltage_alarm=2.8)
        with self.assertRaises(ValueError):
            Thresholds(imbalance=-0.01)


    def test_level_labels(self):
        self.assertEqual([level.label for level in ProtectionLevel], ['normal', 'warning', 'alarm'])
        self.assertTrue(ALARM > WARNING > NORMAL)
