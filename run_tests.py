'''
    Small script to run all unit tests.

    We could use loadTestFromModule to make this script shorter, but then there is no visual
    distinction between tests from different classes.
'''

import re
import sys
import unittest

import unit_tests

print('Running tests!\n\n')
failed = False
for name, cls in unit_tests.__dict__.items():
    if isinstance(cls, type) and issubclass(cls, unittest.TestCase):
        # Separate and put to upper-case
        title = re.sub('(.)([A-Z][a-z]+)', r'\1 \2', name)
        title = re.sub('([a-z0-9])([A-Z])', r'\1 \2', title).upper()
        # Pad title with '-', fitting to 70 characters total
        print('{:-^70}\n'.format(title))
        tests = unittest.TestLoader().loadTestsFromTestCase(cls)
        result = unittest.TextTestRunner(verbosity=2).run(tests)
        failed = failed or not result.wasSuccessful()
        print()

sys.exit(1 if failed else 0)
