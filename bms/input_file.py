"""
    Measurement log reader.

    --HEAD
    capacity = 6.0
    cell_count = 4
    --BODY
    0.0     -1.2    25.0    3.301   3.298   3.305   3.300   0   0   1   0

    The header is optional. Each body line is timestamp, current and
    temperature followed by the cell voltages; when cell_count is given in
    the header, any columns after the voltages are per cell balancing flags.
"""

from ast import literal_eval

from .measurement import Measurement

FIXED_COLUMNS = 3


class InputFile:

    def __init__(self, filename, delimiter='\t'):
        head = {}

        with open(filename, 'r') as f:
            flines = [line.rstrip() for line in f]  # use rstrip to remove newlines

        flines = [line for line in flines if line and not line.startswith('#')]
        if not flines:
            raise ValueError('{} is empty'.format(filename))

        # If the header exists, parse it
        if flines[0] == '--HEAD':
            flines.pop(0)
            while True:
                if not flines:
                    raise ValueError('HEAD not formatted correctly. Are you missing --BODY?')
                line = flines.pop(0)
                if line == '--BODY':
                    break
                try:
                    key, value = line.replace(' ', '').split('=')
                except ValueError:
                    raise ValueError('HEAD not formatted correctly at line: {}'.format(line))
                head[key] = value

        self.head = head
        self.lines = flines
        self.delimiter = delimiter
        self.cell_count = int(head['cell_count']) if 'cell_count' in head else None

    def adjust_config(self, estimator_config: dict, protection_config: dict):
        ''' Adjust the config based on the header of the input file. '''
        head = self.head

        for config in (estimator_config, protection_config):
            for key in config:
                if key not in head:
                    continue
                if key == 'ocv_table':
                    config[key] = tuple(tuple(row) for row in literal_eval(head[key]))
                else:
                    config[key] = float(head[key])

        return estimator_config, protection_config

    def _parse(self, line):
        columns = line.split(self.delimiter) if self.delimiter else line.split()
        columns = [c.strip() for c in columns if c.strip()]
        if len(columns) <= FIXED_COLUMNS:
            raise ValueError('Measurement line needs at least {} columns: {}'.format(FIXED_COLUMNS + 1, line))

        timestamp, current, temperature = map(float, columns[:FIXED_COLUMNS])
        rest = columns[FIXED_COLUMNS:]

        if self.cell_count is None:
            voltages, balancing = rest, []
        else:
            voltages, balancing = rest[:self.cell_count], rest[self.cell_count:]

        return Measurement(cell_voltages=[float(v) for v in voltages],
                           current=current,
                           temperature=temperature,
                           timestamp=timestamp,
                           balancing_cells=[int(b) != 0 for b in balancing])

    def __getitem__(self, key):
        ''' Returns the measurement of a line, or an object from the header '''
        if type(key) is int:
            return self._parse(self.lines[key])

        elif type(key) is str:
            return self.head[key]

        else:
            raise TypeError('InputFile key must be either integer or string!')

    def __iter__(self):
        for line in self.lines:
            yield self._parse(line)

    def __len__(self):
        return len(self.lines)
